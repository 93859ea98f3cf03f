"""FastAPI entry point: Telegram webhook ingress for the resume matcher bot."""

import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.routes import router
from app.config import settings
from app.utils.event_log import EventLog
from app.utils.logging import clear_request_context, get_logger, set_request_context, setup_logging

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _prepare_data_dirs() -> None:
    for directory in (Path(settings.storage_path).parent, Path(settings.log_dir)):
        directory.mkdir(parents=True, exist_ok=True)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id for log correlation and echo it back."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_context(request_id=request_id, operation=request.url.path)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        logger.debug(
            "{} {} -> {} ({:.0f} ms)",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(
        log_level=settings.log_level,
        log_dir=settings.log_dir,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    _prepare_data_dirs()
    EventLog(settings.log_dir, retention_days=settings.event_log_retention_days).prune()
    logger.info(
        "{} {} started (environment={}, webhook secret {})",
        settings.app_name,
        settings.app_version,
        settings.environment,
        "set" if settings.webhook_secret else "not set",
    )
    yield
    logger.info("{} stopped", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="Telegram bot that scores a resume against a job posting",
    version=settings.app_version,
    lifespan=lifespan,
)
app.add_middleware(RequestIdMiddleware)
app.include_router(router)


@app.exception_handler(RequestValidationError)
async def bad_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are a client problem: 400, not FastAPI's default 422."""
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"detail": detail})


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    logger.exception("Unhandled error on {}: {}", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "An internal server error occurred"})


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    """Plain status page for anyone opening the webhook host in a browser."""
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{settings.app_name}</title></head>
<body style="font-family: system-ui; max-width: 560px; margin: 3rem auto;">
  <h1>{settings.app_name}</h1>
  <p>Version {settings.app_version}, environment <strong>{settings.environment}</strong>.</p>
  <p>Talk to the bot on Telegram. Service endpoints:</p>
  <ul>
    <li><a href="/health">/health</a></li>
    <li><a href="/docs">/docs</a></li>
  </ul>
</body>
</html>"""
