"""FastAPI endpoints: Telegram webhook, webhook management and health."""

import json
import logging
import secrets
import time
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, ValidationError

from app.api.dependencies import get_service_context
from app.context import ServiceContext
from app.conversation.handler import ConversationHandler
from app.models import InboundEvent, TelegramUpdate
from app.utils.logging import set_request_context

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resume-matcher"])

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


class WebhookRegistration(BaseModel):
    url: str


def _check_webhook_secret(ctx: ServiceContext, supplied: Optional[str]) -> None:
    expected = ctx.settings.webhook_secret
    if not expected:
        return
    if supplied is None or not secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
        ctx.event_log.append("WARN", "WEBHOOK_ERROR", "Invalid webhook secret")
        raise HTTPException(status_code=401, detail="Unauthorized")


def _parse_event(ctx: ServiceContext, body: bytes) -> InboundEvent:
    try:
        update = TelegramUpdate.model_validate(json.loads(body))
        return InboundEvent.from_update(update)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError and pydantic ValidationError are both ValueErrors
        logger.warning("Rejected webhook body: %s", e)
        ctx.event_log.append("WARN", "WEBHOOK_ERROR", f"Invalid update: {str(e)[:200]}")
        raise HTTPException(status_code=400, detail="Invalid update") from e


@router.post("/webhook")
async def telegram_webhook(
    request: Request,
    ctx: ServiceContext = Depends(get_service_context),
    secret_token: Optional[str] = Header(default=None, alias=SECRET_HEADER),
) -> dict:
    """Receive one Telegram update and process it to completion before responding.

    Returns 200 once the update is handled, 400 for a malformed update,
    401 for a wrong secret and 429 when the sender is over the rate limit.
    """
    t0 = time.perf_counter()
    _check_webhook_secret(ctx, secret_token)
    event = _parse_event(ctx, await request.body())
    set_request_context(user_id=str(event.user_id))

    ctx.event_log.append(
        "INFO",
        "WEBHOOK_RECEIVED",
        f"Update {event.update_id}",
        data={"has_document": event.document is not None, "is_callback": event.callback_data is not None},
        user_id=event.user_id,
        chat_id=event.chat_id,
    )

    if not ctx.rate_limiter.check_rate_limit(event.user_id):
        ctx.event_log.append(
            "WARN",
            "RATE_LIMITED",
            f"Rate limit of {ctx.rate_limiter.max_requests}/min exceeded",
            user_id=event.user_id,
            chat_id=event.chat_id,
        )
        raise HTTPException(status_code=429, detail="Too many requests")

    await ConversationHandler(ctx).handle(event)
    logger.info("Webhook update %s processed in %.3fs", event.update_id, time.perf_counter() - t0)
    return {"ok": True}


def _require_admin(ctx: ServiceContext, password: Optional[str]) -> None:
    decision = ctx.admin.authorize(password)
    if not decision.granted:
        ctx.event_log.append("WARN", "ADMIN_ACCESS_DENIED", f"Webhook management denied: {decision.reason}")
        raise HTTPException(status_code=401, detail="Unauthorized")
    ctx.event_log.append("INFO", "ADMIN_ACCESS_GRANTED", "Webhook management access granted")


@router.post("/set-webhook")
async def set_webhook(
    registration: WebhookRegistration,
    ctx: ServiceContext = Depends(get_service_context),
    admin_password: Optional[str] = Header(default=None, alias="X-Admin-Password"),
) -> dict:
    """Point Telegram at ``registration.url``, passing the configured secret."""
    _require_admin(ctx, admin_password)
    ok = await ctx.messenger.set_webhook(registration.url, ctx.settings.webhook_secret)
    if not ok:
        raise HTTPException(status_code=502, detail="Telegram rejected setWebhook")
    logger.info("Webhook set to %s", registration.url)
    return {"ok": True, "url": registration.url}


@router.post("/delete-webhook")
async def delete_webhook(
    ctx: ServiceContext = Depends(get_service_context),
    admin_password: Optional[str] = Header(default=None, alias="X-Admin-Password"),
) -> dict:
    """Remove the Telegram webhook."""
    _require_admin(ctx, admin_password)
    if not await ctx.messenger.delete_webhook():
        raise HTTPException(status_code=502, detail="Telegram rejected deleteWebhook")
    logger.info("Webhook deleted")
    return {"ok": True}


@router.get("/health")
def health_check(ctx: ServiceContext = Depends(get_service_context)) -> dict:
    """Health check: configuration presence and storage reachability."""
    storage_ok = ctx.store.ping()
    return {
        "status": "ok" if storage_ok else "degraded",
        "environment": ctx.settings.environment,
        "version": ctx.settings.app_version,
        "components": {
            "telegram_token": "configured" if ctx.settings.telegram_bot_token else "missing",
            "webhook_secret": "configured" if ctx.settings.webhook_secret else "not set",
            "storage": "ok" if storage_ok else "error",
        },
    }
