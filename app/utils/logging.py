"""Loguru setup shared by the web app and the bot internals."""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger as _loguru_logger

if TYPE_CHECKING:
    from loguru import Logger

CONTEXT_KEYS = ("request_id", "user_id", "operation")
CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan> | {message}"
)

_context: ContextVar[dict[str, str]] = ContextVar("log_context", default={})


class InterceptHandler(logging.Handler):
    """Send stdlib ``logging`` records into loguru so every module shares one pipeline."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = _loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _loguru_logger.bind(module=record.name).opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _attach_context(record: dict[str, Any]) -> bool:
    record["extra"].update(_context.get())
    record["extra"].setdefault("module", record["name"])
    return True


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | str = "logs",
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Install the loguru sinks.

    Writes serialized JSON records to ``<log_dir>/app.log`` and a readable
    line per record to stderr. Both sinks carry the request context set via
    :func:`set_request_context`. Stdlib loggers are intercepted, and httpx is
    held at WARNING because its request lines contain the bot token.

    Args:
        log_level: Minimum level for both sinks.
        log_dir: Directory for ``app.log``; created if missing.
        rotation: Loguru rotation rule for the file sink.
        retention: Loguru retention rule for rotated files.
    """
    _loguru_logger.remove()

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    _loguru_logger.add(
        log_path / "app.log",
        format="{message}",
        level=log_level,
        rotation=rotation,
        retention=retention,
        serialize=True,
        filter=_attach_context,
    )
    _loguru_logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, filter=_attach_context)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(module_name: str) -> Logger:
    """Loguru logger bound to ``module_name``."""
    return _loguru_logger.bind(module=module_name)


def set_request_context(**values: str | None) -> None:
    """Merge request-scoped fields (request_id, user_id, operation) into log records.

    ``None`` values are ignored, so the webhook route can add ``user_id``
    on top of what the middleware already set.
    """
    unknown = set(values) - set(CONTEXT_KEYS)
    if unknown:
        raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
    merged = dict(_context.get())
    merged.update({k: v for k, v in values.items() if v is not None})
    _context.set(merged)


def current_request_context() -> dict[str, str]:
    return dict(_context.get())


def clear_request_context() -> None:
    _context.set({})
