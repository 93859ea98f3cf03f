"""Utilities: logging and the persistent event log."""

from app.utils.event_log import EventLog
from app.utils.logging import clear_request_context, get_logger, set_request_context, setup_logging

__all__ = [
    "EventLog",
    "clear_request_context",
    "get_logger",
    "set_request_context",
    "setup_logging",
]
