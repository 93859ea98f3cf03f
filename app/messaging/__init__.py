"""Messaging transport client."""

from app.messaging.telegram import MessagingError, TelegramClient

__all__ = ["MessagingError", "TelegramClient"]
