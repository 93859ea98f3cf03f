"""Async Telegram Bot API client."""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_TIMEOUT = 30.0


class MessagingError(RuntimeError):
    """Raised when a file cannot be fetched from the messaging platform."""


class TelegramClient:
    """Thin wrapper over the Bot API methods the bot needs.

    Every method reports failure through its return value (False or None)
    instead of raising, so a flaky transport never aborts event handling.
    """

    def __init__(
        self,
        bot_token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = TELEGRAM_API_BASE,
    ) -> None:
        self._bot_token = bot_token
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)

    def _method_url(self, method: str) -> str:
        return f"{self._base_url}/bot{self._bot_token}/{method}"

    async def _call(self, method: str, payload: dict[str, Any]) -> Optional[Any]:
        """POST a Bot API method and return its ``result`` field, or None on failure."""
        try:
            response = await self._client.post(self._method_url(method), json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Telegram %s failed: HTTP %d %s", method, e.response.status_code, e.response.text[:200])
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Telegram %s failed: %s", method, e)
            return None

        if not body.get("ok"):
            logger.error("Telegram %s returned error: %s", method, body.get("description"))
            return None
        return body.get("result")

    async def send_message(self, chat_id: int, text: str, **options: Any) -> bool:
        """Send a text message. Returns True if Telegram accepted it."""
        result = await self._call("sendMessage", {"chat_id": chat_id, "text": text, **options})
        return result is not None

    async def get_file(self, file_id: str) -> Optional[dict]:
        """Return file metadata (including ``file_path``), or None."""
        return await self._call("getFile", {"file_id": file_id})

    async def download_file(self, file_path: str) -> Optional[bytes]:
        """Download file content by the path getFile returned, or None."""
        url = f"{self._base_url}/file/bot{self._bot_token}/{file_path}"
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Telegram file download failed: %s", e)
            return None
        return response.content

    async def fetch_document(self, file_id: str) -> bytes:
        """getFile + download in one step.

        Raises:
            MessagingError: If either step fails.
        """
        info = await self.get_file(file_id)
        if not info or not info.get("file_path"):
            raise MessagingError("Could not get file information")
        content = await self.download_file(info["file_path"])
        if content is None:
            raise MessagingError("Could not download file")
        return content

    async def set_webhook(self, url: str, secret_token: Optional[str] = None) -> bool:
        payload: dict[str, Any] = {"url": url, "allowed_updates": ["message", "callback_query"]}
        if secret_token:
            payload["secret_token"] = secret_token
        return await self._call("setWebhook", payload) is not None

    async def delete_webhook(self) -> bool:
        return await self._call("deleteWebhook", {}) is not None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
