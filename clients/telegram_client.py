"""
Telegram Bot API client.

Thin wrapper over the HTTPS Bot API (sendMessage, setWebhook,
getWebhookInfo). Every failure surfaces as TelegramError; deciding whether
a failure matters is the caller's job.
"""

import logging

import requests

from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class TelegramError(ExternalServiceError):
    """Raised when a Bot API call fails or returns ok=false."""

    def __init__(self, message: str):
        super().__init__("telegram", message)


class TelegramClient:
    """
    Call the Telegram Bot API with a single bot token.

    Usage:
        client = TelegramClient(bot_token)
        client.send_message(chat_id, "*Invoice Paid*")
    """

    API_BASE = "https://api.telegram.org"

    def __init__(self, bot_token: str, timeout: int = 10):
        if not bot_token:
            raise ValueError("bot_token is required")
        self._bot_token = bot_token
        self.timeout = timeout

    def _url(self, method: str) -> str:
        return f"{self.API_BASE}/bot{self._bot_token}/{method}"

    def _call(self, method: str, payload: dict | None = None):
        """
        POST to a Bot API method and return its `result`.

        Raises:
            TelegramError: Transport failure, bad JSON or ok=false
        """
        try:
            response = requests.post(self._url(method), json=payload or {}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Telegram {method} connection failed: {e}")
            raise TelegramError(f"Connection failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Telegram {method} returned invalid JSON (HTTP {response.status_code})")
            raise TelegramError("Invalid response from Telegram") from e

        if not data.get("ok"):
            description = data.get("description", f"HTTP {response.status_code}")
            logger.error(f"Telegram {method} failed: {description}")
            raise TelegramError(description)

        return data.get("result")

    def send_message(self, chat_id: str, text: str, markdown: bool = True) -> dict:
        """Send a text message. Markdown parse mode unless markdown=False."""
        payload = {"chat_id": chat_id, "text": text}
        if markdown:
            payload["parse_mode"] = "Markdown"
        return self._call("sendMessage", payload)

    def set_webhook(self, url: str) -> None:
        self._call("setWebhook", {"url": url})
        logger.info(f"Telegram webhook set to {url}")

    def get_webhook_info(self) -> dict:
        return self._call("getWebhookInfo") or {}
