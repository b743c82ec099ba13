"""Telegram Bot API delivery adapter.

Posts to ``sendMessage`` with a per-call timeout. Rich text is sent with
``parse_mode=HTML``. The bot token is part of the request URL, so every
error string is scrubbed before it is returned or logged.
"""

import requests
import structlog

from leadalerts.delivery.port import RENDER_RICHTEXT, DeliveryGateway, SendResult

logger = structlog.get_logger(__name__)


def mask_secret(secret: str) -> str:
    if not secret:
        return ""
    if len(secret) <= 8:
        return "***"
    return f"{secret[:4]}...{secret[-4:]}"


class TelegramDeliveryGateway(DeliveryGateway):
    """Sends messages through a Telegram bot."""

    def __init__(self, bot_token: str, api_base: str = "https://api.telegram.org", timeout: float = 5.0) -> None:
        if not bot_token or not bot_token.strip():
            raise ValueError("Telegram bot token is required")
        self._bot_token = bot_token.strip()
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self.masked_token = mask_secret(self._bot_token)

    @property
    def timeout(self) -> float:
        return self._timeout

    def send(self, channel_id: str, text: str, render_mode: str = RENDER_RICHTEXT) -> SendResult:
        payload = {
            "chat_id": str(channel_id),
            "text": text,
            "disable_web_page_preview": True,
        }
        if render_mode == RENDER_RICHTEXT:
            payload["parse_mode"] = "HTML"

        url = f"{self._api_base}/bot{self._bot_token}/sendMessage"
        try:
            response = requests.post(url, json=payload, timeout=self._timeout)
        except requests.Timeout:
            return SendResult(ok=False, error=f"Timed out after {self._timeout}s")
        except requests.RequestException as exc:
            return SendResult(ok=False, error=f"{type(exc).__name__}: {self._sanitize(str(exc))}")

        return self._parse_response(response)

    def _parse_response(self, response) -> SendResult:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        ok = bool(body.get("ok")) and 200 <= response.status_code < 300
        if ok:
            message_id = (body.get("result") or {}).get("message_id")
            return SendResult(ok=True, message_id=str(message_id) if message_id is not None else None)

        error = body.get("description") if isinstance(body.get("description"), str) else None
        retry_after = (body.get("parameters") or {}).get("retry_after")
        if error is None:
            error = f"http_{response.status_code}"
        if retry_after:
            error = f"{error} (retry after {retry_after}s)"
        return SendResult(ok=False, error=self._sanitize(error))

    def _sanitize(self, text: str) -> str:
        return text.replace(self._bot_token, self.masked_token)
