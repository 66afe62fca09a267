from typing import Optional

import httpx

from intake_bot.logging_config import get_logger

logger = get_logger("telegram_service")


class TelegramService:
    """Service for sending messages to Telegram."""

    BASE_URL = "https://api.telegram.org/bot{token}"

    def __init__(self, bot_token: str):
        self.bot_token = bot_token
        self.base_url = self.BASE_URL.format(token=bot_token)

    def _make_request(self, method: str, data: Optional[dict] = None) -> dict:
        """Make request to Telegram API."""
        url = f"{self.base_url}/{method}"
        try:
            with httpx.Client(timeout=30.0) as client:
                response = client.post(url, json=data or {})
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Telegram API error: {e}")
            return {"ok": False, "error": str(e)}

    def send_message(self, chat_id: str, text: str) -> dict:
        """Send a plain-text message to a Telegram chat."""
        data = {"chat_id": chat_id, "text": text}

        result = self._make_request("sendMessage", data)
        if not result.get("ok"):
            logger.warning(
                "Telegram sendMessage failed",
                extra={"context": {"chat_id": chat_id, "error": result.get("description") or result.get("error")}},
            )
        return result
