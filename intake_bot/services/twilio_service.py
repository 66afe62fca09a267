"""Twilio SMS: request signature check, outbound SMS and message-log history."""

import base64
import hashlib
import hmac
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import List, Mapping, Optional

import httpx

from intake_bot.logging_config import get_logger
from intake_bot.schemas.transcript import TranscriptMessage

logger = get_logger("twilio_service")


def compute_signature(auth_token: str, url: str, params: Mapping[str, str]) -> str:
    """Twilio request signature: HMAC-SHA1 over the URL followed by sorted key/value pairs."""
    base = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), base.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(auth_token: str, url: str, params: Mapping[str, str], header_signature: Optional[str]) -> bool:
    if not header_signature:
        return False
    expected = compute_signature(auth_token, url, params)
    return hmac.compare_digest(expected, header_signature)


def _parse_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.min
    try:
        return parsedate_to_datetime(value).replace(tzinfo=None)
    except (TypeError, ValueError):
        return datetime.min


class TwilioService:
    """Service for the Twilio Messages API."""

    BASE_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}"

    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messages_url = self.BASE_URL.format(sid=account_sid) + "/Messages.json"

    def send_sms(self, to: str, body: str) -> dict:
        """Send an SMS from the configured number."""
        try:
            with httpx.Client(timeout=30.0, auth=(self.account_sid, self.auth_token)) as client:
                response = client.post(
                    self.messages_url,
                    data={"From": self.from_number, "To": to, "Body": body},
                )
                result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Twilio API error: {e}")
            return {"ok": False, "error": str(e)}

        if not response.is_success:
            logger.warning(
                "Twilio send failed",
                extra={"context": {"status": response.status_code, "error": result.get("message")}},
            )
            return {"ok": False, "error": result.get("message"), "status": response.status_code}
        return {"ok": True, "sid": result.get("sid")}

    def fetch_recent_messages(self, user_number: str, limit: int = 10) -> List[TranscriptMessage]:
        """Conversation with one number from the Twilio message log, oldest first.

        Inbound messages become user turns, outbound ones assistant turns.
        Returns an empty history when the log cannot be read.
        """
        try:
            with httpx.Client(timeout=30.0, auth=(self.account_sid, self.auth_token)) as client:
                response = client.get(self.messages_url, params={"PageSize": 20})
        except httpx.HTTPError as e:
            logger.warning(f"Twilio history fetch failed: {e}")
            return []

        if not response.is_success:
            logger.warning(f"Twilio history fetch failed: {response.status_code}")
            return []

        try:
            data = response.json()
        except ValueError:
            return []

        items = data.get("messages") or data.get("sms_messages") or []
        ours = self.from_number
        thread = [
            m
            for m in items
            if (m.get("from") == user_number and m.get("to") == ours)
            or (m.get("from") == ours and m.get("to") == user_number)
        ]
        thread.sort(key=lambda m: _parse_date(m.get("date_created")))

        history = [
            TranscriptMessage(
                role="user" if m.get("from") == user_number else "assistant",
                content=m.get("body") or "",
            )
            for m in thread
        ]
        return history[-limit:] if limit > 0 else []
