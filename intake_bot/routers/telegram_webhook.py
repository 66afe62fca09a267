import hmac
import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError

from intake_bot.config import settings
from intake_bot.dependencies import get_conversation_store, get_orchestrator, get_telegram_service
from intake_bot.logging_config import get_logger
from intake_bot.schemas.telegram import TelegramUpdate, TelegramWebhookResponse
from intake_bot.services.channel_service import InboundMessage, handle_inbound
from intake_bot.services.conversation_store import ConversationStore
from intake_bot.services.telegram_service import TelegramService
from intake_bot.services.turn_orchestrator import TurnOrchestrator

logger = get_logger("telegram_webhook")

router = APIRouter()


async def parse_telegram_update(request: Request) -> Optional[dict]:
    """
    Parse Telegram update with tolerant decoding to avoid utf-8 crashes.
    Returns dict or None.
    """
    try:
        return await request.json()
    except ValueError as e:
        logger.warning(f"Standard request.json() failed: {e}, fallback decoding")

    raw = await request.body()
    for enc in ("utf-8", "latin-1"):
        try:
            return json.loads(raw.decode(enc, errors="replace"))
        except ValueError:
            continue

    logger.error("Failed to decode Telegram webhook payload after fallbacks")
    return None


def _check_secret(header_value: Optional[str]) -> None:
    secret = settings.telegram_webhook_secret
    if not secret:
        return
    if not header_value or not hmac.compare_digest(header_value, secret):
        raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/telegram/webhook", response_model=TelegramWebhookResponse)
async def handle_telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None, alias="X-Telegram-Bot-Api-Secret-Token"),
    store: ConversationStore = Depends(get_conversation_store),
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
    telegram: TelegramService = Depends(get_telegram_service),
):
    """
    Handle a Telegram bot update:
    - text message from a user -> one conversation turn, reply sent back to the chat
    - anything else -> acknowledged and ignored
    """
    _check_secret(x_telegram_bot_api_secret_token)

    body = await parse_telegram_update(request)
    if not isinstance(body, dict):
        return TelegramWebhookResponse(ok=True, status="ignored")

    try:
        update = TelegramUpdate(**body)
    except ValidationError as e:
        logger.warning("Malformed Telegram update", extra={"context": {"error": str(e)[:500]}})
        return TelegramWebhookResponse(ok=True, status="ignored")

    message = update.message
    if not message or not message.text:
        return TelegramWebhookResponse(ok=True, status="ignored")
    if message.from_user and message.from_user.is_bot:
        return TelegramWebhookResponse(ok=True, status="ignored")

    chat_id = str(message.chat.id)
    logger.info(f"Telegram message received: chat_id={chat_id}, text={message.text[:50]}")

    result = handle_inbound(
        InboundMessage(sender_id=chat_id, text=message.text, channel="chat"),
        store=store,
        orchestrator=orchestrator,
        send_reply=telegram.send_message,
    )
    return TelegramWebhookResponse(ok=result.status != "failed", status=result.status)
