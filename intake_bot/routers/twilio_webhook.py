from typing import List, Optional
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from intake_bot.config import settings
from intake_bot.dependencies import get_conversation_store, get_orchestrator, get_twilio_service
from intake_bot.logging_config import get_logger
from intake_bot.schemas.transcript import TranscriptMessage
from intake_bot.services.channel_service import InboundMessage, handle_inbound
from intake_bot.services.conversation_store import ConversationStore
from intake_bot.services.turn_orchestrator import TurnOrchestrator
from intake_bot.services.twilio_service import TwilioService, verify_signature

logger = get_logger("twilio_webhook")

router = APIRouter()

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


def _twiml() -> Response:
    return Response(content=EMPTY_TWIML, media_type="application/xml")


def build_channel_history_loader(twilio: TwilioService, inbound_text: str, limit: int):
    """History from the Twilio message log, without the message being handled right now.

    The log is never cleared, so after a successful submission the next turn
    still sees the finished exchange. Only the store-backed history is reset;
    use TWILIO_HISTORY_SOURCE=store when each submission must start clean.
    """

    def _load(sender_id: str) -> List[TranscriptMessage]:
        history = twilio.fetch_recent_messages(sender_id, limit=limit + 1)
        if history and history[-1].role == "user" and history[-1].content.strip() == inbound_text.strip():
            history = history[:-1]
        return history[-limit:] if limit > 0 else []

    return _load


@router.post("/twilio/sms")
async def handle_twilio_sms(
    request: Request,
    x_twilio_signature: Optional[str] = Header(default=None, alias="X-Twilio-Signature"),
    store: ConversationStore = Depends(get_conversation_store),
    orchestrator: TurnOrchestrator = Depends(get_orchestrator),
    twilio: TwilioService = Depends(get_twilio_service),
):
    """Handle an inbound SMS webhook. Replies are sent through the Messages API, not TwiML."""
    raw = (await request.body()).decode("utf-8", errors="replace")
    form = dict(parse_qsl(raw, keep_blank_values=True))

    if settings.twilio_auth_token:
        if not verify_signature(settings.twilio_auth_token, str(request.url), form, x_twilio_signature):
            logger.warning("Twilio signature mismatch", extra={"context": {"url": str(request.url)}})
            raise HTTPException(status_code=403, detail="Forbidden")

    sender = form.get("From")
    if not sender:
        logger.warning("Malformed Twilio webhook: missing From")
        return _twiml()

    text = form.get("Body", "")
    history_loader = None
    if settings.twilio_history_source == "channel":
        history_loader = build_channel_history_loader(twilio, text, settings.twilio_history_limit)

    result = handle_inbound(
        InboundMessage(sender_id=sender, text=text, channel="sms"),
        store=store,
        orchestrator=orchestrator,
        send_reply=twilio.send_sms,
        history_loader=history_loader,
    )
    logger.info("SMS turn handled", extra={"context": {"status": result.status}})
    return _twiml()
