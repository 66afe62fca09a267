"""Channel-side handling of one inbound message.

Loads history, runs the turn, persists the new history and delivers the
reply. Nothing raised here reaches the webhook transport: unexpected errors
end in a best-effort apology to the sender.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from intake_bot.logging_config import get_logger
from intake_bot.schemas.transcript import TranscriptMessage
from intake_bot.services.alert_service import alert_error
from intake_bot.services.conversation_store import ConversationStore, conversation_key
from intake_bot.services.intent_service import OPT_OUT_REPLY, is_opt_out_message
from intake_bot.services.reply_format import clamp
from intake_bot.services.turn_orchestrator import TurnOrchestrator

logger = get_logger("channel_service")

APOLOGY_REPLY = "Something went wrong. Please try again."

SendReply = Callable[[str, str], object]
HistoryLoader = Callable[[str], List[TranscriptMessage]]


@dataclass
class InboundMessage:
    sender_id: str
    text: str
    channel: str  # chat (telegram), sms


@dataclass
class ChannelResult:
    status: str  # skipped, opted_out, replied, failed
    reply_text: Optional[str] = None
    submitted: bool = False


def _send_apology(message: InboundMessage, send_reply: SendReply) -> None:
    try:
        send_reply(message.sender_id, clamp(APOLOGY_REPLY))
    except Exception as e:
        logger.error(f"Failed to deliver apology: {e}", extra={"context": {"sender_id": message.sender_id}})


def handle_inbound(
    message: InboundMessage,
    store: ConversationStore,
    orchestrator: TurnOrchestrator,
    send_reply: SendReply,
    history_loader: Optional[HistoryLoader] = None,
) -> ChannelResult:
    text = (message.text or "").strip()
    if not text:
        return ChannelResult(status="skipped")

    key = conversation_key(message.channel, message.sender_id)
    try:
        if is_opt_out_message(text):
            send_reply(message.sender_id, OPT_OUT_REPLY)
            logger.info("Opt-out command received", extra={"context": {"channel": message.channel}})
            return ChannelResult(status="opted_out", reply_text=OPT_OUT_REPLY)

        if history_loader is not None:
            history = history_loader(message.sender_id)
        else:
            history = store.load(key)

        outcome = orchestrator.run_turn(text, history)
        store.save(key, outcome.history)

        if outcome.reply_text:
            send_reply(message.sender_id, outcome.reply_text)

        return ChannelResult(status="replied", reply_text=outcome.reply_text, submitted=outcome.submitted)
    except Exception as e:
        logger.error(f"Turn failed: {e}", exc_info=True, extra={"context": {"key": key}})
        alert_error("Turn failed", {"key": key, "error": str(e)})
        _send_apology(message, send_reply)
        return ChannelResult(status="failed")
