"""One conversation turn: user text in, reply text and new history out.

The turn walks START -> POLICY_EVALUATED -> {ASKING, SUBMITTING, RELAYING} -> DONE.
History is reset only after the submission gateway accepts a payload. On
gateway failure the history is kept so the user can retry the submission.
"""

from dataclasses import dataclass
from typing import List, Optional

from intake_bot.logging_config import get_logger
from intake_bot.schemas.transcript import TranscriptMessage
from intake_bot.services.alert_service import alert_error
from intake_bot.services.llm.base import AskUser, DialogueDecision, DialoguePolicy, FreeText, SubmitPayload
from intake_bot.services.payload_schema import PayloadSchema, validate_payload
from intake_bot.services.reply_format import clamp, format_for_channel, short_error
from intake_bot.services.state_machine import TurnState, evaluate_policy, finish, transition
from intake_bot.services.submission_service import SubmissionGateway

logger = get_logger("turn_orchestrator")

FALLBACK_REPLY = "I did not get that. What is the main detail I should know?"
SUBMITTED_REPLY = "Thanks, your details have been submitted."


@dataclass
class TurnOutcome:
    reply_text: str
    history: List[TranscriptMessage]
    state: TurnState
    submitted: bool = False
    gateway_result: Optional[dict] = None


class TurnOrchestrator:
    def __init__(
        self,
        policy: DialoguePolicy,
        schema: PayloadSchema,
        gateway: SubmissionGateway,
        completion_message: Optional[str] = None,
    ):
        self.policy = policy
        self.schema = schema
        self.gateway = gateway
        self.completion_message = completion_message

    def _decide(self, transcript: List[TranscriptMessage]) -> DialogueDecision:
        try:
            return self.policy.decide(transcript)
        except Exception as e:
            logger.warning(f"Policy engine failed: {e}", exc_info=True)
            return FreeText(text=f"Policy engine error: {e}")

    def run_turn(self, text: str, history: List[TranscriptMessage]) -> TurnOutcome:
        state = TurnState.START
        transcript = list(history)
        transcript.append(TranscriptMessage(role="user", content=text))

        decision = self._decide(transcript)
        state = evaluate_policy(state)

        if isinstance(decision, AskUser):
            state = transition(state, TurnState.ASKING)
            reply = clamp(decision.question) if decision.question and decision.question.strip() else FALLBACK_REPLY
            transcript.append(TranscriptMessage(role="assistant", content=reply))
            return TurnOutcome(reply_text=reply, history=transcript, state=finish(state))

        if isinstance(decision, SubmitPayload):
            state = transition(state, TurnState.SUBMITTING)
            return self._submit(decision.candidate, transcript, state)

        state = transition(state, TurnState.RELAYING)
        reply = clamp(decision.text) if decision.text and decision.text.strip() else FALLBACK_REPLY
        transcript.append(TranscriptMessage(role="assistant", content=reply))
        return TurnOutcome(reply_text=reply, history=transcript, state=finish(state))

    def _submit(self, candidate, transcript: List[TranscriptMessage], state: TurnState) -> TurnOutcome:
        validation = validate_payload(candidate, self.schema)
        if not validation.ok:
            logger.info(
                "Payload rejected by validator",
                extra={"context": {"schema": self.schema.name, "error": validation.error}},
            )
            reply = clamp(validation.error.strip())
            transcript.append(TranscriptMessage(role="assistant", content=reply))
            return TurnOutcome(reply_text=reply, history=transcript, state=finish(state))

        submission = self.gateway.submit(validation.value)
        if not submission.ok:
            logger.error(
                "Submission gateway failed",
                extra={"context": {"error": submission.error, "error_code": submission.error_code}},
            )
            alert_error("Submission gateway failed", {"error": submission.error, "code": submission.error_code})
            reply = short_error(submission.error or "submission failed")
            transcript.append(TranscriptMessage(role="assistant", content=reply))
            return TurnOutcome(reply_text=reply, history=transcript, state=finish(state))

        result = submission.value or {}
        if self.completion_message:
            reply = clamp(self.completion_message)
        else:
            value = result["value"] if "value" in result else result
            reply = format_for_channel(value) if value not in (None, "") else SUBMITTED_REPLY
        logger.info("Payload submitted", extra={"context": {"schema": self.schema.name}})
        return TurnOutcome(
            reply_text=reply,
            history=[],
            state=finish(state),
            submitted=True,
            gateway_result=result,
        )
