from unittest.mock import Mock

import pytest

from intake_bot.schemas.transcript import TranscriptMessage
from intake_bot.services.conversation_store import InMemoryConversationStore
from intake_bot.services.llm.base import DialoguePolicy
from intake_bot.services.payload_schema import INSURANCE_SCHEMA
from intake_bot.services.result import Result
from intake_bot.services.submission_service import SubmissionGateway
from intake_bot.services.turn_orchestrator import TurnOrchestrator


@pytest.fixture(autouse=True)
def _no_operator_alerts(monkeypatch):
    monkeypatch.setattr("intake_bot.services.alert_service.ALERT_BOT_TOKEN", None)
    monkeypatch.setattr("intake_bot.services.alert_service.ALERT_CHAT_ID", None)


@pytest.fixture
def policy():
    """Policy engine stub; set `policy.decide.return_value` per test."""
    return Mock(spec=DialoguePolicy)


@pytest.fixture
def gateway():
    gateway = Mock(spec=SubmissionGateway)
    gateway.submit.return_value = Result.success({"ok": True, "value": "https://example.com/quote.pdf"})
    return gateway


@pytest.fixture
def orchestrator(policy, gateway):
    return TurnOrchestrator(policy=policy, schema=INSURANCE_SCHEMA, gateway=gateway)


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
def valid_insurance_payload():
    return {"age": 30, "gender": "male", "smoking": False, "country": " US ", "coverage_btc": 0}


@pytest.fixture
def short_history():
    return [
        TranscriptMessage(role="user", content="I need a quote"),
        TranscriptMessage(role="assistant", content="How old are you?"),
    ]
