from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Union

from intake_bot.schemas.transcript import TranscriptMessage


@dataclass(frozen=True)
class AskUser:
    question: str


@dataclass(frozen=True)
class SubmitPayload:
    candidate: Any


@dataclass(frozen=True)
class FreeText:
    text: str


DialogueDecision = Union[AskUser, SubmitPayload, FreeText]


class DialoguePolicy(ABC):
    """Decides the next step of a conversation from its transcript."""

    @abstractmethod
    def decide(self, transcript: List[TranscriptMessage]) -> DialogueDecision:
        """Return exactly one decision for the transcript. Must not raise for remote failures."""
        pass
