from typing import Literal

from pydantic import BaseModel, ConfigDict

Role = Literal["system", "user", "assistant"]


class TranscriptMessage(BaseModel):
    role: Role
    content: str

    model_config = ConfigDict(frozen=True)


def dump_transcript(history: list[TranscriptMessage]) -> list[dict]:
    """Serialize history to the stored `[{role, content}, ...]` form."""
    return [message.model_dump() for message in history]


def load_transcript(raw: object) -> list[TranscriptMessage]:
    """Parse stored history. Anything that is not a list is treated as empty."""
    if not isinstance(raw, list):
        return []
    return [TranscriptMessage.model_validate(item) for item in raw]
