"""Conversation history storage keyed by conversation key.

History is stored as a JSON list of `{role, content}` records. A missing key
reads as an empty history and saving an empty history removes the record.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from intake_bot.logging_config import get_logger
from intake_bot.models import ConversationSession
from intake_bot.schemas.transcript import TranscriptMessage, dump_transcript, load_transcript

logger = get_logger("conversation_store")


def conversation_key(channel: str, sender_id: str) -> str:
    return f"{channel}:{sender_id}"


def _read_history(key: str, raw: object) -> List[TranscriptMessage]:
    try:
        return load_transcript(raw)
    except ValueError:
        logger.warning("Discarding unreadable stored history", extra={"context": {"key": key}})
        return []


class ConversationStore(ABC):
    @abstractmethod
    def load(self, key: str) -> List[TranscriptMessage]:
        pass

    @abstractmethod
    def save(self, key: str, history: List[TranscriptMessage]) -> None:
        pass

    @abstractmethod
    def clear(self, key: str) -> None:
        pass


class InMemoryConversationStore(ConversationStore):
    def __init__(self):
        self._data: dict[str, list[dict]] = {}

    def load(self, key: str) -> List[TranscriptMessage]:
        return _read_history(key, self._data.get(key))

    def save(self, key: str, history: List[TranscriptMessage]) -> None:
        if not history:
            self.clear(key)
            return
        self._data[key] = dump_transcript(history)

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class SqlConversationStore(ConversationStore):
    def __init__(self, db: Session):
        self.db = db

    def _get(self, key: str) -> Optional[ConversationSession]:
        return self.db.query(ConversationSession).filter(ConversationSession.conversation_key == key).first()

    def load(self, key: str) -> List[TranscriptMessage]:
        row = self._get(key)
        if not row:
            return []
        return _read_history(key, row.transcript)

    def save(self, key: str, history: List[TranscriptMessage]) -> None:
        if not history:
            self.clear(key)
            return

        row = self._get(key)
        now = datetime.now(timezone.utc)
        if row:
            row.transcript = dump_transcript(history)
            row.updated_at = now
        else:
            self.db.add(ConversationSession(conversation_key=key, transcript=dump_transcript(history), updated_at=now))
        self.db.commit()

    def clear(self, key: str) -> None:
        row = self._get(key)
        if row:
            self.db.delete(row)
            self.db.commit()


class RedisConversationStore(ConversationStore):
    def __init__(self, client, prefix: str = "intake_bot:", ttl_seconds: Optional[int] = None):
        self.client = client
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def load(self, key: str) -> List[TranscriptMessage]:
        raw = self.client.get(self._key(key))
        if not raw:
            return []
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable stored history", extra={"context": {"key": key}})
            return []
        return _read_history(key, decoded)

    def save(self, key: str, history: List[TranscriptMessage]) -> None:
        if not history:
            self.clear(key)
            return
        value = json.dumps(dump_transcript(history), ensure_ascii=False)
        if self.ttl_seconds:
            self.client.set(self._key(key), value, ex=self.ttl_seconds)
        else:
            self.client.set(self._key(key), value)

    def clear(self, key: str) -> None:
        self.client.delete(self._key(key))
