"""FastAPI dependency providers wiring settings to services."""

import redis
from fastapi import Depends
from sqlalchemy.orm import Session

from intake_bot.config import settings
from intake_bot.database import get_db
from intake_bot.services.conversation_store import (
    ConversationStore,
    InMemoryConversationStore,
    RedisConversationStore,
    SqlConversationStore,
)
from intake_bot.services.llm import DialoguePolicy, OpenAIToolPolicy
from intake_bot.services.payload_schema import PayloadSchema, get_payload_schema
from intake_bot.services.submission_service import SubmissionGateway
from intake_bot.services.telegram_service import TelegramService
from intake_bot.services.turn_orchestrator import TurnOrchestrator
from intake_bot.services.twilio_service import TwilioService

_memory_store = None
_redis_client = None


def get_schema() -> PayloadSchema:
    return get_payload_schema(settings.payload_schema)


def get_policy(schema: PayloadSchema = Depends(get_schema)) -> DialoguePolicy:
    return OpenAIToolPolicy(
        api_key=settings.openai_api_key,
        system_prompt=settings.system_prompt,
        schema=schema,
        default_model=settings.openai_model,
        temperature=settings.openai_temperature,
        api_style=settings.openai_api_style,
        timeout_seconds=settings.openai_timeout_seconds,
    )


def get_gateway() -> SubmissionGateway:
    return SubmissionGateway(
        url=settings.external_api_url,
        api_key=settings.external_api_key,
        timeout_seconds=settings.external_api_timeout_seconds,
    )


def get_orchestrator(
    policy: DialoguePolicy = Depends(get_policy),
    schema: PayloadSchema = Depends(get_schema),
    gateway: SubmissionGateway = Depends(get_gateway),
) -> TurnOrchestrator:
    return TurnOrchestrator(
        policy=policy,
        schema=schema,
        gateway=gateway,
        completion_message=settings.completion_message,
    )


def _get_redis_client():
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


def get_conversation_store(db: Session = Depends(get_db)) -> ConversationStore:
    global _memory_store
    backend = settings.session_backend
    if backend == "sql":
        return SqlConversationStore(db)
    if backend == "redis":
        return RedisConversationStore(_get_redis_client(), ttl_seconds=settings.session_ttl_seconds)
    if backend == "memory":
        if _memory_store is None:
            _memory_store = InMemoryConversationStore()
        return _memory_store
    raise ValueError(f"Unknown session backend: {backend}")


def get_telegram_service() -> TelegramService:
    return TelegramService(settings.telegram_bot_token)


def get_twilio_service() -> TwilioService:
    return TwilioService(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token or "",
        from_number=settings.twilio_number,
    )
