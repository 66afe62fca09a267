from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You collect the details needed for a submission through a short chat. "
    "Ask one short question at a time with ask_user. "
    "When every required field is known, call submit_if_ready with the complete payload."
)


class Settings(BaseSettings):
    # Dialogue policy (OpenAI)
    openai_api_key: str = ""
    openai_model: str = "gpt-4.1-mini"
    openai_temperature: float = 0.2
    openai_api_style: str = "responses"  # responses, chat
    openai_timeout_seconds: float = 60.0
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    payload_schema: str = "insurance"  # insurance, support_ticket

    # Downstream submission API
    external_api_url: str = "http://localhost:8000/test/external-api"
    external_api_key: Optional[str] = None
    external_api_timeout_seconds: float = 30.0
    completion_message: Optional[str] = None

    # Telegram channel
    telegram_bot_token: str = ""
    telegram_webhook_secret: Optional[str] = None

    # Twilio SMS channel
    twilio_account_sid: str = ""
    twilio_auth_token: Optional[str] = None
    twilio_number: str = ""
    twilio_history_source: str = "store"  # store, channel
    twilio_history_limit: int = 10

    # Conversation storage
    session_backend: str = "sql"  # sql, redis, memory
    database_url: str = "sqlite:///./intake_bot.db"
    redis_url: str = "redis://localhost:6379/0"
    session_ttl_seconds: Optional[int] = 7 * 24 * 3600

    enable_test_routes: bool = False
    log_level: str = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
