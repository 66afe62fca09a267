from fastapi import FastAPI

from intake_bot.config import settings
from intake_bot.database import Base, engine
from intake_bot.logging_config import get_logger, setup_logging
from intake_bot.models import ConversationSession  # noqa: F401  registers the table on Base
from intake_bot.routers import telegram_webhook, twilio_webhook

setup_logging(settings.log_level)

logger = get_logger("main")

app = FastAPI(
    title="Intake Bot",
    description="Chat and SMS webhook that collects a structured submission through a short dialogue",
    version="0.1.0",
)

app.include_router(telegram_webhook.router)
app.include_router(twilio_webhook.router)

MOCK_SUBMISSION_VALUE = "https://www.google.com/pdf"


@app.on_event("startup")
def create_session_tables() -> None:
    if settings.session_backend != "sql":
        return
    Base.metadata.create_all(bind=engine)
    logger.info("Conversation session table ready")


@app.get("/health")
async def health():
    return {"status": "ok"}


if settings.enable_test_routes:

    @app.post("/test/external-api")
    async def mock_external_api():
        """Stand-in for the downstream submission API during local runs."""
        return {"ok": True, "value": MOCK_SUBMISSION_VALUE}
