from sqlalchemy import JSON, Column, DateTime, Text

from intake_bot.database import Base


class ConversationSession(Base):
    __tablename__ = "conversation_sessions"

    conversation_key = Column(Text, primary_key=True)  # chat:<chat_id>, sms:<phone>
    transcript = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), nullable=False)
