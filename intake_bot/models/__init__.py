from intake_bot.models.conversation_session import ConversationSession

__all__ = ["ConversationSession"]
