from intake_bot.services.llm.base import AskUser, DialogueDecision, DialoguePolicy, FreeText, SubmitPayload
from intake_bot.services.llm.decision import translate_response
from intake_bot.services.llm.openai_provider import OpenAIToolPolicy

__all__ = [
    "AskUser",
    "DialogueDecision",
    "DialoguePolicy",
    "FreeText",
    "OpenAIToolPolicy",
    "SubmitPayload",
    "translate_response",
]
