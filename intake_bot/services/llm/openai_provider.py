from typing import List, Optional

import httpx

from intake_bot.logging_config import get_logger
from intake_bot.schemas.transcript import TranscriptMessage
from intake_bot.services.llm.base import DialogueDecision, DialoguePolicy, FreeText
from intake_bot.services.llm.decision import ASK_USER_TOOL, SUBMIT_TOOL, translate_response
from intake_bot.services.payload_schema import PayloadSchema

logger = get_logger("llm.openai")

RESPONSES_URL = "https://api.openai.com/v1/responses"
CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"

ASK_USER_DESCRIPTION = "Ask a single short clarification question"
SUBMIT_DESCRIPTION = "Submit final structured payload when all fields are present"


class OpenAIToolPolicy(DialoguePolicy):
    """Dialogue policy backed by OpenAI tool calling."""

    def __init__(
        self,
        api_key: str,
        system_prompt: str,
        schema: PayloadSchema,
        default_model: str = "gpt-4.1-mini",
        temperature: float = 0.2,
        api_style: str = "responses",
        timeout_seconds: float = 60.0,
    ):
        if api_style not in ("responses", "chat"):
            raise ValueError(f"Unknown OpenAI api_style: {api_style}")
        self.api_key = api_key
        self.system_prompt = system_prompt
        self.schema = schema
        self.default_model = default_model
        self.temperature = temperature
        self.api_style = api_style
        self.timeout_seconds = timeout_seconds

    def build_messages(self, transcript: List[TranscriptMessage]) -> List[dict]:
        return [{"role": "system", "content": self.system_prompt}] + [m.model_dump() for m in transcript]

    def _tool_definitions(self) -> List[dict]:
        tools = [
            (
                ASK_USER_TOOL,
                ASK_USER_DESCRIPTION,
                {
                    "type": "object",
                    "properties": {"question": {"type": "string"}},
                    "required": ["question"],
                },
            ),
            (SUBMIT_TOOL, SUBMIT_DESCRIPTION, self.schema.tool_parameters()),
        ]
        if self.api_style == "responses":
            return [
                {"type": "function", "name": name, "description": description, "parameters": parameters}
                for name, description, parameters in tools
            ]
        return [
            {
                "type": "function",
                "function": {"name": name, "description": description, "parameters": parameters},
            }
            for name, description, parameters in tools
        ]

    def build_request(self, transcript: List[TranscriptMessage], model: Optional[str] = None) -> tuple[str, dict]:
        messages = self.build_messages(transcript)
        payload = {
            "model": model or self.default_model,
            "tools": self._tool_definitions(),
            "temperature": self.temperature,
        }
        if self.api_style == "responses":
            payload["input"] = messages
            return RESPONSES_URL, payload
        payload["messages"] = messages
        return CHAT_COMPLETIONS_URL, payload

    def decide(self, transcript: List[TranscriptMessage]) -> DialogueDecision:
        """Ask the model for the next step. Remote failures come back as FreeText."""
        url, payload = self.build_request(transcript)
        logger.debug(f"OpenAI request: model={payload['model']}, messages_count={len(transcript) + 1}")

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.warning(f"OpenAI request failed: {e}")
            return FreeText(text=f"OpenAI request failed: {e}")

        logger.debug(f"OpenAI response status: {response.status_code}")

        if not response.is_success:
            logger.warning(f"OpenAI error: {response.status_code} - {response.text[:500]}")
            return FreeText(text=f"OpenAI error {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"OpenAI returned non-JSON body ({response.status_code})")
            return FreeText(text=f"OpenAI returned a non-JSON response ({response.status_code})")

        decision = translate_response(data)
        logger.debug(f"OpenAI decision: {type(decision).__name__}")
        return decision
