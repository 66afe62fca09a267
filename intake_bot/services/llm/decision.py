"""Translation of model responses into a DialogueDecision.

Handles the Responses API (`output[]` items of type `function_call`) and the
Chat Completions API (`choices[0].message.tool_calls` or the legacy
`function_call`). Arguments arrive either as a JSON string or as an object.
"""

import json
from typing import Any, Optional

from intake_bot.logging_config import get_logger
from intake_bot.services.llm.base import AskUser, DialogueDecision, FreeText, SubmitPayload

logger = get_logger("llm.decision")

ASK_USER_TOOL = "ask_user"
SUBMIT_TOOL = "submit_if_ready"


def _parse_arguments(raw: Any) -> Optional[Any]:
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Unparseable tool arguments", extra={"context": {"arguments": raw[:200]}})
            return None
    return raw


def _iter_tool_calls(data: dict):
    """Yield (name, raw_arguments) for every tool call found in the response."""
    output = data.get("output")
    if isinstance(output, list):
        for item in output:
            if isinstance(item, dict) and item.get("type") == "function_call" and item.get("name"):
                yield item["name"], item.get("arguments")

    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        message = (choices[0] or {}).get("message") or {}
        for call in message.get("tool_calls") or []:
            function = (call or {}).get("function") or {}
            if function.get("name"):
                yield function["name"], function.get("arguments")
        function_call = message.get("function_call")
        if isinstance(function_call, dict) and function_call.get("name"):
            yield function_call["name"], function_call.get("arguments")


def _extract_text(data: dict) -> str:
    output_text = data.get("output_text")
    if isinstance(output_text, str) and output_text.strip():
        return output_text.strip()

    output = data.get("output")
    if isinstance(output, list):
        parts = []
        for item in output:
            if not isinstance(item, dict) or item.get("type") != "message":
                continue
            for part in item.get("content") or []:
                if isinstance(part, dict) and part.get("type") == "output_text" and part.get("text"):
                    parts.append(part["text"])
        if parts:
            return "\n".join(parts).strip()

    choices = data.get("choices")
    if isinstance(choices, list) and choices:
        content = ((choices[0] or {}).get("message") or {}).get("content")
        if isinstance(content, str):
            return content.strip()
    return ""


def translate_response(data: Any) -> DialogueDecision:
    """Collapse a raw model response into one decision.

    When several tool calls are present the first ask_user wins, then the
    first submit_if_ready, then free text.
    """
    if not isinstance(data, dict):
        return FreeText(text="")

    question: Optional[str] = None
    candidate: Any = None
    has_candidate = False

    for name, raw_arguments in _iter_tool_calls(data):
        args = _parse_arguments(raw_arguments)
        if args is None:
            continue
        if name == ASK_USER_TOOL and question is None:
            if isinstance(args, dict) and isinstance(args.get("question"), str) and args["question"].strip():
                question = args["question"]
        elif name == SUBMIT_TOOL and not has_candidate:
            candidate = args
            has_candidate = True

    if question is not None:
        return AskUser(question=question)
    if has_candidate:
        return SubmitPayload(candidate=candidate)
    return FreeText(text=_extract_text(data))
