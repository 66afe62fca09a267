import json
from typing import Any

MAX_REPLY_LENGTH = 800
ELLIPSIS = "..."


def clamp(text: str) -> str:
    """Cap outbound text at MAX_REPLY_LENGTH, marking the cut with an ellipsis."""
    if len(text) > MAX_REPLY_LENGTH:
        return text[: MAX_REPLY_LENGTH - len(ELLIPSIS)] + ELLIPSIS
    return text


def format_for_channel(value: Any) -> str:
    """Render a gateway result as a single short text message."""
    if isinstance(value, str):
        text = value
    else:
        text = json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return clamp(text)


def short_error(message: str) -> str:
    return clamp(f"Error: {message}")
