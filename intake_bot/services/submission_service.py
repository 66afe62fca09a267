from typing import Optional

import httpx

from intake_bot.logging_config import get_logger
from intake_bot.services.result import Result

logger = get_logger("submission_service")


def _error_message(body: object, fallback: str) -> str:
    if isinstance(body, dict) and body.get("error"):
        error = body["error"]
        if isinstance(error, dict):
            return str(error.get("message") or error)
        return str(error)
    return fallback


class SubmissionGateway:
    """Client for the downstream API that receives validated payloads."""

    def __init__(self, url: str, api_key: Optional[str] = None, timeout_seconds: float = 30.0):
        self.url = url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def submit(self, payload: dict) -> Result[dict]:
        """POST the payload. Every non-success outcome becomes a Result failure with a readable message."""
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(self.url, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Submission request failed: {e}")
            return Result.failure(f"Submission service unreachable: {e}", "gateway_network_error")

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            message = _error_message(body, f"Submission failed with status {response.status_code}")
            logger.error(
                "Submission rejected",
                extra={"context": {"status": response.status_code, "error": message}},
            )
            return Result.failure(message, "gateway_http_error")

        if body is None:
            return Result.failure(f"Non-JSON response ({response.status_code})", "gateway_non_json")

        if isinstance(body, dict) and body.get("ok") is False:
            message = _error_message(body, "Submission was not accepted")
            logger.error("Submission not accepted", extra={"context": {"error": message}})
            return Result.failure(message, "gateway_rejected")

        if not isinstance(body, dict):
            body = {"value": body}
        return Result.success(body)
