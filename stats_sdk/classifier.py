"""
Maps telemetry send outcomes to log severity and operator hints.
"""
import logging
from dataclasses import dataclass

from .dispatcher import SendResult

ACCEPTED_STATUS = 204
TRUNCATION_MARKER = '... (truncated)'


@dataclass(frozen=True)
class Classification:
    level: int
    message: str

    @property
    def accepted(self) -> bool:
        return self.level == logging.INFO


def _hint(status: int):
    if status in (401, 403):
        return logging.ERROR, "check bearerToken (unauthorized/forbidden)."
    if status == 400:
        return logging.WARNING, "check endpoint (/api/v1/) and vanityUrl format."
    if status == 429:
        return logging.WARNING, "rate limited; consider increasing interval."
    if status >= 500:
        return logging.WARNING, "server error; try again later."
    return logging.WARNING, None


def describe_response(result: SendResult) -> str:
    """Response body for display, with a marker when it was cut short."""
    body = result.response_body
    if not body or not body.strip():
        return ''
    return body + TRUNCATION_MARKER if result.truncated else body


def classify(result: SendResult, endpoint: str) -> Classification:
    """
    Classify a send result.

    Args:
        result (SendResult): Outcome of the POST
        endpoint (str): Telemetry endpoint the payload was sent to

    Returns:
        Classification: Log level and message
    """
    status = result.status_code
    if status == ACCEPTED_STATUS:
        return Classification(logging.INFO, "Telemetry accepted (204 No Content)")

    message = f"Telemetry rejected with HTTP {status} (endpoint={endpoint})"
    body = describe_response(result)
    if body:
        message += f": {body}"

    level, hint = _hint(status)
    if hint:
        message += f" | Hint: {hint}"
    return Classification(level, message)


def log_classification(logger: logging.Logger, classification: Classification) -> None:
    logger.log(classification.level, "%s", classification.message)
