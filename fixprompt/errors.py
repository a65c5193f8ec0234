"""Error taxonomy — every failure the service reports to a client.

Each error carries a stable ``kind`` name, the HTTP status it maps to and a
short user-facing message. Raw upstream error bodies and tracebacks never
end up in the message.
"""

from __future__ import annotations

from typing import Any


class FixPromptError(Exception):
    """Base class for user-facing errors."""

    kind = "Internal"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, **self.details}


class InvalidInputError(FixPromptError):
    """Missing, empty or malformed request field."""

    kind = "InvalidInput"
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(FixPromptError):
    kind = "NotFound"
    status_code = 404
    default_message = "Not found"


class UpstreamAuthError(FixPromptError):
    kind = "UpstreamAuthError"
    status_code = 401
    default_message = "Authentication error with the completion provider"


class UpstreamRateLimitedError(FixPromptError):
    kind = "UpstreamRateLimited"
    status_code = 429
    default_message = "Rate limited by the completion provider. Please try again later."


class UpstreamTimeoutError(FixPromptError):
    kind = "UpstreamTimeout"
    status_code = 504
    default_message = "Request timed out. Please try again."


class UpstreamUnavailableError(FixPromptError):
    kind = "UpstreamUnavailable"
    status_code = 503
    default_message = "Network error. Please try again later."


class UpstreamMalformedResponseError(FixPromptError):
    kind = "UpstreamMalformedResponse"
    status_code = 500
    default_message = "Invalid response from the completion provider"


class InternalError(FixPromptError):
    pass
