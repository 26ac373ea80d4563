"""Exceptions raised by the Gemini App client."""

from typing import Any


class GeminiAppError(Exception):
    """Base exception for Gemini App errors."""


class ValidationError(GeminiAppError):
    """Raised when caller input is insufficient or invalid.

    Always raised before any network call is made.
    """


class MissingKeyError(ValidationError):
    """Raised when no API key is configured."""


class APIError(GeminiAppError):
    """Raised when the remote service rejects or fails a request.

    Attributes:
        status_code: HTTP status of the failing call, or 0 when no response
            was received (connection failure, timeout).
        response: Parsed JSON error body when available, else the raw text.
    """

    def __init__(
        self, message: str, status_code: int = 0, response: Any | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ResponseContentError(APIError):
    """Raised when a generation response is blocked, empty or malformed."""


class SessionBusyError(GeminiAppError):
    """Raised when a chat session is called while a call is still in flight."""
