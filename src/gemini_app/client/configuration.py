"""
Resolved per-client configuration
"""

from dataclasses import dataclass

from ..config import GeminiSettings
from ..exceptions import MissingKeyError


@dataclass(frozen=True)
class ClientConfiguration:
    """Settings frozen at client construction time"""

    api_key: str | None
    model: str
    base_url: str
    upload_base_url: str
    max_attempts: int
    retry_base_delay: float
    timeout: float
    delete_pause: float

    @classmethod
    def from_settings(cls, settings: GeminiSettings) -> "ClientConfiguration":
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url.rstrip("/"),
            upload_base_url=settings.upload_base_url.rstrip("/"),
            max_attempts=settings.max_attempts,
            retry_base_delay=settings.retry_base_delay,
            timeout=settings.timeout,
            delete_pause=settings.delete_pause,
        )

    def validate(self) -> None:
        """Raise MissingKeyError unless an API key is present."""
        if not self.api_key or not self.api_key.strip():
            raise MissingKeyError(
                "No API key configured. Pass api_key=... or set GEMINI_API_KEY."
            )

    def __repr__(self) -> str:
        # Keep the key out of logs and tracebacks
        key_state = "set" if self.api_key else "missing"
        return (
            f"ClientConfiguration(model={self.model!r}, base_url={self.base_url!r}, "
            f"api_key={key_state}, max_attempts={self.max_attempts})"
        )
