"""Configuration for the Gemini App client.

Settings are validated by a Pydantic schema and resolved with a clear
precedence:

1. Explicit keyword arguments passed to the client.
2. Overrides set by `config_scope`.
3. Environment variables (`GEMINI_API_KEY`, `GEMINI_MODEL`, ...).
4. Defaults.
"""

from collections.abc import Generator
from contextlib import contextmanager
import contextvars
from typing import Any, TypedDict

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    API_BASE_URL,
    DEFAULT_MODEL,
    DELETE_PAUSE,
    MAX_ATTEMPTS,
    NETWORK_TIMEOUT,
    RETRY_BASE_DELAY,
    UPLOAD_BASE_URL,
)


class GeminiSettings(BaseSettings):
    """Pydantic settings schema for the client.

    Integrates with environment variables using the GEMINI_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(default=None, description="Gemini API key")
    model: str = Field(default=DEFAULT_MODEL, min_length=1)
    base_url: str = Field(default=API_BASE_URL, min_length=1)
    upload_base_url: str = Field(default=UPLOAD_BASE_URL, min_length=1)
    max_attempts: int = Field(default=MAX_ATTEMPTS, ge=1)
    retry_base_delay: float = Field(default=RETRY_BASE_DELAY, ge=0)
    timeout: float = Field(default=NETWORK_TIMEOUT, gt=0)
    delete_pause: float = Field(default=DELETE_PAUSE, ge=0)


class GeminiConfig(TypedDict, total=False):
    """Keyword overrides accepted by `GeminiClient` and `config_scope`."""

    api_key: str
    model: str
    base_url: str
    upload_base_url: str
    max_attempts: int
    retry_base_delay: float
    timeout: float
    delete_pause: float


# Holds overrides for the current execution context.
_ambient_config_var: contextvars.ContextVar[GeminiConfig] = contextvars.ContextVar(
    "gemini_app_config"
)


def get_ambient_config() -> GeminiConfig:
    """Return the overrides set by the innermost `config_scope`, if any."""
    try:
        return _ambient_config_var.get()
    except LookupError:
        return GeminiConfig()


def resolve_settings(**overrides: Any) -> GeminiSettings:
    """Resolve settings from overrides, the ambient scope and the environment.

    `None` values in `overrides` are ignored so callers can forward optional
    arguments untouched.
    """
    merged: dict[str, Any] = dict(get_ambient_config())
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return GeminiSettings(**merged)


@contextmanager
def config_scope(config: GeminiConfig) -> Generator[None]:
    """Temporarily use different configuration for clients created inside.

    Example:
        with config_scope(GeminiConfig(model="gemini-2.5-pro")):
            client = GeminiClient()
    """
    merged = GeminiConfig(**{**get_ambient_config(), **config})
    token = _ambient_config_var.set(merged)
    try:
        yield
    finally:
        _ambient_config_var.reset(token)
