"""
Result containers for interpreted generation responses

A result is tagged by whether the caller asked for structured output, not
by what the text happens to look like.
"""

from dataclasses import dataclass, field
from typing import Any

from ..core.types import Turn


@dataclass(frozen=True)
class TextResult:
    """Free-text answer to a call made without a schema"""

    text: str
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)
    turn: Turn | None = None

    @property
    def value(self) -> str:
        return self.text


@dataclass(frozen=True)
class StructuredResult:
    """Parsed JSON answer to a schema-constrained call"""

    data: Any
    raw_text: str
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)
    turn: Turn | None = None

    @property
    def value(self) -> Any:
        return self.data


GenerationResult = TextResult | StructuredResult
