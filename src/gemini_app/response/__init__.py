"""
Response interpretation for the Gemini App client

Validates generateContent responses and extracts text or structured data
from them.
"""

from .processor import (
    ResponseProcessor,
    extract_usage,
    format_response,
    interpret,
    model_turn,
)
from .types import GenerationResult, StructuredResult, TextResult

__all__ = [  # noqa: RUF022
    # Main processor
    "ResponseProcessor",
    "interpret",
    "format_response",
    "model_turn",
    "extract_usage",
    # Result types
    "GenerationResult",
    "TextResult",
    "StructuredResult",
]
