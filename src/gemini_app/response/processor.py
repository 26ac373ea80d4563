"""Interpretation of generateContent responses

Checks run in a fixed order: prompt-level blocking, presence of candidates,
the first candidate's finish reason, then text extraction and (when a
schema was supplied) JSON parsing.
"""

from collections.abc import Mapping
import json
import logging
from typing import Any

from ..constants import ACCEPTABLE_FINISH_REASONS, ERROR_EXCERPT_LENGTH
from ..core.types import Part, Schema, Turn, part_from_api
from ..exceptions import ResponseContentError
from .types import GenerationResult, StructuredResult, TextResult

log = logging.getLogger(__name__)


def extract_usage(response: Mapping[str, Any]) -> dict[str, int]:
    """Map usageMetadata onto prompt/output/total token counts."""
    usage = response.get("usageMetadata") or {}
    return {
        "prompt_tokens": int(usage.get("promptTokenCount", 0)),
        "output_tokens": int(usage.get("candidatesTokenCount", 0)),
        "total_tokens": int(usage.get("totalTokenCount", 0)),
    }


class ResponseProcessor:
    """Turns raw response bodies into tagged results or content errors"""

    def interpret(
        self, response: Mapping[str, Any], schema: Schema | None = None
    ) -> GenerationResult:
        """Validate a response and extract its answer.

        Raises:
            ResponseContentError: When the prompt was blocked, no candidate
                came back, generation stopped for an unacceptable reason, or
                structured output could not be parsed.
        """
        self._check_prompt_feedback(response)

        candidates = response.get("candidates") or []
        if not candidates:
            raise ResponseContentError(
                "Response contained no candidates",
                status_code=400,
                response=dict(response),
            )

        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")
        if finish_reason is not None and finish_reason not in ACCEPTABLE_FINISH_REASONS:
            message = f"Generation stopped with finish reason {finish_reason}"
            if candidate.get("finishMessage"):
                message += f": {candidate['finishMessage']}"
            raise ResponseContentError(message, status_code=400, response=dict(response))
        if finish_reason == "MAX_TOKENS":
            log.warning("Response was truncated at the output token limit")

        turn = self.model_turn(response)
        text = turn.text
        usage = extract_usage(response)

        if schema is None:
            return TextResult(text=text, finish_reason=finish_reason, usage=usage, turn=turn)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseContentError(
                f"Failed to parse structured response as JSON: {e}. "
                f"Text: {text[:ERROR_EXCERPT_LENGTH]}",
                status_code=500,
                response=dict(response),
            ) from e
        return StructuredResult(
            data=data,
            raw_text=text,
            finish_reason=finish_reason,
            usage=usage,
            turn=turn,
        )

    def _check_prompt_feedback(self, response: Mapping[str, Any]) -> None:
        feedback = response.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason")
        if block_reason:
            message = f"Prompt was blocked: {block_reason}"
            if feedback.get("blockReasonMessage"):
                message += f" ({feedback['blockReasonMessage']})"
            raise ResponseContentError(message, status_code=400, response=dict(response))

    def model_turn(self, response: Mapping[str, Any]) -> Turn:
        """Return the first candidate's content as a model turn."""
        candidates = response.get("candidates") or []
        if not candidates:
            raise ResponseContentError(
                "Response contained no candidates",
                status_code=400,
                response=dict(response),
            )
        content = candidates[0].get("content") or {}
        parts: list[Part] = []
        for raw_part in content.get("parts") or []:
            try:
                part = part_from_api(raw_part)
            except (KeyError, ValueError) as e:
                raise ResponseContentError(
                    f"Malformed content part in response: {e}",
                    status_code=500,
                    response=dict(response),
                ) from e
            if part is None:
                log.debug("Ignoring unsupported response part: %s", sorted(raw_part))
                continue
            parts.append(part)
        return Turn(role="model", parts=tuple(parts))


_default_processor = ResponseProcessor()


def interpret(
    response: Mapping[str, Any], schema: Schema | None = None
) -> GenerationResult:
    return _default_processor.interpret(response, schema)


def format_response(response: Mapping[str, Any], schema: Schema | None = None) -> Any:
    """Interpret a response and unwrap it to a string or the parsed value."""
    return interpret(response, schema).value


def model_turn(response: Mapping[str, Any]) -> Turn:
    return _default_processor.model_turn(response)
