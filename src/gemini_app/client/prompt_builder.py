"""Request construction for generateContent calls"""

from collections.abc import Mapping, Sequence
from typing import Any, Unpack

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..constants import JSON_MIME_TYPE
from ..core.types import GenerationOptions, Schema, TextPart, Turn
from ..exceptions import ValidationError

_OPTION_NAMES = frozenset(GenerationOptions.__annotations__)


def coerce_schema(schema: Schema | Mapping[str, Any] | None) -> Schema | None:
    """Validate a caller schema, accepting either a Schema or a plain dict."""
    if schema is None or isinstance(schema, Schema):
        return schema
    if not isinstance(schema, Mapping):
        raise ValidationError(
            f"schema must be a Schema or a dict, got {type(schema).__name__}"
        )
    try:
        return Schema.model_validate(dict(schema))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid response schema: {e}") from e


def check_options(options: Mapping[str, Any]) -> None:
    unknown = set(options) - _OPTION_NAMES
    if unknown:
        raise ValidationError(
            f"Unknown generation option(s): {', '.join(sorted(unknown))}"
        )


class PromptBuilder:
    """Builds generateContent request bodies"""

    def build_request(
        self,
        contents: str | Turn | Sequence[Turn],
        schema: Schema | Mapping[str, Any] | None = None,
        system_instruction: str | None = None,
        **options: Unpack[GenerationOptions],
    ) -> dict[str, Any]:
        """Build a request from a prompt string, one turn, or a full history.

        When a schema is given the response MIME type defaults to JSON unless
        the caller sets `response_mime_type` explicitly.
        """
        check_options(options)
        schema = coerce_schema(schema)

        if isinstance(contents, str):
            turns: Sequence[Turn] = [Turn.user(TextPart(contents))]
        elif isinstance(contents, Turn):
            turns = [contents]
        else:
            turns = list(contents)
        if not turns:
            raise ValidationError("A request needs at least one turn")

        request: dict[str, Any] = {"contents": [turn.to_api() for turn in turns]}

        generation_config = {
            to_camel(name): value for name, value in options.items() if value is not None
        }
        if schema is not None:
            generation_config["responseSchema"] = schema.to_api()
            generation_config.setdefault("responseMimeType", JSON_MIME_TYPE)
        if generation_config:
            request["generationConfig"] = generation_config

        if system_instruction:
            request["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        return request


_default_builder = PromptBuilder()


def build_request(
    contents: str | Turn | Sequence[Turn],
    schema: Schema | Mapping[str, Any] | None = None,
    system_instruction: str | None = None,
    **options: Unpack[GenerationOptions],
) -> dict[str, Any]:
    return _default_builder.build_request(contents, schema, system_instruction, **options)
