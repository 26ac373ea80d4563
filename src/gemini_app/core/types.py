"""Core data types exchanged with the Gemini API.

Content parts and turns are immutable dataclasses that know how to render
themselves into the camelCase wire format. Remote resources (uploaded files)
and caller-supplied schemas are Pydantic models so that API payloads and
user input are validated at the boundary.
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
from enum import Enum
import typing
from typing import Any, Literal, TypedDict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Minimal guard helpers ---


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = TypeError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


def _is_tuple_of(value: object, typ: type | tuple[type, ...]) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, typ) for v in value)


# --- Content Parts ---


@dataclasses.dataclass(frozen=True, slots=True)
class TextPart:
    """A UTF-8 text unit of a prompt."""

    text: str

    def __post_init__(self) -> None:
        _require(condition=isinstance(self.text, str), message="text must be a str")

    def to_api(self) -> dict[str, Any]:
        return {"text": self.text}


@dataclasses.dataclass(frozen=True, slots=True)
class InlineDataPart:
    """Bytes embedded directly in the request body as base64."""

    mime_type: str
    data: bytes

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.mime_type, str) and self.mime_type.strip() != "",
            message="mime_type must be a non-empty str",
        )
        _require(
            condition=isinstance(self.data, bytes | bytearray),
            message="data must be bytes-like",
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "inlineData": {
                "mimeType": self.mime_type,
                "data": base64.b64encode(self.data).decode("ascii"),
            }
        }


@dataclasses.dataclass(frozen=True, slots=True)
class FileReferencePart:
    """Reference to content previously uploaded through the Files API."""

    mime_type: str
    file_uri: str

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.file_uri, str) and self.file_uri != "",
            message="file_uri must be a non-empty str",
        )
        _require(
            condition=isinstance(self.mime_type, str) and self.mime_type != "",
            message="mime_type must be a non-empty str",
        )

    def to_api(self) -> dict[str, Any]:
        return {"fileData": {"mimeType": self.mime_type, "fileUri": self.file_uri}}


Part = TextPart | InlineDataPart | FileReferencePart


def part_from_api(raw: typing.Mapping[str, Any]) -> Part | None:
    """Parse a wire-format part, returning None for kinds this library ignores."""
    if "text" in raw and isinstance(raw["text"], str):
        return TextPart(raw["text"])
    if "inlineData" in raw:
        inline = raw["inlineData"]
        try:
            data = base64.b64decode(inline.get("data", ""), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"inlineData is not valid base64: {e}") from e
        return InlineDataPart(mime_type=inline["mimeType"], data=data)
    if "fileData" in raw:
        file_data = raw["fileData"]
        return FileReferencePart(
            mime_type=file_data["mimeType"], file_uri=file_data["fileUri"]
        )
    return None


# --- Turns ---

Role = Literal["user", "model"]


@dataclasses.dataclass(frozen=True, slots=True)
class Turn:
    """One role-tagged entry of a conversation. Immutable once built."""

    role: Role
    parts: tuple[Part, ...]

    def __post_init__(self) -> None:
        _require(
            condition=self.role in ("user", "model"),
            message=f"role must be 'user' or 'model', got {self.role!r}",
            exc=ValueError,
        )
        _require(
            condition=_is_tuple_of(self.parts, (TextPart, InlineDataPart, FileReferencePart)),
            message="parts must be a tuple of content parts",
            field_name="parts",
        )

    @classmethod
    def user(cls, *parts: Part) -> Turn:
        return cls(role="user", parts=tuple(parts))

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    def to_api(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [p.to_api() for p in self.parts]}

    @classmethod
    def from_api(cls, raw: typing.Mapping[str, Any], default_role: Role = "model") -> Turn:
        parsed = (part_from_api(p) for p in raw.get("parts") or [])
        return cls(
            role=raw.get("role") or default_role,
            parts=tuple(p for p in parsed if p is not None),
        )


# --- Remote files ---


class _ApiModel(BaseModel):
    """Base for models parsed from camelCase API payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class FileState(str, Enum):
    STATE_UNSPECIFIED = "STATE_UNSPECIFIED"
    PROCESSING = "PROCESSING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


class UploadedFile(_ApiModel):
    """File resource owned by the remote service.

    The service decides when it expires; the client only creates, reads,
    lists and deletes these records.
    """

    name: str
    uri: str
    mime_type: str
    display_name: str | None = None
    size_bytes: int | None = None
    create_time: str | None = None
    update_time: str | None = None
    expiration_time: str | None = None
    sha256_hash: str | None = None
    state: FileState = FileState.STATE_UNSPECIFIED

    def as_part(self) -> FileReferencePart:
        return FileReferencePart(mime_type=self.mime_type, file_uri=self.uri)


class FileList(_ApiModel):
    files: list[UploadedFile] = Field(default_factory=list)
    next_page_token: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class DeleteResult:
    name: str
    success: bool = True
    already_deleted: bool = False


@dataclasses.dataclass(slots=True)
class BulkDeleteResult:
    """Per-item outcome of a sequential bulk delete."""

    deleted: list[str] = dataclasses.field(default_factory=list)
    failed: list[tuple[str, str]] = dataclasses.field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)


# --- Request options ---

SchemaType = Literal["object", "array", "string", "number", "integer", "boolean"]


class Schema(BaseModel):
    """Restricted JSON Schema used to constrain and parse responses."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: SchemaType
    description: str | None = None
    properties: dict[str, Schema] | None = None
    items: Schema | None = None
    required: list[str] | None = None
    enum: list[str] | None = None
    nullable: bool | None = None
    format: str | None = None

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GenerationOptions(TypedDict, total=False):
    """Optional sampling and output controls for a generation call."""

    temperature: float
    top_k: int
    top_p: float
    max_output_tokens: int
    response_mime_type: str
    stop_sequences: list[str]
    candidate_count: int
