"""Input variants accepted wherever a prompt takes images or files.

Callers hand over whatever they have (bytes, a path, a URL, a document id,
an uploaded file); `classify` maps it onto one closed set of variants so the
resolver can decide explicitly between inlining and uploading.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import dataclasses
import mimetypes
from pathlib import Path
import re
from typing import Any
from urllib.parse import unquote, urlsplit

from ..constants import DEFAULT_DISPLAY_NAME, DOCUMENT_STORE_HOSTS
from ..exceptions import ValidationError
from .types import UploadedFile

# Bare document identifiers: long, URL-safe, no slashes, colons or dots.
_DOCUMENT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{20,}$")

_DOCUMENT_URL_PATTERNS = (
    re.compile(r"/d/([A-Za-z0-9_-]+)"),
    re.compile(r"[?&]id=([A-Za-z0-9_-]+)"),
    re.compile(r"/folders/([A-Za-z0-9_-]+)"),
)


@dataclasses.dataclass(frozen=True, slots=True)
class LocalPayload:
    """Bytes already in memory; always sent inline."""

    data: bytes
    mime_type: str
    name: str | None = None

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> LocalPayload:
        path = Path(path)
        resolved = mime_type or mimetypes.guess_type(path.name)[0]
        if not resolved:
            raise ValidationError(
                f"Cannot determine MIME type for '{path.name}'. Pass mime_type explicitly."
            )
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ValidationError(f"Cannot read file '{path}': {e}") from e
        return cls(data=data, mime_type=resolved, name=path.name)


@dataclasses.dataclass(frozen=True, slots=True)
class RemoteUrl:
    """A public URL whose bytes are fetched and uploaded."""

    url: str
    mime_type: str | None = None

    @property
    def display_name(self) -> str:
        path = urlsplit(self.url).path
        name = unquote(path.rsplit("/", 1)[-1]) if path else ""
        return name or DEFAULT_DISPLAY_NAME


@dataclasses.dataclass(frozen=True, slots=True)
class DocumentId:
    """Opaque identifier of an entry in the host's document store."""

    doc_id: str

    def __post_init__(self) -> None:
        if not self.doc_id:
            raise ValidationError("Document id must be a non-empty string")


@dataclasses.dataclass(frozen=True, slots=True)
class UploadedReference:
    """A file already living on the remote service."""

    uri: str
    mime_type: str

    @classmethod
    def from_file(cls, file: UploadedFile) -> UploadedReference:
        return cls(uri=file.uri, mime_type=file.mime_type)


Source = LocalPayload | RemoteUrl | DocumentId | UploadedReference


def is_document_store_url(value: str) -> bool:
    hostname = urlsplit(value).hostname
    return hostname in DOCUMENT_STORE_HOSTS


def looks_like_document_id(value: str) -> bool:
    return bool(_DOCUMENT_ID_RE.match(value))


def extract_document_id(url: str) -> str | None:
    """Pull the document id out of a document-store URL, if present."""
    for pattern in _DOCUMENT_URL_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def classify(
    value: Any, mime_type: str | None = None, *, detect_document_ids: bool = False
) -> Source:
    """Map a single caller-supplied value onto a source variant.

    Args:
        value: The raw input. Sequences are handled by the resolver, not here.
        mime_type: Caller-declared MIME type, if any.
        detect_document_ids: Treat bare id-looking strings as document ids.
            Only sensible when a document store is available.

    Raises:
        ValidationError: If the value has an unsupported shape or lacks
            information needed to resolve it.
    """
    match value:
        case LocalPayload() | RemoteUrl() | DocumentId() | UploadedReference():
            if isinstance(value, RemoteUrl) and value.mime_type is None and mime_type:
                return RemoteUrl(url=value.url, mime_type=mime_type)
            return value
        case UploadedFile():
            return UploadedReference.from_file(value)
        case Mapping() if "uri" in value and ("mimeType" in value or "mime_type" in value):
            return UploadedReference(
                uri=value["uri"], mime_type=value.get("mimeType") or value["mime_type"]
            )
        case bytes() | bytearray():
            if not mime_type:
                raise ValidationError("mime_type is required for raw bytes input")
            return LocalPayload(data=bytes(value), mime_type=mime_type)
        case Path():
            return LocalPayload.from_path(value, mime_type)
        case str() if "://" in value:
            if is_document_store_url(value):
                doc_id = extract_document_id(value)
                if doc_id is None:
                    raise ValidationError(
                        f"Could not extract a document id from URL '{value}'"
                    )
                return DocumentId(doc_id)
            return RemoteUrl(url=value, mime_type=mime_type)
        case str() if detect_document_ids and looks_like_document_id(value):
            return DocumentId(value)
        case str():
            raise ValidationError(
                f"'{value}' is neither a URL nor a recognised document id. "
                "Wrap document ids in DocumentId(...) or pass a full URL."
            )
        case _:
            raise ValidationError(
                f"Unsupported input type: {type(value).__name__}"
            )


def is_sequence_input(value: Any) -> bool:
    """True for list/tuple inputs that fan out into several parts."""
    return isinstance(value, Sequence) and not isinstance(
        value, str | bytes | bytearray
    )
