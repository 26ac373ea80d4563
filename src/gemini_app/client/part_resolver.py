"""Turns caller-supplied images and files into content parts.

Local bytes are sent inline; remote URLs and document-store entries are
uploaded first and referenced by URI; existing uploads are referenced
directly.
"""

from collections.abc import Sequence
import logging
from typing import Any, Literal

from ..constants import OFFICE_DOCUMENT_MIME_TYPES, PDF_MIME_TYPE
from ..core.sources import (
    DocumentId,
    LocalPayload,
    RemoteUrl,
    Source,
    UploadedReference,
    classify,
    is_sequence_input,
)
from ..core.types import FileReferencePart, InlineDataPart, Part, UploadedFile
from ..exceptions import ValidationError
from ..hosts import DocumentStore
from .error_handler import raise_for_response
from .file_upload_manager import FileUploadManager
from .transport import RetryTransport

log = logging.getLogger(__name__)

PartRole = Literal["image", "file"]
MimeTypes = str | Sequence[str | None] | None


def _mime_type_at(mime_types: MimeTypes, index: int) -> str | None:
    if mime_types is None or isinstance(mime_types, str):
        return mime_types
    return mime_types[index] if index < len(mime_types) else None


class PartResolver:
    """Resolves single values or sequences of values into content parts."""

    def __init__(
        self,
        uploads: FileUploadManager,
        transport: RetryTransport,
        document_store: DocumentStore | None = None,
    ):
        self.uploads = uploads
        self.transport = transport
        self.document_store = document_store

    def classify(self, value: Any, mime_type: str | None = None) -> Source:
        return classify(
            value, mime_type, detect_document_ids=self.document_store is not None
        )

    def resolve(
        self, value: Any, role: PartRole = "file", mime_type: MimeTypes = None
    ) -> Part | list[Part]:
        """Resolve one value to a part, or a sequence to a flat list of parts.

        For sequences, `mime_type` may be one string applied to every element
        or a sequence paired with the elements by position.
        """
        # Classify and check everything before the first network call.
        sources = self._plan(value, mime_type)
        for source in sources:
            self._check(source)
            log.debug("Resolving %s input as %s", role, type(source).__name__)

        parts = [self._resolve_source(source) for source in sources]
        return parts if is_sequence_input(value) else parts[0]

    def _plan(self, value: Any, mime_type: MimeTypes) -> list[Source]:
        if is_sequence_input(value):
            sources: list[Source] = []
            for index, item in enumerate(value):
                sources.extend(self._plan(item, _mime_type_at(mime_type, index)))
            return sources
        if mime_type is not None and not isinstance(mime_type, str):
            raise ValidationError("A single input takes a single mime_type string")
        return [self.classify(value, mime_type)]

    def _check(self, source: Source) -> None:
        match source:
            case RemoteUrl(url=url, mime_type=None):
                raise ValidationError(f"mime_type is required for URL inputs ({url})")
            case DocumentId(doc_id=doc_id) if self.document_store is None:
                raise ValidationError(
                    f"Document '{doc_id}' cannot be fetched: no document store configured"
                )

    def resolve_all(
        self, value: Any, role: PartRole = "file", mime_type: MimeTypes = None
    ) -> list[Part]:
        resolved = self.resolve(value, role, mime_type)
        return resolved if isinstance(resolved, list) else [resolved]

    def _resolve_source(self, source: Source) -> Part:
        match source:
            case LocalPayload(data=data, mime_type=mime_type):
                return InlineDataPart(mime_type=mime_type, data=data)
            case UploadedReference(uri=uri, mime_type=mime_type):
                return FileReferencePart(mime_type=mime_type, file_uri=uri)
            case RemoteUrl() | DocumentId():
                return self.upload_source(source).as_part()
            case _:
                raise ValidationError(f"Unsupported source: {source!r}")

    def upload_source(
        self, source: RemoteUrl | DocumentId, display_name: str | None = None
    ) -> UploadedFile:
        """Fetch a remote source, upload it and wait until it is usable."""
        self._check(source)
        match source:
            case RemoteUrl():
                data, mime_type, default_name = self._fetch_url(source)
            case DocumentId() if self.document_store is not None:
                data, mime_type, default_name = self._fetch_document(source, self.document_store)
            case _:
                raise ValidationError(f"Cannot upload source: {source!r}")

        uploaded = self.uploads.upload_bytes(data, mime_type, display_name or default_name)
        return self.uploads.wait_until_active(uploaded)

    def _fetch_url(self, source: RemoteUrl) -> tuple[bytes, str, str]:
        response = self.transport.execute("GET", source.url)
        raise_for_response(response, f"Fetching {source.display_name}")
        return response.content, source.mime_type or "", source.display_name

    def _fetch_document(
        self, source: DocumentId, store: DocumentStore
    ) -> tuple[bytes, str, str]:
        data, mime_type = store.fetch_bytes(source.doc_id)
        if mime_type in OFFICE_DOCUMENT_MIME_TYPES:
            log.debug("Exporting %s (%s) to PDF", source.doc_id, mime_type)
            data = store.export_as_portable_document(source.doc_id)
            mime_type = PDF_MIME_TYPE
        return data, mime_type, source.doc_id
