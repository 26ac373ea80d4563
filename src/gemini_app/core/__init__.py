"""Core data types and input variants."""

from .sources import DocumentId, LocalPayload, RemoteUrl, Source, UploadedReference, classify
from .types import (
    BulkDeleteResult,
    DeleteResult,
    FileList,
    FileReferencePart,
    FileState,
    GenerationOptions,
    InlineDataPart,
    Part,
    Schema,
    TextPart,
    Turn,
    UploadedFile,
)

__all__ = [  # noqa: RUF022
    # Parts and turns
    "TextPart",
    "InlineDataPart",
    "FileReferencePart",
    "Part",
    "Turn",
    # Files
    "UploadedFile",
    "FileState",
    "FileList",
    "DeleteResult",
    "BulkDeleteResult",
    # Request options
    "Schema",
    "GenerationOptions",
    # Input variants
    "LocalPayload",
    "RemoteUrl",
    "DocumentId",
    "UploadedReference",
    "Source",
    "classify",
]
