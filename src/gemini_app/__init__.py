"""Gemini App: a Gemini REST client with uploads, retries and chat sessions."""

import importlib.metadata
import logging

from .client.file_upload_manager import UploadSession
from .client.part_resolver import PartResolver
from .client.transport import RetryTransport
from .config import GeminiConfig, GeminiSettings, config_scope
from .conversation import ChatSession, SessionState
from .core.sources import DocumentId, LocalPayload, RemoteUrl, UploadedReference
from .core.types import (
    BulkDeleteResult,
    DeleteResult,
    FileList,
    FileReferencePart,
    FileState,
    GenerationOptions,
    InlineDataPart,
    Schema,
    TextPart,
    Turn,
    UploadedFile,
)
from .exceptions import (
    APIError,
    GeminiAppError,
    MissingKeyError,
    ResponseContentError,
    SessionBusyError,
    ValidationError,
)
from .gemini_client import GeminiClient, create_client
from .hosts import DocumentStore, InMemoryKeyValueStore, KeyValueStore, Scheduler
from .jobs import Job, JobQueue
from .response import StructuredResult, TextResult, format_response
from .telemetry import TelemetryContext, TelemetryReporter

# Version handling
try:
    __version__ = importlib.metadata.version("gemini-app")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Client
    "GeminiClient",
    "create_client",
    "ChatSession",
    "SessionState",
    # Configuration
    "GeminiConfig",
    "GeminiSettings",
    "config_scope",
    # Content
    "TextPart",
    "InlineDataPart",
    "FileReferencePart",
    "Turn",
    "Schema",
    "GenerationOptions",
    # Inputs
    "LocalPayload",
    "RemoteUrl",
    "DocumentId",
    "UploadedReference",
    # Files
    "UploadedFile",
    "UploadSession",
    "FileState",
    "FileList",
    "DeleteResult",
    "BulkDeleteResult",
    # Results
    "TextResult",
    "StructuredResult",
    "format_response",
    # Components
    "RetryTransport",
    "PartResolver",
    # Host services
    "DocumentStore",
    "KeyValueStore",
    "Scheduler",
    "InMemoryKeyValueStore",
    "Job",
    "JobQueue",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "GeminiAppError",
    "ValidationError",
    "MissingKeyError",
    "APIError",
    "ResponseContentError",
    "SessionBusyError",
]
