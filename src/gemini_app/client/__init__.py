"""Supporting components for the Gemini API client

The main entry point is `gemini_app.GeminiClient`; this package holds the
pieces it is assembled from.
"""

from .configuration import ClientConfiguration
from .error_handler import api_error_from_response, parse_error_body, raise_for_response
from .file_upload_manager import FileUploadManager, UploadSession, normalize_file_name
from .part_resolver import PartResolver
from .prompt_builder import PromptBuilder, build_request, coerce_schema
from .transport import RetryTransport, is_retryable_status

__all__ = [  # noqa: RUF022
    # Configuration
    "ClientConfiguration",
    # Transport
    "RetryTransport",
    "is_retryable_status",
    # Uploads
    "FileUploadManager",
    "UploadSession",
    "normalize_file_name",
    # Content
    "PartResolver",
    "PromptBuilder",
    "build_request",
    "coerce_schema",
    # Errors
    "api_error_from_response",
    "parse_error_body",
    "raise_for_response",
]
