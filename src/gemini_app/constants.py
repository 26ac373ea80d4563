"""
Project-wide constants for the Gemini App client
"""

# ==============================================================================
# API and Network Configuration
# ==============================================================================

DEFAULT_MODEL = "gemini-2.5-flash"
API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
UPLOAD_BASE_URL = "https://generativelanguage.googleapis.com/upload/v1beta"

# Retry and timeout settings
MAX_ATTEMPTS = 5
RETRY_BASE_DELAY = 1.0  # seconds, doubled after every failed attempt
NETWORK_TIMEOUT = 30.0  # seconds
UPLOAD_TIMEOUT = 300.0  # seconds, raw byte pushes can be large

# Status codes worth another attempt besides the 5xx range
RETRYABLE_STATUS_CODES = frozenset({429})

# ==============================================================================
# Resumable Upload Protocol
# ==============================================================================

UPLOAD_PROTOCOL_HEADER = "X-Goog-Upload-Protocol"
UPLOAD_COMMAND_HEADER = "X-Goog-Upload-Command"
UPLOAD_OFFSET_HEADER = "X-Goog-Upload-Offset"
UPLOAD_CONTENT_TYPE_HEADER = "X-Goog-Upload-Header-Content-Type"
UPLOAD_CONTENT_LENGTH_HEADER = "X-Goog-Upload-Header-Content-Length"
UPLOAD_URL_HEADER = "X-Goog-Upload-URL"

DEFAULT_DISPLAY_NAME = "uploaded_file"

# ==============================================================================
# File Management
# ==============================================================================

DEFAULT_PAGE_SIZE = 10
DEFAULT_DELETE_ALL_LIMIT = 100
DELETE_PAUSE = 1.0  # seconds between sequential deletes
FILE_PROCESSING_TIMEOUT = 300  # 5 minutes in seconds
FILE_POLL_INTERVAL = 2.0  # seconds

# ==============================================================================
# Content Types
# ==============================================================================

JSON_MIME_TYPE = "application/json"
PDF_MIME_TYPE = "application/pdf"

# Native office documents that must be exported before upload
OFFICE_DOCUMENT_MIME_TYPES = frozenset(
    {
        "application/vnd.google-apps.document",
        "application/vnd.google-apps.spreadsheet",
        "application/vnd.google-apps.presentation",
    }
)

# Hosts whose URLs name a document-store entry rather than a public resource
DOCUMENT_STORE_HOSTS = (
    "docs.google.com",
    "drive.google.com",
    "sheets.google.com",
    "slides.google.com",
    "forms.google.com",
)

# ==============================================================================
# Response Handling
# ==============================================================================

ACCEPTABLE_FINISH_REASONS = frozenset(
    {"STOP", "MAX_TOKENS", "FINISH_REASON_UNSPECIFIED"}
)
ERROR_EXCERPT_LENGTH = 200  # characters of offending text kept in errors
