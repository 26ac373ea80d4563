"""
File upload and management for the Gemini Files API
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
import logging
import time

from pydantic import ValidationError as PydanticValidationError

from ..constants import (
    DEFAULT_DELETE_ALL_LIMIT,
    DEFAULT_DISPLAY_NAME,
    DEFAULT_PAGE_SIZE,
    FILE_POLL_INTERVAL,
    FILE_PROCESSING_TIMEOUT,
    UPLOAD_COMMAND_HEADER,
    UPLOAD_CONTENT_LENGTH_HEADER,
    UPLOAD_CONTENT_TYPE_HEADER,
    UPLOAD_OFFSET_HEADER,
    UPLOAD_PROTOCOL_HEADER,
    UPLOAD_TIMEOUT,
    UPLOAD_URL_HEADER,
)
from ..core.types import BulkDeleteResult, DeleteResult, FileList, FileState, UploadedFile
from ..exceptions import APIError, GeminiAppError, ValidationError
from ..telemetry import TelemetryContext, TelemetryContextProtocol
from .configuration import ClientConfiguration
from .error_handler import api_error_from_response, parse_json_body, raise_for_response
from .transport import RetryTransport

log = logging.getLogger(__name__)

# Files API caps a single listing page at this many entries.
_MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class UploadSession:
    """An opened resumable upload awaiting its bytes."""

    upload_url: str
    display_name: str
    mime_type: str
    size_bytes: int


def normalize_file_name(name: str) -> str:
    """Return the `files/<id>` resource name for any accepted spelling.

    Accepts `files/abc`, a bare `abc`, or a full file URI.
    """
    if not name or not name.strip():
        raise ValidationError("File name must be a non-empty string")
    file_id = name.strip().rstrip("/").rpartition("files/")[2]
    file_id = file_id.split("?", 1)[0]
    if not file_id:
        raise ValidationError(f"Cannot extract a file id from '{name}'")
    return f"files/{file_id}"


class FileUploadManager:
    """Uploads bytes through the resumable protocol and manages remote files"""

    def __init__(
        self,
        transport: RetryTransport,
        config: ClientConfiguration,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        telemetry_context: TelemetryContextProtocol | None = None,
    ):
        self.transport = transport
        self.config = config
        self._sleep = sleep
        self._clock = clock
        self.tele = telemetry_context or TelemetryContext()

    @property
    def _auth(self) -> dict[str, str]:
        return {"key": self.config.api_key or ""}

    def _file_url(self, name: str) -> str:
        return f"{self.config.base_url}/{normalize_file_name(name)}"

    # --- Upload protocol ---

    def start_session(
        self, mime_type: str, size_bytes: int, display_name: str | None = None
    ) -> UploadSession:
        """Open a resumable upload and return the URL the bytes go to."""
        display_name = display_name or DEFAULT_DISPLAY_NAME
        response = self.transport.execute(
            "POST",
            f"{self.config.upload_base_url}/files",
            params=self._auth,
            headers={
                UPLOAD_PROTOCOL_HEADER: "resumable",
                UPLOAD_COMMAND_HEADER: "start",
                UPLOAD_CONTENT_TYPE_HEADER: mime_type,
                UPLOAD_CONTENT_LENGTH_HEADER: str(size_bytes),
            },
            json={"file": {"displayName": display_name}},
        )
        if not response.is_success:
            raise api_error_from_response(response, "Starting upload")

        upload_url = response.headers.get(UPLOAD_URL_HEADER)
        if not upload_url:
            raise APIError(
                f"Upload start response is missing the {UPLOAD_URL_HEADER} header",
                status_code=response.status_code,
            )
        log.debug("Opened upload session for '%s' (%d bytes)", display_name, size_bytes)
        return UploadSession(
            upload_url=upload_url,
            display_name=display_name,
            mime_type=mime_type,
            size_bytes=size_bytes,
        )

    def finalize(self, session: UploadSession, data: bytes) -> UploadedFile:
        """Push the bytes for an open session and return the created file."""
        response = self.transport.execute(
            "POST",
            session.upload_url,
            headers={
                UPLOAD_COMMAND_HEADER: "upload, finalize",
                UPLOAD_OFFSET_HEADER: "0",
            },
            content=data,
            timeout=UPLOAD_TIMEOUT,
        )
        if not response.is_success:
            raise api_error_from_response(response, f"Uploading '{session.display_name}'")

        body = parse_json_body(response, "Upload finalize")
        try:
            uploaded = UploadedFile.model_validate(body.get("file", body))
        except PydanticValidationError as e:
            raise APIError(
                f"Upload finalize returned an unrecognised file record: {e}",
                status_code=response.status_code,
                response=body,
            ) from e
        log.info("Uploaded '%s' as %s", session.display_name, uploaded.name)
        return uploaded

    def upload_bytes(
        self, data: bytes, mime_type: str, display_name: str | None = None
    ) -> UploadedFile:
        """Upload raw bytes in two steps: open a session, then finalize it."""
        if not isinstance(data, bytes | bytearray) or not data:
            raise ValidationError("Upload data must be non-empty bytes")
        if not mime_type:
            raise ValidationError("mime_type is required for uploads")

        with self.tele("uploads.upload_bytes", mime_type=mime_type):
            session = self.start_session(mime_type, len(data), display_name)
            uploaded = self.finalize(session, bytes(data))
            self.tele.metric("uploaded_bytes", len(data))
            return uploaded

    def wait_until_active(
        self,
        file: UploadedFile,
        timeout: float = FILE_PROCESSING_TIMEOUT,
        poll_interval: float = FILE_POLL_INTERVAL,
    ) -> UploadedFile:
        """Poll a file while the service is still processing it."""
        start_time = self._clock()

        while file.state is FileState.PROCESSING:
            if self._clock() - start_time > timeout:
                raise APIError(f"File processing timeout: {file.display_name or file.name}")
            self._sleep(poll_interval)
            file = self.get_file(file.name)

        if file.state is FileState.FAILED:
            raise APIError(f"File processing failed: {file.display_name or file.name}")
        return file

    # --- File management ---

    def get_file(self, name: str) -> UploadedFile:
        response = self.transport.execute("GET", self._file_url(name), params=self._auth)
        raise_for_response(response, f"Getting file {normalize_file_name(name)}")
        body = parse_json_body(response, "Get file")
        try:
            return UploadedFile.model_validate(body)
        except PydanticValidationError as e:
            raise APIError(
                f"Unrecognised file record: {e}",
                status_code=response.status_code,
                response=body,
            ) from e

    def list_files(
        self, page_size: int = DEFAULT_PAGE_SIZE, page_token: str | None = None
    ) -> FileList:
        """Return one page of the project's uploaded files."""
        if page_size < 1:
            raise ValidationError("page_size must be at least 1")
        params: dict[str, str | int] = {**self._auth, "pageSize": page_size}
        if page_token:
            params["pageToken"] = page_token
        response = self.transport.execute(
            "GET", f"{self.config.base_url}/files", params=params
        )
        raise_for_response(response, "Listing files")
        body = parse_json_body(response, "List files")
        try:
            return FileList.model_validate(body)
        except PydanticValidationError as e:
            raise APIError(
                f"Unrecognised file listing: {e}",
                status_code=response.status_code,
                response=body,
            ) from e

    def delete_file(self, name: str) -> DeleteResult:
        """Delete a file. A file that is already gone counts as deleted."""
        resource = normalize_file_name(name)
        response = self.transport.execute("DELETE", self._file_url(name), params=self._auth)

        if response.is_success:
            log.info("Deleted %s", resource)
            return DeleteResult(name=resource)
        if response.status_code == 404:
            log.info("%s was already deleted", resource)
            return DeleteResult(name=resource, already_deleted=True)
        raise api_error_from_response(response, f"Deleting {resource}")

    def delete_files(self, names: Iterable[str]) -> BulkDeleteResult:
        """Delete files one at a time, collecting failures instead of aborting."""
        result = BulkDeleteResult()
        names = list(names)

        for index, name in enumerate(names):
            if index:
                self._sleep(self.config.delete_pause)
            try:
                self.delete_file(name)
            except GeminiAppError as e:
                log.error("Failed to delete %s: %s", name, e)
                result.failed.append((name, str(e)))
            else:
                result.deleted.append(name)

        log.info(
            "Bulk delete finished: %d deleted, %d failed",
            result.deleted_count,
            len(result.failed),
        )
        return result

    def delete_all_files(self, max_files: int = DEFAULT_DELETE_ALL_LIMIT) -> BulkDeleteResult:
        """Delete up to `max_files` files, skipping those still processing."""
        if max_files < 1:
            raise ValidationError("max_files must be at least 1")

        files: list[UploadedFile] = []
        page_token: str | None = None
        while len(files) < max_files:
            page = self.list_files(
                page_size=min(max_files - len(files), _MAX_PAGE_SIZE),
                page_token=page_token,
            )
            files.extend(page.files)
            page_token = page.next_page_token
            if not page_token or not page.files:
                break
        files = files[:max_files]

        processing = [f.name for f in files if f.state is FileState.PROCESSING]
        for name in processing:
            log.info("Skipping %s: still processing", name)

        result = self.delete_files(
            f.name for f in files if f.state is not FileState.PROCESSING
        )
        result.failed.extend((name, "File is still processing") for name in processing)
        return result
