"""Main Gemini API client for prompts, chats and file management"""

from collections.abc import Callable, Iterable, Mapping, Sequence
import logging
import time
from types import TracebackType
from typing import Any, Self, Unpack

import httpx

from .client.configuration import ClientConfiguration
from .client.error_handler import parse_json_body, raise_for_response
from .client.file_upload_manager import FileUploadManager
from .client.part_resolver import MimeTypes, PartResolver, PartRole
from .client.prompt_builder import PromptBuilder, check_options, coerce_schema
from .client.transport import RetryTransport
from .config import GeminiConfig, resolve_settings
from .constants import DEFAULT_DELETE_ALL_LIMIT, DEFAULT_PAGE_SIZE
from .conversation import ChatSession
from .core.sources import DocumentId, RemoteUrl
from .core.types import (
    BulkDeleteResult,
    DeleteResult,
    FileList,
    GenerationOptions,
    Part,
    Schema,
    TextPart,
    Turn,
    UploadedFile,
)
from .exceptions import ValidationError
from .hosts import DocumentStore
from .response.processor import ResponseProcessor
from .response.types import GenerationResult
from .telemetry import TelemetryContext, TelemetryContextProtocol

log = logging.getLogger(__name__)


class GeminiClient:
    """A stateless Gemini client using ambient configuration with local overrides.

    Every prompt method is a one-shot, single-turn exchange; use
    `start_chat` for a conversation that remembers earlier turns.
    """

    def __init__(
        self,
        *,
        document_store: DocumentStore | None = None,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        telemetry_context: TelemetryContextProtocol | None = None,
        **config_overrides: Unpack[GeminiConfig],
    ):
        """Creates a client from the ambient configuration plus overrides.

        Examples:
            client = GeminiClient()  # Uses ambient/env config
            client = GeminiClient(model="gemini-2.5-pro")  # Overrides just the model

        Raises:
            MissingKeyError: If no API key can be resolved.
        """
        self.config = ClientConfiguration.from_settings(resolve_settings(**config_overrides))
        self.config.validate()

        self.tele = telemetry_context or TelemetryContext()

        # Core components
        self.transport = RetryTransport(
            max_attempts=self.config.max_attempts,
            base_delay=self.config.retry_base_delay,
            timeout=self.config.timeout,
            http_client=http_client,
            sleep=sleep,
            telemetry_context=self.tele,
        )
        self.uploads = FileUploadManager(
            self.transport, self.config, sleep=sleep, telemetry_context=self.tele
        )
        self.resolver = PartResolver(self.uploads, self.transport, document_store)
        self.prompt_builder = PromptBuilder()
        self.response_processor = ResponseProcessor()

        log.debug("GeminiClient initialized with model '%s'.", self.config.model)

    # --- Generation ---

    def generate(
        self,
        contents: str | Turn | Sequence[Turn],
        schema: Schema | Mapping[str, Any] | None = None,
        system_instruction: str | None = None,
        model: str | None = None,
        **options: Unpack[GenerationOptions],
    ) -> GenerationResult:
        """Send one generateContent call and interpret the reply."""
        check_options(options)
        resolved_schema = coerce_schema(schema)
        request = self.prompt_builder.build_request(
            contents, resolved_schema, system_instruction, **options
        )
        model_name = (model or self.config.model).removeprefix("models/")

        with self.tele("client.generate", model=model_name):
            log.debug(
                "Calling %s with %d turn(s); structured=%s",
                model_name,
                len(request["contents"]),
                resolved_schema is not None,
            )
            response = self.transport.execute(
                "POST",
                f"{self.config.base_url}/models/{model_name}:generateContent",
                params={"key": self.config.api_key},
                json=request,
            )
            raise_for_response(response, f"generateContent on {model_name}")
            body = parse_json_body(response, "generateContent")
            result = self.response_processor.interpret(body, resolved_schema)
            self.tele.metric("total_tokens", result.usage.get("total_tokens", 0))
            return result

    def prompt(
        self,
        text: str,
        schema: Schema | Mapping[str, Any] | None = None,
        model: str | None = None,
        **options: Unpack[GenerationOptions],
    ) -> Any:
        """Send a single text prompt.

        Returns:
            The response text, or the parsed JSON value when a schema is given.
        """
        return self.generate(text, schema=schema, model=model, **options).value

    def prompt_with_images(
        self,
        text: str,
        images: Any,
        mime_types: MimeTypes = None,
        schema: Schema | Mapping[str, Any] | None = None,
        model: str | None = None,
        **options: Unpack[GenerationOptions],
    ) -> Any:
        parts = self.resolve_parts(images, "image", mime_types)
        turn = Turn.user(TextPart(text), *parts)
        return self.generate(turn, schema=schema, model=model, **options).value

    def prompt_with_files(
        self,
        text: str,
        files: Any,
        mime_types: MimeTypes = None,
        schema: Schema | Mapping[str, Any] | None = None,
        model: str | None = None,
        **options: Unpack[GenerationOptions],
    ) -> Any:
        parts = self.resolve_parts(files, "file", mime_types)
        turn = Turn.user(TextPart(text), *parts)
        return self.generate(turn, schema=schema, model=model, **options).value

    def start_chat(
        self,
        system_instruction: str | None = None,
        history: Iterable[Turn | Mapping[str, Any]] | None = None,
        model: str | None = None,
    ) -> ChatSession:
        return ChatSession(
            self, system_instruction=system_instruction, history=history, model=model
        )

    def resolve_parts(
        self, value: Any, role: PartRole = "file", mime_types: MimeTypes = None
    ) -> list[Part]:
        """Resolve images or files into content parts, uploading where needed."""
        return self.resolver.resolve_all(value, role, mime_types)

    # --- File management ---

    def upload_file(
        self, data: bytes, mime_type: str, display_name: str | None = None
    ) -> UploadedFile:
        return self.uploads.upload_bytes(data, mime_type, display_name)

    def upload_reference(
        self,
        url_or_id: str | RemoteUrl | DocumentId,
        mime_type: str | None = None,
        display_name: str | None = None,
    ) -> UploadedFile:
        """Fetch a URL or document-store entry and upload it."""
        source = self.resolver.classify(url_or_id, mime_type)
        if not isinstance(source, RemoteUrl | DocumentId):
            raise ValidationError(
                f"upload_reference expects a URL or document id, got {type(source).__name__}"
            )
        return self.resolver.upload_source(source, display_name)

    def get_file(self, name: str) -> UploadedFile:
        return self.uploads.get_file(name)

    def list_files(
        self, page_size: int = DEFAULT_PAGE_SIZE, page_token: str | None = None
    ) -> FileList:
        return self.uploads.list_files(page_size=page_size, page_token=page_token)

    def delete_file(self, name: str) -> DeleteResult:
        return self.uploads.delete_file(name)

    def delete_files(self, names: Iterable[str]) -> BulkDeleteResult:
        return self.uploads.delete_files(names)

    def delete_all_files(self, max_files: int = DEFAULT_DELETE_ALL_LIMIT) -> BulkDeleteResult:
        return self.uploads.delete_all_files(max_files=max_files)

    # --- Lifecycle ---

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<GeminiClient config={self.config!r}>"


def create_client(
    api_key: str | None = None,
    model: str | None = None,
    **overrides: Any,
) -> GeminiClient:
    """Factory for a GeminiClient.

    Example:
        client = create_client(model="gemini-2.5-pro")
    """
    return GeminiClient(api_key=api_key, model=model, **overrides)
