"""Multi-turn chat sessions layered on the stateless client."""

from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any, Unpack
from uuid import uuid4

from .client.part_resolver import MimeTypes, PartRole
from .core.types import GenerationOptions, Part, Schema, TextPart, Turn
from .exceptions import SessionBusyError, ValidationError

if TYPE_CHECKING:
    from .gemini_client import GeminiClient

log = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


def _coerce_history(history: Iterable[Turn | Mapping[str, Any]] | None) -> tuple[Turn, ...]:
    turns: list[Turn] = []
    for entry in history or ():
        if isinstance(entry, Turn):
            turns.append(entry)
        elif isinstance(entry, Mapping) and entry.get("role") in ("user", "model"):
            try:
                turns.append(Turn.from_api(entry))
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Invalid history entry: {e}") from e
        else:
            raise ValidationError(
                "History entries must be Turn objects or dicts with a 'user' or 'model' role"
            )
    return tuple(turns)


class ChatSession:
    """A conversation whose history is sent with every message.

    Each exchange appends the user turn and the model's reply together, and
    only once the reply has been interpreted successfully, so a failed call
    leaves the history exactly as it was.
    """

    def __init__(
        self,
        client: "GeminiClient",
        system_instruction: str | None = None,
        history: Iterable[Turn | Mapping[str, Any]] | None = None,
        model: str | None = None,
    ):
        self.client = client
        self.system_instruction = system_instruction
        self.model = model
        self.session_id = str(uuid4())
        self.state = SessionState.IDLE
        self._history: tuple[Turn, ...] = _coerce_history(history)

    def send_message(
        self,
        text: str,
        schema: Schema | Mapping[str, Any] | None = None,
        **options: Unpack[GenerationOptions],
    ) -> Any:
        """Send a text message and return the reply (str, or parsed JSON with a schema)."""
        return self._exchange(text, None, "file", None, schema, options)

    def send_message_with_images(
        self,
        text: str,
        images: Any,
        mime_types: MimeTypes = None,
        schema: Schema | Mapping[str, Any] | None = None,
        **options: Unpack[GenerationOptions],
    ) -> Any:
        return self._exchange(text, images, "image", mime_types, schema, options)

    def send_message_with_files(
        self,
        text: str,
        files: Any,
        mime_types: MimeTypes = None,
        schema: Schema | Mapping[str, Any] | None = None,
        **options: Unpack[GenerationOptions],
    ) -> Any:
        return self._exchange(text, files, "file", mime_types, schema, options)

    def _exchange(
        self,
        text: str,
        attachments: Any,
        role: PartRole,
        mime_types: MimeTypes,
        schema: Schema | Mapping[str, Any] | None,
        options: Mapping[str, Any],
    ) -> Any:
        if self.state is SessionState.AWAITING_RESPONSE:
            raise SessionBusyError(
                f"Chat session {self.session_id} is already waiting for a response"
            )

        self.state = SessionState.AWAITING_RESPONSE
        try:
            parts: list[Part] = [TextPart(text)]
            if attachments is not None:
                parts.extend(self.client.resolve_parts(attachments, role, mime_types))
            user_turn = Turn(role="user", parts=tuple(parts))

            result = self.client.generate(
                (*self._history, user_turn),
                schema=schema,
                system_instruction=self.system_instruction,
                model=self.model,
                **options,
            )
            model_turn = result.turn
            if model_turn is None or not model_turn.parts:
                # Model turns in history always carry at least one part
                text = model_turn.text if model_turn is not None else str(result.value)
                model_turn = Turn(role="model", parts=(TextPart(text),))
            self._history = (*self._history, user_turn, model_turn)
            log.debug(
                "Session %s now holds %d turns", self.session_id, len(self._history)
            )
            return result.value
        finally:
            self.state = SessionState.IDLE

    def get_history(self) -> tuple[Turn, ...]:
        return self._history

    def clear_history(self) -> None:
        """Forget all turns; the system instruction is kept."""
        self._history = ()

    def __len__(self) -> int:
        return len(self._history)

    def __repr__(self) -> str:
        return f"<ChatSession id={self.session_id[:8]} turns={len(self._history)}>"


def history_to_api(history: Sequence[Turn]) -> list[dict[str, Any]]:
    """Render a history as wire-format dicts, e.g. for persisting a session."""
    return [turn.to_api() for turn in history]
