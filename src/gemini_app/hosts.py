"""Narrow interfaces to services supplied by the host application.

The client never reaches for a global document store, property store or
trigger system; callers inject objects satisfying these protocols.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class DocumentStore(Protocol):
    """Read access to the host's document storage."""

    def fetch_bytes(self, doc_id: str) -> tuple[bytes, str]:
        """Return the raw content and MIME type of a document."""
        ...

    def export_as_portable_document(self, doc_id: str) -> bytes:
        """Return a PDF rendering of a native office document."""
        ...


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable string-to-string storage."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    """Registers named handlers to run on a recurring cadence."""

    def register_recurring(self, handler_name: str, interval_minutes: int) -> None: ...
    def cancel(self, handler_name: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed `KeyValueStore` for tests and single-process use."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"<InMemoryKeyValueStore keys={sorted(self._data)}>"
