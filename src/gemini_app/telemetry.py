"""Telemetry scopes and reporters.

Telemetry is off unless `GEMINI_APP_TELEMETRY=1` (or `DEBUG=1`) is set and at
least one reporter is supplied. When off, every call goes to a shared no-op
context.
"""

from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

log = logging.getLogger(__name__)

_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "gemini_app_scope_stack", default=()
)


def telemetry_enabled() -> bool:
    """Return True when the environment opts into telemetry."""
    return os.getenv("GEMINI_APP_TELEMETRY") == "1" or os.getenv("DEBUG") == "1"


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Stateless stand-in used when telemetry is disabled."""

    def __call__(self, name: str, **metadata: Any) -> Self:
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Times nested scopes and forwards metrics to reporters."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager["_EnabledTelemetryContext"]:
        return self._scope(name, **metadata)

    @contextmanager
    def _scope(self, name: str, **metadata: Any) -> Iterator["_EnabledTelemetryContext"]:
        if not name:
            raise ValueError("Scope name must be a non-empty string")

        stack = _scope_stack_var.get()
        token = _scope_stack_var.set((*stack, name))
        start = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start
            _scope_stack_var.reset(token)
            scope_path = ".".join((*stack, name))
            for reporter in self.reporters:
                try:
                    reporter.record_timing(
                        scope_path, duration, depth=len(stack), **metadata
                    )
                except Exception as e:
                    log.error(
                        "Telemetry reporter '%s' failed: %s",
                        type(reporter).__name__,
                        e,
                        exc_info=True,
                    )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record a metric under the current scope path."""
        scope_path = ".".join((*_scope_stack_var.get(), name))
        for reporter in self.reporters:
            try:
                reporter.record_metric(scope_path, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )


_NO_OP_SINGLETON = _NoOpTelemetryContext()

TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(*reporters: TelemetryReporter) -> TelemetryContextProtocol:  # noqa: N802
    """Return an enabled context, or the shared no-op one when disabled."""
    if reporters and telemetry_enabled():
        return _EnabledTelemetryContext(*reporters)
    return _NO_OP_SINGLETON


class InMemoryReporter:
    """Collects timings and metrics in bounded in-memory buffers."""

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[float]] = {}
        self.metrics: dict[str, deque[Any]] = {}

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings.setdefault(scope, deque(maxlen=self.max_entries)).append(duration)

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics.setdefault(scope, deque(maxlen=self.max_entries)).append(value)

    def get_report(self) -> str:
        lines = ["=== Telemetry Report ==="]
        for scope, durations in sorted(self.timings.items()):
            lines.append(
                f"{scope:<40} | Calls: {len(durations):<4} | "
                f"Total: {sum(durations):.4f}s"
            )
        for scope, values in sorted(self.metrics.items()):
            total = sum(v for v in values if isinstance(v, int | float))
            lines.append(f"{scope:<40} | Count: {len(values):<4} | Total: {total:,.0f}")
        return "\n".join(lines)
