"""Test doubles for the remote service and host collaborators."""

from collections.abc import Callable
import json

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeGeminiService:
    """Routes requests to canned responses and records everything it sees.

    Routes are matched by `(method, path suffix)`; each route holds a queue of
    responses (or exceptions to raise) consumed in order, the last one
    repeating once the queue runs dry.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes: list[tuple[str, str, list[httpx.Response | Exception | Handler]]] = []

    def add(self, method: str, path_suffix: str, *responses: httpx.Response | Exception | Handler) -> None:
        self._routes.append((method, path_suffix, list(responses)))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, suffix, responses in self._routes:
            if request.method == method and request.url.path.endswith(suffix):
                outcome = responses.pop(0) if len(responses) > 1 else responses[0]
                if isinstance(outcome, Exception):
                    raise outcome
                if callable(outcome):
                    return outcome(request)
                return outcome
        return httpx.Response(404, json={"error": {"message": f"No route for {request.url.path}"}})

    def requests_to(self, method: str, path_suffix: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path.endswith(path_suffix)
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


class FakeDocumentStore:
    """Document store holding `{doc_id: (bytes, mime_type)}`."""

    def __init__(self, documents: dict[str, tuple[bytes, str]]):
        self.documents = documents
        self.exported: list[str] = []

    def fetch_bytes(self, doc_id: str) -> tuple[bytes, str]:
        return self.documents[doc_id]

    def export_as_portable_document(self, doc_id: str) -> bytes:
        self.exported.append(doc_id)
        return b"%PDF-1.7 exported " + doc_id.encode()


class FakeScheduler:
    def __init__(self):
        self.registered: list[tuple[str, int]] = []
        self.cancelled: list[str] = []

    def register_recurring(self, handler_name: str, interval_minutes: int) -> None:
        self.registered.append((handler_name, interval_minutes))

    def cancel(self, handler_name: str) -> None:
        self.cancelled.append(handler_name)
