"""Canned Gemini API payloads used across the test suite."""

from typing import Any

import httpx

UPLOAD_SESSION_URL = "https://upload.example.test/resumable/session-1?upload_id=abc"


def generation_body(
    text: str | list[str] = "Hello!",
    finish_reason: str | None = "STOP",
    **extra: Any,
) -> dict[str, Any]:
    texts = [text] if isinstance(text, str) else text
    candidate: dict[str, Any] = {
        "content": {"role": "model", "parts": [{"text": t} for t in texts]},
    }
    if finish_reason is not None:
        candidate["finishReason"] = finish_reason
    candidate.update(extra)
    return {
        "candidates": [candidate],
        "usageMetadata": {
            "promptTokenCount": 12,
            "candidatesTokenCount": 5,
            "totalTokenCount": 17,
        },
    }


def blocked_body(reason: str = "SAFETY", message: str | None = None) -> dict[str, Any]:
    feedback: dict[str, Any] = {"blockReason": reason}
    if message:
        feedback["blockReasonMessage"] = message
    return {"promptFeedback": feedback}


def file_record(
    name: str = "files/abc123",
    state: str = "ACTIVE",
    mime_type: str = "application/pdf",
    display_name: str = "report.pdf",
) -> dict[str, Any]:
    return {
        "name": name,
        "displayName": display_name,
        "mimeType": mime_type,
        "sizeBytes": "2048",
        "createTime": "2025-01-01T00:00:00Z",
        "updateTime": "2025-01-01T00:00:00Z",
        "expirationTime": "2025-01-03T00:00:00Z",
        "sha256Hash": "ZmFrZS1oYXNo",
        "uri": f"https://generativelanguage.googleapis.com/v1beta/{name}",
        "state": state,
    }


def ok(body: dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json=body)


def error(status: int, message: str = "boom") -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


def upload_started(url: str = UPLOAD_SESSION_URL) -> httpx.Response:
    return httpx.Response(200, headers={"X-Goog-Upload-URL": url})


def upload_finalized(**record: Any) -> httpx.Response:
    return httpx.Response(200, json={"file": file_record(**record)})
