"""Error handling for Gemini API responses"""

import json
from typing import Any

import httpx

from ..constants import ERROR_EXCERPT_LENGTH
from ..exceptions import APIError


def parse_error_body(response: httpx.Response) -> Any:
    """Return the JSON error body if there is one, else an excerpt of the text."""
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text[:ERROR_EXCERPT_LENGTH]


def error_message(body: Any) -> str:
    """Pick the human-readable message out of a parsed error body."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    if isinstance(body, str) and body:
        return body
    return "no error details"


def api_error_from_response(response: httpx.Response, action: str) -> APIError:
    """Build an APIError describing a failed HTTP exchange."""
    body = parse_error_body(response)
    return APIError(
        f"{action} failed with status {response.status_code}: {error_message(body)}",
        status_code=response.status_code,
        response=body,
    )


def raise_for_response(response: httpx.Response, action: str) -> None:
    """Raise an APIError unless the response is a 2xx."""
    if not response.is_success:
        raise api_error_from_response(response, action)


def parse_json_body(response: httpx.Response, action: str) -> dict[str, Any]:
    """Decode a successful response body, failing with APIError on garbage."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise APIError(
            f"{action} returned a non-JSON body: "
            f"{response.text[:ERROR_EXCERPT_LENGTH]}",
            status_code=response.status_code,
            response=response.text[:ERROR_EXCERPT_LENGTH],
        ) from e
    if not isinstance(body, dict):
        raise APIError(
            f"{action} returned unexpected JSON of type {type(body).__name__}",
            status_code=response.status_code,
            response=body,
        )
    return body
