"""
Unit tests for error body parsing.
"""

import httpx
import pytest

from gemini_app.client.error_handler import (
    api_error_from_response,
    error_message,
    parse_error_body,
    parse_json_body,
    raise_for_response,
)
from gemini_app.exceptions import APIError


@pytest.mark.unit
class TestErrorBodies:
    def test_json_error_message(self):
        response = httpx.Response(400, json={"error": {"code": 400, "message": "Invalid argument"}})

        error = api_error_from_response(response, "Calling model")

        assert str(error) == "Calling model failed with status 400: Invalid argument"
        assert error.status_code == 400
        assert error.response["error"]["code"] == 400

    def test_raw_text_is_truncated(self):
        response = httpx.Response(502, text="<html>" + "x" * 500)

        body = parse_error_body(response)

        assert len(body) == 200
        assert body.startswith("<html>")

    @pytest.mark.parametrize(
        ("body", "expected"),
        [({"error": "quota"}, "quota"), ({}, "no error details"), ("", "no error details"), ("plain", "plain")],
    )
    def test_error_message_fallbacks(self, body, expected):
        assert error_message(body) == expected

    def test_raise_for_response_passes_success(self):
        raise_for_response(httpx.Response(204), "Deleting")

        with pytest.raises(APIError):
            raise_for_response(httpx.Response(409, json={}), "Deleting")

    def test_parse_json_body_rejects_garbage(self):
        with pytest.raises(APIError, match="non-JSON"):
            parse_json_body(httpx.Response(200, text="oops"), "Listing")
        with pytest.raises(APIError, match="unexpected JSON"):
            parse_json_body(httpx.Response(200, json=[1, 2]), "Listing")

