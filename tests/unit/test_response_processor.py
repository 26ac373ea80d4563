"""
Unit tests for response interpretation.
"""

import json
import logging

import pytest

from gemini_app.core.types import Schema, TextPart
from gemini_app.exceptions import ResponseContentError
from gemini_app.response import (
    ResponseProcessor,
    StructuredResult,
    TextResult,
    format_response,
    model_turn,
)
from tests.fixtures.api_responses import blocked_body, generation_body

SCHEMA = Schema(type="object", properties={"colors": {"type": "array", "items": {"type": "string"}}})


@pytest.fixture
def processor():
    return ResponseProcessor()


@pytest.mark.unit
class TestInterpret:
    """Tagged results are chosen by schema presence, never by content"""

    def test_text_passthrough(self, processor):
        result = processor.interpret(generation_body("hello"))

        assert isinstance(result, TextResult)
        assert result.value == "hello"
        assert result.usage == {"prompt_tokens": 12, "output_tokens": 5, "total_tokens": 17}

    def test_json_looking_text_stays_text_without_schema(self, processor):
        result = processor.interpret(generation_body('{"a": 1}'))

        assert isinstance(result, TextResult)
        assert result.value == '{"a": 1}'

    def test_structured_round_trip(self, processor):
        payload = {"colors": ["red", "blue"]}

        result = processor.interpret(generation_body(json.dumps(payload)), SCHEMA)

        assert isinstance(result, StructuredResult)
        assert result.value == payload

    def test_text_parts_are_concatenated(self, processor):
        result = processor.interpret(generation_body(['{"colors": ', '["red"]}']), SCHEMA)

        assert result.value == {"colors": ["red"]}

    def test_unparseable_structured_output(self, processor):
        text = "not json " + "x" * 300

        with pytest.raises(ResponseContentError) as exc_info:
            processor.interpret(generation_body(text), SCHEMA)

        message = str(exc_info.value)
        assert text[:200] in message
        assert text not in message
        assert exc_info.value.status_code == 500

    @pytest.mark.parametrize("schema", [None, SCHEMA])
    def test_block_reason_is_reported(self, processor, schema):
        with pytest.raises(ResponseContentError, match="SAFETY"):
            processor.interpret(blocked_body("SAFETY"), schema)

    def test_block_reason_message_included(self, processor):
        with pytest.raises(ResponseContentError, match="blocked words"):
            processor.interpret(blocked_body("OTHER", "blocked words"))

    def test_no_candidates(self, processor):
        with pytest.raises(ResponseContentError, match="no candidates") as exc_info:
            processor.interpret({"candidates": []})

        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("reason", ["SAFETY", "RECITATION", "OTHER"])
    def test_bad_finish_reason(self, processor, reason):
        body = generation_body("partial", finish_reason=reason, finishMessage="stopped early")

        with pytest.raises(ResponseContentError) as exc_info:
            processor.interpret(body)

        assert reason in str(exc_info.value)
        assert "stopped early" in str(exc_info.value)
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("reason", [None, "STOP", "MAX_TOKENS", "FINISH_REASON_UNSPECIFIED"])
    def test_acceptable_finish_reasons(self, processor, reason):
        assert processor.interpret(generation_body("ok", finish_reason=reason)).value == "ok"

    def test_max_tokens_logs_warning(self, processor, caplog):
        with caplog.at_level(logging.WARNING):
            processor.interpret(generation_body("cut", finish_reason="MAX_TOKENS"))

        assert "truncated" in caplog.text

    def test_errors_carry_the_body(self, processor):
        body = blocked_body()

        with pytest.raises(ResponseContentError) as exc_info:
            processor.interpret(body)

        assert exc_info.value.response == body
        assert exc_info.value.status_code == 400


@pytest.mark.unit
class TestHelpers:
    def test_format_response_unwraps(self):
        assert format_response(generation_body("hello")) == "hello"
        assert format_response(generation_body('{"colors": []}'), SCHEMA) == {"colors": []}

    def test_model_turn_skips_unknown_parts(self):
        body = generation_body("answer")
        body["candidates"][0]["content"]["parts"].insert(0, {"functionCall": {"name": "f"}})

        turn = model_turn(body)

        assert turn.role == "model"
        assert turn.parts == (TextPart("answer"),)

    def test_model_turn_rejects_bad_inline_data(self):
        body = {"candidates": [{"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "!!"}}]}}]}

        with pytest.raises(ResponseContentError, match="Malformed"):
            model_turn(body)
