"""Unit tests for chatwidget.services.normalizer."""

import json

import pytest

from chatwidget.models.schemas import FailureEnvelope, SuccessEnvelope
from chatwidget.services import messages
from chatwidget.services.messages import user_message
from chatwidget.services.normalizer import (
    UpstreamResponse,
    classify,
    normalize,
    outward_status,
    strip_apology,
)

APOLOGY = "I apologize, but I'm having trouble processing your request right now. Please try again."


def _upstream(status, body, content_type="application/json"):
    raw = body if isinstance(body, str) else json.dumps(body)
    return UpstreamResponse(http_status=status, content_type=content_type, raw_body=raw)


@pytest.mark.unit
class TestDocumentedShapes:
    def test_success_response_text(self):
        result = normalize(_upstream(200, {"success": True, "data": {"response": "hello"}}))

        assert result.ok is True
        assert result.status == 200
        assert isinstance(result.payload, SuccessEnvelope)
        assert result.payload.data.response_text == "hello"

    def test_success_falls_back_to_message_then_text(self):
        body = {"success": True, "data": {"response": "  ", "message": "", "text": " from text "}}

        result = normalize(_upstream(200, body))

        assert result.payload.data.response_text == "from text"

    def test_success_carries_sources_and_usage(self):
        body = {
            "success": True,
            "data": {
                "response": "answer",
                "sources": [{"title": "Labour Code", "url": "https://example.com", "page": 4}],
                "usage": {"tokens": 12},
            },
        }

        result = normalize(_upstream(200, body))

        data = result.payload.data
        assert data.sources[0].title == "Labour Code"
        assert data.sources[0].page == "4"
        assert data.usage == {"tokens": 12}

    def test_success_reads_singular_source_key(self):
        body = {"success": True, "data": {"response": "answer", "source": "Giriş"}}

        result = normalize(_upstream(200, body))

        assert [s.title for s in result.payload.data.sources] == ["Giriş"]

    def test_success_without_text_is_a_failure(self):
        result = normalize(_upstream(200, {"success": True, "data": {"usage": {}}}))

        assert result.ok is False
        assert result.payload.code == "API_ERROR"
        assert result.status == 400

    def test_documented_failure(self):
        body = {"success": False, "error": "bad key", "code": "INVALID_API_KEY"}

        result = normalize(_upstream(401, body))

        assert result.ok is False
        assert result.status == 401
        assert result.payload.code == "INVALID_API_KEY"
        assert result.payload.message == "bad key"

    def test_documented_failure_under_200_is_remapped(self):
        result = normalize(_upstream(200, {"success": False, "error": "x"}))

        assert result.status == 400
        assert result.payload.code == "200"
        assert result.payload.message == "x"

    def test_documented_failure_message_fallbacks(self):
        only_message = normalize(_upstream(403, {"success": False, "message": "nope"}))
        nothing = normalize(_upstream(403, {"success": False}))

        assert only_message.payload.message == "nope"
        assert nothing.payload.message == "Unknown error"
        assert nothing.payload.code == "403"


@pytest.mark.unit
class TestErrorShapes:
    def test_nested_error_object(self):
        body = {"error": {"code": "500", "message": "boom"}}

        result = normalize(_upstream(500, body))

        assert result.payload.code == "500"
        assert result.payload.message == "boom"
        assert result.payload.details == {"code": "500", "message": "boom"}

    def test_string_error_defaults_code_to_status(self):
        result = normalize(_upstream(502, {"error": "upstream down"}))

        assert result.payload.code == "502"
        assert result.payload.message == "upstream down"

    def test_string_error_with_top_level_code(self):
        result = normalize(_upstream(429, {"error": "slow down", "code": "RATE_LIMIT_EXCEEDED"}))

        assert result.payload.code == "RATE_LIMIT_EXCEEDED"

    def test_flat_legacy_error_keeps_whole_object(self):
        body = {"code": "500", "message": "server exploded"}

        result = normalize(_upstream(500, body))

        assert isinstance(result.payload, FailureEnvelope)
        assert result.payload.code == "500"
        assert result.payload.message == "server exploded"
        assert result.payload.details == body
        assert result.status == 500

    def test_top_level_code_and_message_win_over_nested(self):
        body = {
            "error": {"code": "500", "message": "inner"},
            "code": "RATE_LIMIT_EXCEEDED",
            "message": "outer",
        }

        result = normalize(_upstream(429, body))

        assert result.payload.code == "RATE_LIMIT_EXCEEDED"
        assert result.payload.message == "outer"
        assert user_message(result.payload.code, result.payload.message) == messages.RATE_LIMITED

    def test_nested_values_fill_missing_top_level(self):
        body = {"error": {"code": "500", "message": "inner"}, "code": "RATE_LIMIT_EXCEEDED"}

        result = normalize(_upstream(429, body))

        assert result.payload.code == "RATE_LIMIT_EXCEEDED"
        assert result.payload.message == "inner"

    def test_numeric_code_is_stringified(self):
        result = normalize(_upstream(500, {"code": 500, "message": "x"}))

        assert result.payload.code == "500"


@pytest.mark.unit
class TestLegacyShapes:
    def test_unknown_object_with_answer_field(self):
        body = {"answer": "forty two", "sources": ["Page 1Giriş"]}

        result = normalize(_upstream(200, body))

        assert result.ok is True
        assert result.payload.data.response_text == "forty two"
        assert result.payload.data.raw == body
        assert result.payload.data.sources[0].page == "Page 1Giriş"

    def test_apology_is_truncated_keeping_prefix(self):
        body = {"content": f"Here is the answer. {APOLOGY}"}

        result = normalize(_upstream(200, body))

        assert result.payload.data.response_text == "Here is the answer."

    def test_apology_only_text_is_a_failure(self):
        result = normalize(_upstream(200, {"content": APOLOGY}))

        assert result.ok is False
        assert result.payload.code == "API_ERROR"

    def test_unknown_object_under_error_status(self):
        result = normalize(_upstream(502, {"content": "gateway"}))

        assert result.ok is False
        assert result.payload.code == "502"
        assert result.payload.message == "gateway"

    def test_empty_object_is_a_failure(self):
        result = normalize(_upstream(200, {}))

        assert result.ok is False
        assert result.status == 400


@pytest.mark.unit
class TestArrayShape:
    def test_apology_entries_are_skipped(self):
        body = [
            {"response": "Sorry, I'm having trouble processing your request"},
            {"response": "real answer", "sources": {"title": "Doc"}},
        ]

        result = normalize(_upstream(200, body))

        assert result.ok is True
        assert result.payload.data.response_text == "real answer"
        assert result.payload.data.sources[0].title == "Doc"

    def test_all_entries_rejected(self):
        body = [{"message": "An error occurred"}, {"text": ""}]

        result = normalize(_upstream(200, body))

        assert result.ok is False
        assert result.payload.code == "API_ERROR"

    def test_string_entries(self):
        result = normalize(_upstream(200, ["first"]))

        assert result.payload.data.response_text == "first"


@pytest.mark.unit
class TestBodyParsing:
    def test_plain_text_error(self):
        result = normalize(_upstream(502, "Bad Gateway", content_type="text/plain"))

        assert result.payload.code == "INVALID_RESPONSE"
        assert result.payload.message == "Bad Gateway"
        assert result.status == 502

    def test_empty_plain_text_uses_status(self):
        result = normalize(_upstream(504, "", content_type="text/html"))

        assert result.payload.message == "HTTP 504"

    def test_empty_plain_text_uses_status_line(self):
        upstream = UpstreamResponse(
            http_status=504, content_type="text/html", raw_body="", reason_phrase="Gateway Timeout"
        )

        assert normalize(upstream).payload.message == "HTTP 504: Gateway Timeout"

    def test_brace_prefixed_body_is_parsed_without_json_content_type(self):
        raw = '  {"success": true, "data": {"response": "hi"}}'

        result = normalize(_upstream(200, raw, content_type="text/plain"))

        assert result.ok is True

    def test_broken_json_is_parse_error(self):
        result = normalize(_upstream(500, '{"success": tr', content_type="application/json"))

        assert result.payload.code == "PARSE_ERROR"
        assert result.payload.message.startswith("Failed to parse response:")
        assert result.status == 500

    def test_deeply_nested_body_is_parse_error(self):
        raw = "[" * 100000 + "]" * 100000

        result = normalize(_upstream(502, raw))

        assert result.ok is False
        assert result.payload.code == "PARSE_ERROR"
        assert result.status == 502

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_standard_constants_are_parse_errors(self, constant):
        raw = '{"success": true, "data": {"response": "hi", "usage": ' + constant + "}}"

        result = normalize(_upstream(200, raw))

        assert result.payload.code == "PARSE_ERROR"
        assert result.status == 400
        json.dumps(result.to_dict(), allow_nan=False)

    def test_bare_json_scalar(self):
        result = normalize(_upstream(500, '"oops"'))

        assert result.payload.code == "500"
        assert result.payload.message == "oops"

    def test_idempotent(self):
        upstream = _upstream(200, [{"text": "a"}, {"text": "b"}])

        first = json.dumps(normalize(upstream).to_dict(), sort_keys=True)
        second = json.dumps(normalize(upstream).to_dict(), sort_keys=True)

        assert first == second


@pytest.mark.unit
class TestHelpers:
    def test_strip_apology_without_marker(self):
        assert strip_apology("plain answer") == "plain answer"

    def test_strip_apology_case_insensitive(self):
        assert strip_apology("Done. i apologize, but i'm HAVING TROUBLE processing your request") == "Done."

    def test_outward_status_passes_errors_through(self):
        failure = classify({"success": False, "error": "x"}, 503)

        assert outward_status(failure, 503) == 503
        assert outward_status(failure, 201) == 400

    def test_success_wire_shape(self):
        result = normalize(_upstream(200, {"success": True, "data": {"response": "hi"}}))

        assert result.to_dict() == {"success": True, "data": {"response": "hi"}}

    def test_failure_wire_shape(self):
        result = normalize(_upstream(401, {"success": False, "error": "bad", "code": "MISSING_AUTH"}))

        assert result.to_dict() == {"success": False, "code": "MISSING_AUTH", "error": "bad"}
