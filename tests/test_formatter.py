import json

from api_tester.dispatch.models import SimulatedResponse
from api_tester.formatter import format_response


def _response(body, content_type="application/json", **kwargs):
    return SimulatedResponse(status_code=200, status_text="OK", raw_body=body, content_type=content_type, **kwargs)


class TestFormatResponse:
    def test_json_body_is_pretty_printed(self):
        result = format_response(_response('{"message":"ok","data":[1,2]}'))
        assert result.message == "ok"
        assert result.content == json.dumps({"message": "ok", "data": [1, 2]}, indent=4)
        assert result.language == "json"

    def test_non_json_passes_through(self):
        result = format_response(_response("plain <b>text", content_type="text/plain"))
        assert result.content == "plain <b>text"
        assert result.message == "success"

    def test_html_language(self):
        result = format_response(_response("<h1>Hi</h1>", content_type="text/HTML; charset=utf-8"))
        assert result.language == "html"

    def test_empty_message_falls_back(self):
        assert format_response(_response('{"message": ""}')).message == "success"

    def test_non_object_json(self):
        result = format_response(_response("[1, 2]"))
        assert result.message == "success"
        assert result.content == "[\n    1,\n    2\n]"

    def test_structured_message(self):
        assert format_response(_response('{"message": {"code": 1}}')).message == '{"code": 1}'

    def test_unicode_is_not_escaped(self):
        assert "héllo" in format_response(_response('{"message": "h\\u00e9llo"}')).content

    def test_headers_and_cookies_are_json_text(self):
        response = _response(
            "not json",
            headers={"content-type": ["text/plain"]},
            cookies=[{"name": "a", "value": "1"}],
        )
        result = format_response(response)
        assert json.loads(result.headers_json) == {"content-type": ["text/plain"]}
        assert json.loads(result.cookies_json) == [{"name": "a", "value": "1"}]

    def test_dump_uses_wire_names(self):
        data = format_response(_response("{}")).model_dump(by_alias=True)
        assert set(data) == {"headers", "cookies", "content", "language", "message", "status"}
        assert data["status"] == {"code": 200, "text": "OK"}
