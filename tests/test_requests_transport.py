import json

import pytest
import requests

from idea_forge.llm import transport as transport_module
from idea_forge.llm.providers import build_call
from idea_forge.llm.router import LLMRouter
from idea_forge.llm.transport import RequestsTransport, iter_sse_data, redact
from idea_forge.llm.types import GenerationRequest, TransportError


class FakeResponse:
    def __init__(self, status_code=200, body=None, lines=None, text=""):
        self.status_code = status_code
        self._body = body
        self._lines = lines or []
        self.text = text
        self.reason = "Error"
        self.closed = 0
        self.lines_read = 0

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body

    def iter_lines(self):
        for line in self._lines:
            self.lines_read += 1
            yield line

    def close(self):
        self.closed += 1


@pytest.fixture
def fake_post(monkeypatch):
    state = {"responses": [], "calls": []}

    def _post(url, **kwargs):
        state["calls"].append((url, kwargs))
        response = state["responses"].pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    monkeypatch.setattr(transport_module.requests, "post", _post)
    return state


@pytest.fixture
def claude_call(registry):
    request = GenerationRequest(prompt="p", model="claude-3-haiku")
    return build_call(request, registry.resolve("claude-3-haiku"))


def sse(*events):
    lines = []
    for event in events:
        lines.append(b"event: " + event["type"].encode("utf-8"))
        lines.append(b"data: " + json.dumps(event).encode("utf-8"))
        lines.append(b"")
    return lines


def text_delta(text):
    return {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}}


def test_post_returns_envelope_and_sends_headers(fake_post, claude_call):
    fake_post["responses"].append(FakeResponse(body={"content": []}))

    data = RequestsTransport(timeout_seconds=5).post(claude_call)

    url, kwargs = fake_post["calls"][0]
    assert data == {"content": []}
    assert url == "https://api.anthropic.com/v1/messages"
    assert kwargs["headers"]["x-api-key"] == "sk-ant-secret"
    assert kwargs["json"]["stream"] is False
    assert kwargs["timeout"] == 5


def test_non_2xx_status_becomes_transport_error(fake_post, claude_call):
    body = {"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key sk-ant-secret"}}
    response = FakeResponse(status_code=401, body=body)
    fake_post["responses"].append(response)

    with pytest.raises(TransportError) as exc_info:
        RequestsTransport().post(claude_call)

    error = exc_info.value
    assert error.http_status == 401
    assert error.provider == "anthropic"
    assert "invalid x-api-key" in str(error)
    assert "sk-ant-secret" not in str(error)
    assert response.closed == 1


def test_server_error_without_json_uses_body_text(fake_post, claude_call):
    fake_post["responses"].append(FakeResponse(status_code=502, text="Bad Gateway"))
    with pytest.raises(TransportError, match="HTTP 502: Bad Gateway"):
        RequestsTransport().post(claude_call)


def test_network_failure_becomes_transport_error(fake_post, claude_call):
    fake_post["responses"].append(requests.ConnectionError("connection refused"))
    with pytest.raises(TransportError, match="connection refused"):
        RequestsTransport().post(claude_call)


def test_non_json_success_body_is_malformed(fake_post, claude_call):
    fake_post["responses"].append(FakeResponse(body=None, text="<html>"))
    with pytest.raises(TransportError, match="non-JSON"):
        RequestsTransport().post(claude_call)


def test_stream_decodes_sse_events(fake_post, claude_call):
    lines = [b": keep-alive", *sse(text_delta("你好"), {"type": "message_stop"})]
    response = FakeResponse(lines=lines)
    fake_post["responses"].append(response)

    events = list(RequestsTransport().stream(claude_call))

    url, kwargs = fake_post["calls"][0]
    assert kwargs["stream"] is True
    assert kwargs["json"]["stream"] is True
    assert kwargs["headers"]["Accept"] == "text/event-stream"
    assert events == [text_delta("你好"), {"type": "message_stop"}]
    assert response.closed == 1


def test_stream_stops_at_done_sentinel(fake_post, claude_call):
    lines = [b'data: {"type": "ping"}', b"data: [DONE]", b'data: {"type": "late"}']
    fake_post["responses"].append(FakeResponse(lines=lines))

    assert list(RequestsTransport().stream(claude_call)) == [{"type": "ping"}]


def test_malformed_stream_event_raises(fake_post, claude_call):
    response = FakeResponse(lines=[b"data: {not json"])
    fake_post["responses"].append(response)
    with pytest.raises(TransportError, match="malformed stream event"):
        list(RequestsTransport().stream(claude_call))
    assert response.closed == 1


def test_stream_status_error_closes_response(fake_post, claude_call):
    response = FakeResponse(status_code=529, body={"type": "error", "error": {"message": "Overloaded"}})
    fake_post["responses"].append(response)
    with pytest.raises(TransportError, match="Overloaded"):
        list(RequestsTransport().stream(claude_call))
    assert response.closed == 1


def test_abandoned_router_stream_closes_http_response(fake_post, registry):
    response = FakeResponse(lines=sse(text_delta("a"), text_delta("b"), text_delta("c")))
    fake_post["responses"].append(response)
    router = LLMRouter(registry=registry, transport=RequestsTransport())

    stream = router.generate_stream(GenerationRequest(prompt="p", model="claude-3-haiku"))
    assert next(stream) == "a"
    stream.close()

    assert response.closed == 1
    assert response.lines_read == 2


def test_iter_sse_data_skips_comments_and_blanks():
    assert list(iter_sse_data(["", ": ping", "event: x", "data: 1", "data:2", "data: [DONE]", "data: 3"])) == ["1", "2"]


def test_redact_replaces_every_secret():
    assert redact("key=abc and abc", ["abc", ""]) == "key=***REDACTED*** and ***REDACTED***"
