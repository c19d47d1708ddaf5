"""
Tests for the OpenAI-compatible text-generation client, against
httpx.MockTransport (no network).
"""
import json

import httpx
import pytest

from app.core.errors import GenerationError
from app.services.chat import STREAM_ERROR_MESSAGE, ChatReply, sse_event
from app.services.llm import LLMClient, _END_OF_STREAM, _parse_stream_line


def _client(handler) -> LLMClient:
    return LLMClient(
        api_key="test-key",
        base_url="https://llm.example.com/v1",
        model="test-model",
        transport=httpx.MockTransport(handler),
    )


def _sse(*chunks: str) -> bytes:
    lines = []
    for chunk in chunks:
        if chunk == "[DONE]":
            lines.append("data: [DONE]")
        else:
            lines.append("data: " + json.dumps({"choices": [{"delta": {"content": chunk}}]}))
    return ("\n\n".join(lines) + "\n\n").encode()


class TestComplete:
    def test_returns_message_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": "hello"}}]})

        text = _client(handler).complete([{"role": "user", "content": "hi"}], max_tokens=256)

        assert text == "hello"
        assert seen["url"] == "https://llm.example.com/v1/chat/completions"
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["max_tokens"] == 256
        assert "stream" not in seen["body"]

    def test_no_choices_returns_empty_string(self):
        client = _client(lambda request: httpx.Response(200, json={"choices": []}))
        assert client.complete([], max_tokens=10) == ""

    def test_http_error_raises_generation_error(self):
        client = _client(lambda request: httpx.Response(503, json={"error": "overloaded"}))
        with pytest.raises(GenerationError):
            client.complete([], max_tokens=10)

    def test_invalid_json_raises_generation_error(self):
        client = _client(lambda request: httpx.Response(200, content=b"not json"))
        with pytest.raises(GenerationError):
            client.complete([], max_tokens=10)

    def test_timeout_raises_generation_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(GenerationError) as exc_info:
            _client(handler).complete([], max_tokens=10)
        assert "timed out" in exc_info.value.message


class TestStream:
    def test_yields_fragments_until_done(self):
        def handler(request):
            assert json.loads(request.content)["stream"] is True
            return httpx.Response(200, content=_sse("Hel", "lo", "[DONE]", "ignored"))

        assert list(_client(handler).stream([], max_tokens=10)) == ["Hel", "lo"]

    def test_request_is_lazy(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, content=_sse("x", "[DONE]"))

        fragments = _client(handler).stream([], max_tokens=10)
        assert calls == []
        assert next(fragments) == "x"
        assert len(calls) == 1

    def test_http_error_surfaces_on_first_pull(self):
        client = _client(lambda request: httpx.Response(500, content=b"boom"))
        fragments = client.stream([], max_tokens=10)
        with pytest.raises(GenerationError):
            next(fragments)


class TestParseStreamLine:
    def test_content_delta(self):
        line = 'data: {"choices": [{"delta": {"content": "hi"}}]}'
        assert _parse_stream_line(line) == "hi"

    def test_done_marker(self):
        assert _parse_stream_line("data: [DONE]") is _END_OF_STREAM

    def test_role_only_delta_is_skipped(self):
        line = 'data: {"choices": [{"delta": {"role": "assistant"}}]}'
        assert _parse_stream_line(line) is None

    def test_comment_and_blank_lines_are_skipped(self):
        assert _parse_stream_line(": keep-alive") is None
        assert _parse_stream_line("") is None

    @pytest.mark.parametrize("line", [
        "data: null",
        'data: {"choices": {"0": {}}}',
        'data: {"choices": ["text"]}',
        'data: {"choices": [{"delta": "text"}]}',
        'data: {"choices": [{"delta": {"content": 7}}]}',
    ])
    def test_malformed_chunk_raises_value_error(self, line):
        with pytest.raises(ValueError):
            _parse_stream_line(line)


class TestMalformedPayloads:
    @pytest.mark.parametrize("payload", [
        None,
        ["hello"],
        {"choices": {"message": {"content": "hi"}}},
        {"choices": [{"message": "hi"}]},
    ])
    def test_complete_raises_generation_error(self, payload):
        client = _client(lambda request: httpx.Response(200, json=payload))
        with pytest.raises(GenerationError):
            client.complete([], max_tokens=10)

    def test_stream_raises_generation_error_after_first_fragment(self):
        body = _sse("Hi") + b"data: null\n\n"
        fragments = _client(lambda request: httpx.Response(200, content=body)).stream([], max_tokens=10)
        assert next(fragments) == "Hi"
        with pytest.raises(GenerationError):
            next(fragments)

    def test_chat_events_end_with_error_event(self):
        body = _sse("Hi") + b"data: null\n\n"
        fragments = _client(lambda request: httpx.Response(200, content=body)).stream([], max_tokens=10)
        reply = ChatReply(user_id=1, first=next(fragments), fragments=fragments)

        def no_session():
            raise AssertionError("nothing should be persisted")

        events = list(reply.events(no_session))

        assert events == [
            sse_event({"content": "Hi"}),
            sse_event({"error": STREAM_ERROR_MESSAGE}),
        ]
