"""Tests for the Gemini streaming transport (httpx.MockTransport)."""

import json

import httpx
import pytest

from chatdoc.core.errors import TransportError
from chatdoc.models.gemini import GeminiClient, _error_message, stream_url
from chatdoc.models.request_builder import build_request
from chatdoc.models.stream_decoder import StreamDecoder
from chatdoc.tests.helpers import text_chunk


def _client(handler, **kwargs):
    return GeminiClient(api_key="secret-key", transport=httpx.MockTransport(handler), **kwargs)


async def _collect(client, request):
    return [line async for line in client.stream_lines(request)]


def test_stream_url():
    assert (
        stream_url("https://example.test/v1beta/", "gemini-2.5-flash")
        == "https://example.test/v1beta/models/gemini-2.5-flash:streamGenerateContent"
    )


@pytest.mark.asyncio
async def test_request_shape_and_lines():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        body = f"data: {text_chunk('Hel')}\r\n\r\ndata: {text_chunk('lo')}\r\n\r\n"
        return httpx.Response(
            200, content=body.encode(), headers={"Content-Type": "text/event-stream"}
        )

    client = _client(handler, model="gemini-test")
    lines = await _collect(client, build_request(["hi"]))

    req = seen["request"]
    assert req.method == "POST"
    assert req.url.path.endswith("/models/gemini-test:streamGenerateContent")
    assert req.url.params["alt"] == "sse"
    assert req.url.params["key"] == "secret-key"
    assert req.headers["Accept"] == "text/event-stream"
    assert json.loads(req.content) == {"contents": [{"role": "user", "parts": [{"text": "hi"}]}]}

    texts = []
    decoder = StreamDecoder(texts.append)
    for line in lines:
        decoder.feed_line(line)
    assert "".join(texts) == "Hello"


@pytest.mark.asyncio
async def test_http_error_raises_transport_error():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": 400, "message": "API key not valid"}})

    with pytest.raises(TransportError) as exc:
        await _collect(_client(handler), build_request(["hi"]))
    assert exc.value.code == 400
    assert exc.value.message == "API key not valid"


@pytest.mark.asyncio
async def test_connection_error_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(TransportError) as exc:
        await _collect(_client(handler), build_request(["hi"]))
    assert exc.value.code is None
    assert "connection refused" in exc.value.message


def test_error_message_fallbacks():
    assert _error_message(b'[{"error": {"message": "quota"}}]') == "quota"
    assert _error_message(b"Bad Gateway") == "Bad Gateway"
    assert _error_message(b'{"detail": 1}') == '{"detail": 1}'
