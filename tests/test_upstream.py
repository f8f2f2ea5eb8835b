from __future__ import annotations

import json

import httpx
import pytest

from chat_gateway.errors import UpstreamError
from chat_gateway.schemas.chat import ChatMessage, GenerationParameters
from chat_gateway.services.ai.upstream import UpstreamRelay
from conftest import ChunkStream, RecordingTransport, completion_body

MESSAGES = [ChatMessage(role="user", content="hi")]


def make_relay(transport: httpx.AsyncBaseTransport) -> UpstreamRelay:
    return UpstreamRelay(
        "test-key",
        base_url="https://upstream.test/v1",
        user_agent="chat-gateway-tests",
        transport=transport,
    )


def streaming_transport(stream: ChunkStream) -> RecordingTransport:
    return RecordingTransport(
        lambda request: httpx.Response(200, headers={"content-type": "text/event-stream"}, stream=stream)
    )


@pytest.mark.asyncio
async def test_complete_passes_json_through(upstream_ok):
    params = GenerationParameters(model="m", tools=[{"type": "function", "function": {"name": "f"}}], tool_choice="auto")

    data = await make_relay(upstream_ok).complete(params, MESSAGES)

    assert data == completion_body()
    request = upstream_ok.requests[0]
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer test-key"
    assert request.headers["user-agent"] == "chat-gateway-tests"
    body = json.loads(request.content)
    assert body["model"] == "m"
    assert body["messages"] == [{"role": "user", "content": "hi"}]
    assert body["top_k"] == 40
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 8192
    assert body["stream"] is False
    assert body["tool_choice"] == "auto"
    assert body["tools"][0]["function"]["name"] == "f"


@pytest.mark.asyncio
async def test_optional_tool_fields_are_omitted(upstream_ok):
    await make_relay(upstream_ok).complete(GenerationParameters(model="m"), MESSAGES)
    body = upstream_ok.json_bodies()[0]
    assert "tools" not in body
    assert "tool_choice" not in body


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,fragment",
    [
        (429, "Rate limit"),
        (401, "Authentication"),
        (503, "temporarily unavailable"),
        (400, "rejected the request: bad things"),
        (418, "bad things"),
    ],
)
async def test_status_errors_are_classified(status, fragment):
    transport = httpx.MockTransport(
        lambda request: httpx.Response(status, json={"error": {"message": "bad things"}})
    )
    with pytest.raises(UpstreamError) as excinfo:
        await make_relay(transport).complete(GenerationParameters(model="m"), MESSAGES)
    assert excinfo.value.status_code == status
    assert fragment in excinfo.value.message


@pytest.mark.asyncio
async def test_stream_relays_chunks_verbatim():
    stream = ChunkStream([b"data: A\n\n", b"data: B\n\n"])
    transport = streaming_transport(stream)

    chunks = await make_relay(transport).open_stream(GenerationParameters(model="m", stream=True), MESSAGES)
    received = [chunk async for chunk in chunks]

    assert received == [b"data: A\n\n", b"data: B\n\n"]
    assert stream.closed
    request = transport.requests[0]
    assert request.headers["accept"] == "text/event-stream"
    assert json.loads(request.content)["stream"] is True


@pytest.mark.asyncio
async def test_stream_status_error_raised_before_iteration():
    transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"message": "slow down"}))
    with pytest.raises(UpstreamError) as excinfo:
        await make_relay(transport).open_stream(GenerationParameters(model="m", stream=True), MESSAGES)
    assert excinfo.value.status_code == 429


@pytest.mark.asyncio
async def test_stream_interruption_emits_error_event():
    stream = ChunkStream([b"data: A\n\n"], error=httpx.ReadError("connection reset"))

    chunks = await make_relay(streaming_transport(stream)).open_stream(GenerationParameters(model="m"), MESSAGES)
    received = [chunk async for chunk in chunks]

    assert received[0] == b"data: A\n\n"
    assert len(received) == 2
    assert received[1].startswith(b"data: ")
    event = json.loads(received[1][len(b"data: "):])
    assert event["error"]["type"] == "stream_interrupted"
    assert "connection reset" in event["error"]["message"]
    assert stream.closed


@pytest.mark.asyncio
async def test_closing_stream_early_releases_upstream():
    stream = ChunkStream([b"data: A\n\n", b"data: B\n\n", b"data: C\n\n"])

    chunks = await make_relay(streaming_transport(stream)).open_stream(GenerationParameters(model="m"), MESSAGES)
    first = await chunks.__anext__()
    await chunks.aclose()

    assert first == b"data: A\n\n"
    assert stream.closed
