"""Shared fixtures: settings and in-memory stand-ins for remote services."""
from __future__ import annotations

import json
from typing import Any, Iterable

import httpx
import pytest
from fastapi.testclient import TestClient

from chat_gateway import tool_server
from chat_gateway.config import Settings


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered as the given chunks, optionally failing at the end."""

    def __init__(self, chunks: Iterable[bytes], error: Exception | None = None) -> None:
        self._chunks = list(chunks)
        self._error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    async def aclose(self) -> None:
        self.closed = True


class RecordingTransport(httpx.MockTransport):
    """Mock transport that keeps every request it served."""

    def __init__(self, handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    def json_bodies(self) -> list[Any]:
        return [json.loads(request.content) for request in self.requests]


def completion_body(content: str = "Hello!") -> dict[str, Any]:
    return {
        "id": "cmpl-1",
        "object": "chat.completion",
        "model": "m",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
        "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
    }


def rpc_text(request: httpx.Request, text: str) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(
        200,
        json={"jsonrpc": "2.0", "id": body["id"], "result": {"content": [{"type": "text", "text": text}]}},
    )


def forward_to(test_client: TestClient) -> RecordingTransport:
    """Async transport that hands each request to an app served by ``test_client``."""

    def handle(request: httpx.Request) -> httpx.Response:
        reply = test_client.post(
            request.url.path,
            content=request.content,
            headers={name: request.headers[name] for name in ("accept", "content-type") if name in request.headers},
        )
        return httpx.Response(reply.status_code, headers=reply.headers, content=reply.content)

    return RecordingTransport(handle)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        fireworks_api_key="test-key",
        tavily_api_key="tavily-key",
        upstream_base_url="https://upstream.test/v1",
        tool_service_url="http://tools.test/api/server",
        tavily_url="https://search.test/search",
        user_agent="chat-gateway-tests",
    )


@pytest.fixture
def upstream_ok() -> RecordingTransport:
    return RecordingTransport(lambda request: httpx.Response(200, json=completion_body()))


@pytest.fixture
def tools_unused() -> RecordingTransport:
    return RecordingTransport(lambda request: rpc_text(request, "unused"))


@pytest.fixture
def tool_service(settings):
    """Transport into a running tool service app."""
    with TestClient(tool_server.create_app(settings)) as client:
        yield forward_to(client)
