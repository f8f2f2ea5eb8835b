from __future__ import annotations

import json

import httpx
import pytest

from chat_gateway.services.ai.tool_client import NO_RESPONSE, ToolServiceClient
from conftest import RecordingTransport, rpc_text

URL = "http://tools.test/api/server"


@pytest.mark.asyncio
async def test_invoke_sends_tools_call_envelope():
    transport = RecordingTransport(lambda request: rpc_text(request, "12*4 = 48"))
    client = ToolServiceClient(URL, transport=transport)

    result = await client.invoke("calculate", {"expression": "12*4"})

    assert result == "12*4 = 48"
    (body,) = transport.json_bodies()
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "tools/call"
    assert body["params"] == {"name": "calculate", "arguments": {"expression": "12*4"}}
    assert body["id"]
    assert str(transport.requests[0].url) == URL
    assert transport.requests[0].headers["accept"] == "application/json, text/event-stream"


@pytest.mark.asyncio
async def test_invoke_without_arguments_sends_empty_object():
    transport = RecordingTransport(lambda request: rpc_text(request, "Current time: now"))
    await ToolServiceClient(URL, transport=transport).invoke("current_time")
    assert transport.json_bodies()[0]["params"]["arguments"] == {}


@pytest.mark.asyncio
async def test_missing_text_returns_placeholder():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {}}))
    assert await ToolServiceClient(URL, transport=transport).invoke("echo", {"message": "x"}) == NO_RESPONSE


@pytest.mark.asyncio
async def test_unreachable_service_degrades_to_text():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await ToolServiceClient(URL, transport=httpx.MockTransport(refuse)).invoke("current_time")
    assert result == "Tool error: connection refused"


@pytest.mark.asyncio
async def test_non_json_response_degrades_to_text():
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
    result = await ToolServiceClient(URL, transport=transport).invoke("current_time")
    assert result.startswith("Tool error:")


@pytest.mark.asyncio
async def test_rpc_error_degrades_to_text():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32602, "message": "Unknown tool: nope"}},
        )

    result = await ToolServiceClient(URL, transport=httpx.MockTransport(handler)).invoke("nope")
    assert result == "Tool error: Unknown tool: nope"


@pytest.mark.asyncio
async def test_error_result_degrades_to_text():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(
            200,
            json={
                "jsonrpc": "2.0",
                "id": json.loads(request.content)["id"],
                "result": {"content": [{"type": "text", "text": "Unknown tool: teleport"}], "isError": True},
            },
        )
    )
    result = await ToolServiceClient(URL, transport=transport).invoke("teleport")
    assert result == "Tool error: Unknown tool: teleport"
