"""JSON-RPC client for the tool service."""
from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx

from ...errors import ToolInvocationError
from ...schemas.tools import JsonRpcRequest

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response from tool"

# The streamable HTTP transport rejects requests that do not accept both.
RPC_HEADERS = {"Accept": "application/json, text/event-stream"}


class ToolServiceClient:
    """Calls named tools over ``tools/call`` and returns their text output.

    Failures never propagate: they come back as ``Tool error: <message>`` so
    the completion provider can still answer the user.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def invoke(self, tool_name: str, arguments: dict[str, Any] | None = None) -> str:
        try:
            return await self._call(tool_name, arguments or {})
        except ToolInvocationError as exc:
            logger.warning("Tool %s failed: %s", tool_name, exc)
            return f"Tool error: {exc}"

    async def _call(self, tool_name: str, arguments: dict[str, Any]) -> str:
        envelope = JsonRpcRequest.tool_call(uuid.uuid4().hex, tool_name, arguments)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, json=envelope.model_dump(), headers=RPC_HEADERS)
            data = response.json()
        except httpx.HTTPError as exc:
            raise ToolInvocationError(str(exc) or exc.__class__.__name__) from exc
        except ValueError as exc:
            raise ToolInvocationError(f"invalid JSON from tool service ({exc})") from exc

        if not isinstance(data, dict):
            return NO_RESPONSE
        error = data.get("error")
        if isinstance(error, dict):
            raise ToolInvocationError(str(error.get("message") or "unknown tool service error"))
        result = data.get("result")
        text = _first_text(result)
        if isinstance(result, dict) and result.get("isError"):
            raise ToolInvocationError(text or "tool reported an error")
        return text or NO_RESPONSE


def _first_text(result: Any) -> str | None:
    if not isinstance(result, dict):
        return None
    content = result.get("content")
    if not isinstance(content, list) or not content:
        return None
    first = content[0]
    if not isinstance(first, dict):
        return None
    text = first.get("text")
    return text if isinstance(text, str) else None
