"""Schemas for the JSON-RPC messages the gateway sends to the tool service."""
from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import Field

from .base import BaseSchema


class ToolCallParams(BaseSchema):
    """Params of a ``tools/call`` request."""

    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class JsonRpcRequest(BaseSchema):
    """A JSON-RPC 2.0 request message."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: Union[int, str, None] = None
    method: str
    params: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def tool_call(cls, request_id: str, name: str, arguments: dict[str, Any]) -> JsonRpcRequest:
        params = ToolCallParams(name=name, arguments=arguments)
        return cls(id=request_id, method="tools/call", params=params.model_dump())
