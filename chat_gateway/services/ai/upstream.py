"""Relay to the OpenAI-compatible completion provider."""
from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack
from typing import Any, AsyncIterator

import httpx
from openai import APIStatusError, AsyncOpenAI

from ...errors import UpstreamError
from ...schemas.chat import ChatMessage, GenerationParameters

logger = logging.getLogger(__name__)

EVENT_STREAM_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class UpstreamRelay:
    """Forwards a conversation upstream and hands back the provider's answer untouched.

    A fresh SDK client is opened for every call and closed once the JSON body
    was read or the byte stream ended, so no connection outlives its request.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str,
        timeout: float = 120.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport

    def _client(self) -> AsyncOpenAI:
        http_client = None
        if self._transport is not None:
            http_client = httpx.AsyncClient(transport=self._transport, timeout=self._timeout)
        return AsyncOpenAI(
            api_key=self._api_key,
            base_url=self._base_url,
            timeout=self._timeout,
            max_retries=0,
            default_headers={"User-Agent": self._user_agent} if self._user_agent else None,
            http_client=http_client,
        )

    async def complete(self, params: GenerationParameters, messages: list[ChatMessage]) -> dict[str, Any]:
        """Single JSON response, returned exactly as the provider sent it."""
        logger.debug("Requesting completion with model=%s", params.model)
        async with self._client() as client:
            try:
                raw = await client.chat.completions.with_raw_response.create(
                    **_request_kwargs(params, messages), stream=False
                )
            except APIStatusError as exc:
                raise _upstream_error(exc) from exc
            data = raw.http_response.json()
        _log_usage(data)
        return data

    async def open_stream(self, params: GenerationParameters, messages: list[ChatMessage]) -> AsyncIterator[bytes]:
        """Start a streamed completion.

        Status errors are raised here, before any byte reaches the caller.
        The returned iterator yields the provider's body chunks verbatim and
        releases the connection when exhausted, closed or cancelled.
        """
        logger.debug("Requesting streamed completion with model=%s", params.model)
        stack = AsyncExitStack()
        try:
            client = await stack.enter_async_context(self._client())
            response = await stack.enter_async_context(
                client.chat.completions.with_streaming_response.create(
                    **_request_kwargs(params, messages),
                    stream=True,
                    extra_headers={"Accept": "text/event-stream"},
                )
            )
        except APIStatusError as exc:
            await stack.aclose()
            raise _upstream_error(exc) from exc
        except BaseException:
            await stack.aclose()
            raise
        return _relay_chunks(response.iter_bytes(), stack)


async def _relay_chunks(chunks: AsyncIterator[bytes], stack: AsyncExitStack) -> AsyncIterator[bytes]:
    async with stack:
        try:
            async for chunk in chunks:
                yield chunk
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Upstream stream interrupted: %s", exc)
            yield _interruption_event(str(exc) or exc.__class__.__name__)


def _interruption_event(message: str) -> bytes:
    """Final SSE event sent when the relay breaks after headers went out."""
    payload = {"error": {"type": "stream_interrupted", "message": message}}
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


def _request_kwargs(params: GenerationParameters, messages: list[ChatMessage]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "model": params.model,
        "messages": [message.model_dump() for message in messages],
        "temperature": params.temperature,
        "top_p": params.top_p,
        "max_tokens": params.max_tokens,
        "presence_penalty": params.presence_penalty,
        "frequency_penalty": params.frequency_penalty,
        # top_k is not part of the OpenAI schema
        "extra_body": {"top_k": params.top_k},
    }
    if params.tools is not None:
        kwargs["tools"] = params.tools
    if params.tool_choice is not None:
        kwargs["tool_choice"] = params.tool_choice
    return kwargs


def _upstream_error(exc: APIStatusError) -> UpstreamError:
    detail = _error_detail(exc)
    logger.error("Completion provider returned %s: %s", exc.status_code, detail)
    return UpstreamError.from_status(exc.status_code, detail)


def _error_detail(exc: APIStatusError) -> str | None:
    # The SDK already unwraps a top-level "error" key into ``body``.
    body = exc.body
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])
    if isinstance(body, str) and body.strip():
        return body.strip()
    return None


def _log_usage(data: Any) -> None:
    usage = data.get("usage") if isinstance(data, dict) else None
    if isinstance(usage, dict):
        logger.info(
            "Token usage: prompt=%s completion=%s total=%s",
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
            usage.get("total_tokens"),
        )
