from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..errors import ConfigurationError, GatewayError, describe_unhandled
from ..schemas.base import ErrorResponse
from ..schemas.chat import ChatCompletionRequest
from ..services.ai.augmenter import ConversationAugmenter
from ..services.ai.upstream import EVENT_STREAM_HEADERS, UpstreamRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def get_augmenter(request: Request) -> ConversationAugmenter:
    return request.app.state.augmenter


def get_relay(request: Request) -> UpstreamRelay:
    relay = request.app.state.relay
    if relay is None:
        raise ConfigurationError("FIREWORKS_API_KEY environment variable is not set")
    return relay


@router.options("")
async def preflight() -> Response:
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post(
    "",
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_completion(
    payload: ChatCompletionRequest,
    augmenter: ConversationAugmenter = Depends(get_augmenter),
    relay: UpstreamRelay = Depends(get_relay),
) -> Response:
    params = payload.generation_parameters()
    try:
        messages = await augmenter.augment(payload.messages)
        if params.stream:
            chunks = await relay.open_stream(params, messages)
            return StreamingResponse(chunks, headers={**CORS_HEADERS, **EVENT_STREAM_HEADERS})
        data = await relay.complete(params, messages)
    except GatewayError:
        raise
    except Exception as exc:
        logger.exception("Chat request failed")
        raise GatewayError(describe_unhandled(exc)) from exc
    return JSONResponse(data, headers=CORS_HEADERS)
