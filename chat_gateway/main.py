"""Entry point for the chat completion gateway."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .errors import GatewayError, InvalidRequestError, describe_unhandled
from .routers import chat, health
from .routers.chat import CORS_HEADERS
from .services.ai.augmenter import ConversationAugmenter
from .services.ai.classifier import ToolClassifier
from .services.ai.tool_client import ToolServiceClient
from .services.ai.upstream import UpstreamRelay
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())[1:]) or "body"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request body"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=CORS_HEADERS)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = InvalidRequestError(_validation_message(exc))
        logger.info("Rejected invalid chat request: %s", error.message)
        return JSONResponse(error.to_dict(), status_code=error.status_code, headers=CORS_HEADERS)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        error = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
        return JSONResponse(
            {"error": error, "message": str(exc.detail)},
            status_code=exc.status_code,
            headers={**CORS_HEADERS, **(exc.headers or {})},
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = GatewayError(describe_unhandled(exc))
        return JSONResponse(error.to_dict(), status_code=error.status_code, headers=CORS_HEADERS)


def create_app(
    settings: Settings | None = None,
    *,
    upstream_transport: httpx.AsyncBaseTransport | None = None,
    tool_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        logger.info("Starting gateway in %s mode", settings.environment)
        logger.info("Upstream: %s | tool service: %s", settings.upstream_base_url, settings.tool_service_url)

        tool_client = ToolServiceClient(
            settings.tool_service_url,
            timeout=settings.tool_service_timeout_sec,
            transport=tool_transport,
        )
        app.state.augmenter = ConversationAugmenter(ToolClassifier(), tool_client)

        if settings.fireworks_api_key:
            app.state.relay = UpstreamRelay(
                settings.fireworks_api_key,
                base_url=settings.upstream_base_url,
                timeout=settings.upstream_timeout_sec,
                user_agent=settings.user_agent,
                transport=upstream_transport,
            )
        else:
            logger.error("FIREWORKS_API_KEY is not set; chat requests will fail with a configuration error")
            app.state.relay = None

        yield

    def with_prefix(path: str) -> str:
        prefix = settings.api_prefix.rstrip("/")
        if not prefix:
            return path
        return f"{prefix}{path}"

    app = FastAPI(
        title=settings.project_name,
        lifespan=lifespan,
        docs_url=with_prefix("/docs"),
        redoc_url=with_prefix("/redoc"),
        openapi_url=with_prefix("/openapi.json"),
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_exception_handlers(app)

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(chat.router)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"message": settings.project_name, "api": settings.api_prefix}

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("chat_gateway.main:app", host=settings.host, port=settings.gateway_port)
