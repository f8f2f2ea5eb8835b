"""Entry point for the MCP tool service."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import APIRouter, FastAPI

from .config import Settings, get_settings
from .routers import health
from .services.tools.registry import build_tool_server
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

RPC_PATH = "/server"


def create_app(
    settings: Settings | None = None,
    *,
    search_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    mcp = build_tool_server(settings, search_transport=search_transport)
    # Stateless with plain JSON replies: every POST is a self-contained tools/call.
    mcp_app = mcp.http_app(path=RPC_PATH, stateless_http=True, json_response=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level)
        if not settings.tavily_api_key:
            logger.warning("TAVILY_API_KEY is not set; the search tool will report errors")
        async with mcp_app.lifespan(app):
            logger.info("Tool service %s ready at %s%s", mcp.name, settings.api_prefix, RPC_PATH)
            yield

    app = FastAPI(title=f"{settings.project_name} tools", lifespan=lifespan)
    app.state.settings = settings

    api_router = APIRouter()
    api_router.include_router(health.router)
    app.include_router(api_router, prefix=settings.api_prefix)
    app.mount(settings.api_prefix, mcp_app)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("chat_gateway.tool_server:app", host=settings.host, port=settings.tool_service_port)
