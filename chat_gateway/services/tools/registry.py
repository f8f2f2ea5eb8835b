"""Tools exposed by the tool service, registered on a FastMCP server."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastmcp import FastMCP
from pydantic import Field

from ...config import Settings
from ..calculators.engine import CalculatorEngine
from .search import TavilySearch

logger = logging.getLogger(__name__)

SERVER_NAME = "chat-gateway-tools"
DEFAULT_SEARCH_RESULTS = 5


def current_time_text(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"Current time: {stamp}"


def build_tool_server(settings: Settings, *, search_transport=None) -> FastMCP:
    """Create the MCP server holding the fixed tool set.

    Argument schemas come from the handler signatures; FastMCP validates
    ``tools/call`` arguments against them and reports unknown tools and bad
    arguments as error results.
    """
    searcher = TavilySearch(
        settings.tavily_api_key,
        url=settings.tavily_url,
        timeout=settings.search_timeout_sec,
        transport=search_transport,
    )
    calculator = CalculatorEngine(max_length=settings.max_expression_length)
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(name="search", description="Search the web for current information.")
    async def search(
        query: Annotated[str, Field(description="Search query")],
        num_results: Annotated[int, Field(ge=1, le=20, description="Number of results")] = DEFAULT_SEARCH_RESULTS,
    ) -> str:
        logger.info("Running search tool")
        return await searcher.search(query, num_results)

    @mcp.tool(name="current_time", description="Return the current UTC time.")
    async def current_time() -> str:
        return current_time_text()

    @mcp.tool(name="calculate", description="Evaluate an arithmetic expression.")
    async def calculate(
        expression: Annotated[str, Field(description="Arithmetic expression, e.g. 12*4")],
    ) -> str:
        logger.info("Running calculate tool")
        return calculator.run(expression)

    @mcp.tool(name="echo", description="Echo a message back.")
    async def echo(message: Annotated[str, Field(description="Text to echo")]) -> str:
        return f"Tool echo: {message}"

    return mcp
