"""Web search backed by the Tavily API."""
from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class TavilySearch:
    """Thin async wrapper around Tavily's ``/search`` endpoint."""

    def __init__(
        self,
        api_key: str | None,
        *,
        url: str = "https://api.tavily.com/search",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def search(self, query: str, num_results: int) -> str:
        """Return formatted results, or ``Search error: ...`` on any failure."""
        try:
            results = await self._fetch(query, num_results)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Search for %r failed: %s", query, exc)
            return f"Search error: {exc}"
        if not results:
            return "No results found"
        return "\n\n".join(_format_result(item) for item in results)

    async def _fetch(self, query: str, num_results: int) -> list[dict[str, Any]]:
        if not self._api_key:
            raise ValueError("TAVILY_API_KEY is not configured")
        payload = {"query": query, "max_results": num_results, "search_depth": "basic"}
        headers = {"Authorization": f"Bearer {self._api_key}"}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(self._url, json=payload, headers=headers)
        response.raise_for_status()
        data = response.json()
        results = data.get("results") if isinstance(data, dict) else None
        return [item for item in results or [] if isinstance(item, dict)]


def _format_result(item: dict[str, Any]) -> str:
    return f"**{item.get('title', '')}**\n{item.get('content', '')}\nSource: {item.get('url', '')}"
