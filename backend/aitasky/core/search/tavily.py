"""Tavily web search client."""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from aitasky.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"


class SearchResult(BaseModel):
    """A single web search hit."""

    title: str = ""
    url: str
    content: str = ""
    score: Optional[float] = None


class TavilyResponse(BaseModel):
    """Search response: an optional direct answer plus ranked hits."""

    query: str
    answer: Optional[str] = None
    results: list[SearchResult] = Field(default_factory=list)


class TavilySearch:
    """Minimal Tavily search client."""

    def __init__(
        self,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ):
        self._api_key = api_key
        self._client = client
        self._timeout = timeout

    async def search(
        self,
        query: str,
        max_results: int = 5,
        search_depth: str = "basic",
        include_answer: bool = True,
    ) -> TavilyResponse:
        """
        Run a web search.

        Args:
            query: Search query
            max_results: Maximum number of hits to return
            search_depth: 'basic' or 'advanced'
            include_answer: Ask Tavily for a synthesized answer

        Returns:
            TavilyResponse

        Raises:
            ExternalServiceError: On transport errors, non-2xx responses or malformed bodies
        """
        payload = {
            "query": query,
            "max_results": max_results,
            "search_depth": search_depth,
            "include_answer": include_answer,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            if self._client is not None:
                response = await self._client.post(TAVILY_SEARCH_URL, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(TAVILY_SEARCH_URL, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"Tavily search failed with status {e.response.status_code}",
                service_name="tavily",
                status=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Tavily search request failed: {type(e).__name__}", service_name="tavily"
            ) from e

        try:
            data = response.json()
            result = TavilyResponse(
                query=data.get("query") or query,
                answer=data.get("answer"),
                results=[SearchResult(**item) for item in data.get("results") or []],
            )
        except (ValueError, TypeError, AttributeError, ValidationError) as e:
            raise ExternalServiceError(
                f"Tavily returned an unreadable response: {type(e).__name__}", service_name="tavily"
            ) from e

        logger.debug("Tavily returned %d results", len(result.results))
        return result


def format_search_context(response: TavilyResponse) -> str:
    """Render search results as context for a system message."""
    lines = [f"Web search results for: {response.query}"]
    if response.answer:
        lines.append(f"Summary: {response.answer}")
    for index, result in enumerate(response.results, start=1):
        lines.append(f"[{index}] {result.title} ({result.url})\n{result.content}")
    return "\n\n".join(lines)
