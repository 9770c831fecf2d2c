"""
Web search service.

Looks up places on the public web (Google Custom Search or Bing) to help
families enrich spot pages. Results are cached through the cache service.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

import httpx

from familyspots.config import settings
from familyspots.core.cache import CacheService, get_cache_service, http_key, options_for
from familyspots.http_client import fetch_json, get_http_client
from familyspots.logger import get_logger

logger = get_logger(__name__)

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"
BING_SEARCH_URL = "https://api.bing.microsoft.com/v7.0/search"

MIN_COUNT = 1
MAX_COUNT = 10


@dataclass
class WebSearchItem:
    """A single web search result."""

    title: str
    link: str
    snippet: str | None = None
    source: str | None = None


class WebSearchService:
    """
    Web search over Google Custom Search or Bing.

    Missing credentials and non-2xx provider responses yield an empty list;
    transport errors propagate so the cache can serve a stale copy.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: CacheService,
        *,
        provider: str | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._provider = (provider or settings.web_search_provider).lower()

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def search(self, query: str, count: int = 5) -> list[WebSearchItem]:
        count = min(max(count, MIN_COUNT), MAX_COUNT)
        key = http_key(self._provider, {"q": query, "count": count})

        async def refresh() -> list[dict[str, Any]]:
            items = await self._search_provider(query, count)
            return [asdict(item) for item in items]

        payload = await self._cache.get_or_refresh(key, refresh, options_for("http"))
        return [WebSearchItem(**item) for item in payload]

    async def _search_provider(self, query: str, count: int) -> list[WebSearchItem]:
        logger.info("web_search_started", provider=self._provider, count=count)
        if self._provider == "bing":
            items = await self._bing(query, count)
        else:
            items = await self._google(query, count)
        logger.info("web_search_completed", provider=self._provider, results_count=len(items))
        return items

    async def _google(self, query: str, count: int) -> list[WebSearchItem]:
        if not settings.google_api_key or not settings.google_cse_id:
            return []
        params = {
            "key": settings.google_api_key,
            "cx": settings.google_cse_id,
            "q": query,
            "num": str(count),
        }
        data = await self._get(GOOGLE_CSE_URL, params=params)
        raw_items = data.get("items") if isinstance(data, dict) else None
        items = [
            WebSearchItem(
                title=str(item.get("title") or ""),
                link=str(item.get("link") or ""),
                snippet=str(item["snippet"]) if item.get("snippet") else None,
                source=str(item["displayLink"]) if item.get("displayLink") else "google",
            )
            for item in (raw_items if isinstance(raw_items, list) else [])
        ]
        return [item for item in items if item.title and item.link]

    async def _bing(self, query: str, count: int) -> list[WebSearchItem]:
        if not settings.bing_search_key:
            return []
        params = {"q": query, "count": str(count), "mkt": "ja-JP", "safeSearch": "Moderate"}
        headers = {"Ocp-Apim-Subscription-Key": settings.bing_search_key}
        data = await self._get(BING_SEARCH_URL, params=params, headers=headers)
        web_pages = data.get("webPages", {}) if isinstance(data, dict) else {}
        raw_items = web_pages.get("value") if isinstance(web_pages, dict) else None
        items = [
            WebSearchItem(
                title=str(item.get("name") or ""),
                link=str(item.get("url") or ""),
                snippet=str(item["snippet"]) if item.get("snippet") else None,
                source=str(item["displayUrl"]) if item.get("displayUrl") else "bing",
            )
            for item in (raw_items if isinstance(raw_items, list) else [])
        ]
        return [item for item in items if item.title and item.link]

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, str],
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            return await fetch_json(self._client, url, params=params, headers=headers)
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "web_search_provider_error",
                provider=self._provider,
                status=exc.response.status_code,
            )
            return {}


_web_search_service: WebSearchService | None = None


async def get_web_search_service() -> WebSearchService:
    """Get or create the web search service singleton."""
    global _web_search_service
    if _web_search_service is None or _web_search_service.client.is_closed:
        _web_search_service = WebSearchService(await get_http_client(), get_cache_service())
    return _web_search_service


def reset_web_search_service() -> None:
    global _web_search_service
    _web_search_service = None
