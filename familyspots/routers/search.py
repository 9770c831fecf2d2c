"""Search router for spots and events."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from familyspots.config import settings
from familyspots.core.cache import CacheService, get_cache_service, options_for, search_key
from familyspots.search import (
    EntityKind,
    SearchPlanner,
    SearchRequest,
    SearchResult,
    get_search_planner,
)

router = APIRouter()

SEARCH_METHOD_HEADER = "X-Search-Method"
SEARCH_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=300"


class SearchResponse(BaseModel):
    """One page of spot or event search results."""

    items: list[dict[str, Any]]
    total: int
    next_offset: int | None = Field(default=None, serialization_alias="nextOffset")


async def run_search(
    kind: EntityKind,
    request: SearchRequest,
    cache: CacheService,
    planner: SearchPlanner,
) -> SearchResult:
    """Serve a search page through the cache, keyed on the clamped request."""
    request = request.bounded()
    key = search_key(
        kind.value,
        {
            "q": request.query.strip(),
            "limit": request.limit,
            "offset": request.offset,
            "fulltext": request.use_full_text,
        },
    )

    async def refresh() -> dict[str, Any]:
        result = await planner.search(kind, request)
        return result.to_payload()

    payload = await cache.get_or_refresh(key, refresh, options_for("search"))
    return SearchResult.from_payload(payload)


def _respond(result: SearchResult, response: Response) -> SearchResponse:
    response.headers[SEARCH_METHOD_HEADER] = result.method.value
    response.headers["Cache-Control"] = SEARCH_CACHE_CONTROL
    return SearchResponse(items=result.items, total=result.total, next_offset=result.next_offset)


def _request(q: str, limit: int | None, offset: int, fulltext: bool | None) -> SearchRequest:
    return SearchRequest(
        query=q,
        limit=settings.search_default_limit if limit is None else limit,
        offset=offset,
        use_full_text=settings.search_full_text_enabled if fulltext is None else fulltext,
    )


@router.get("/spots", response_model=SearchResponse)
async def search_spots(
    response: Response,
    q: str = "",
    limit: int | None = Query(default=None),
    offset: int = 0,
    fulltext: bool | None = Query(default=None),
    cache: CacheService = Depends(get_cache_service),
    planner: SearchPlanner = Depends(get_search_planner),
) -> SearchResponse:
    """
    Search family spots by name, city, address and tags.

    Out-of-range ``limit`` and ``offset`` values are clamped, not rejected.
    """
    result = await run_search(
        EntityKind.SPOT, _request(q, limit, offset, fulltext), cache, planner
    )
    return _respond(result, response)


@router.get("/events", response_model=SearchResponse)
async def search_events(
    response: Response,
    q: str = "",
    limit: int | None = Query(default=None),
    offset: int = 0,
    fulltext: bool | None = Query(default=None),
    cache: CacheService = Depends(get_cache_service),
    planner: SearchPlanner = Depends(get_search_planner),
) -> SearchResponse:
    """Search public upcoming events, soonest first."""
    result = await run_search(
        EntityKind.EVENT, _request(q, limit, offset, fulltext), cache, planner
    )
    return _respond(result, response)
