"""Web search router."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from familyspots.services import WebSearchService, get_web_search_service

router = APIRouter()


class WebSearchResult(BaseModel):
    title: str
    link: str
    snippet: str | None = None
    source: str | None = None


class WebSearchResponse(BaseModel):
    query: str
    results: list[WebSearchResult]


@router.get("", response_model=WebSearchResponse)
async def web_search(
    q: str = "",
    count: int = 5,
    service: WebSearchService = Depends(get_web_search_service),
):
    """Search the public web; ``count`` is clamped to 1..10."""
    query = q.strip()
    if not query:
        return JSONResponse(status_code=400, content={"error": "missing_query"})

    items = await service.search(query, count=count)
    return WebSearchResponse(
        query=query,
        results=[
            WebSearchResult(title=i.title, link=i.link, snippet=i.snippet, source=i.source)
            for i in items
        ],
    )
