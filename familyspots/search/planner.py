"""Search planner for spots and events.

Chooses between a plain listing, a ranked full-text query over the
``search_vector`` index and the substring ("legacy") search. Full-text
failures never reach the caller: the request is re-run in legacy mode.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

from familyspots.logger import get_logger

from .repository import SearchRepository
from .sanitize import build_tsquery, tokenize, transform_record
from .types import EntityKind, Record, SearchMethod, SearchRequest, SearchResult

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SearchPlanner:
    def __init__(
        self,
        repository: SearchRepository,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._clock = clock

    @property
    def repository(self) -> SearchRepository:
        return self._repository

    async def search(self, kind: EntityKind, request: SearchRequest) -> SearchResult:
        request = request.bounded()
        now = self._clock()
        query = request.query.strip()

        if not query:
            return await self._listing(kind, request, now)
        if request.use_full_text:
            return await self._full_text(kind, query, request, now)
        return await self._legacy(kind, query, request, now)

    async def get(self, kind: EntityKind, record_id: str) -> Record | None:
        record = await self._repository.get_record(kind, record_id)
        return None if record is None else transform_record(record)

    async def _listing(
        self, kind: EntityKind, request: SearchRequest, now: datetime
    ) -> SearchResult:
        raw, total = await asyncio.gather(
            self._repository.list_page(kind, limit=request.limit, offset=request.offset, now=now),
            self._repository.count_all(kind, now=now),
        )
        return SearchResult.page(
            [transform_record(record) for record in raw],
            total=total,
            offset=request.offset,
            method=SearchMethod.LEGACY,
        )

    async def _full_text(
        self, kind: EntityKind, query: str, request: SearchRequest, now: datetime
    ) -> SearchResult:
        ts_query = build_tsquery(query)
        if not ts_query:
            return SearchResult(method=SearchMethod.FULLTEXT)

        page, count = await asyncio.gather(
            self._repository.fulltext_page(
                kind, ts_query, limit=request.limit, offset=request.offset, now=now
            ),
            self._repository.fulltext_count(kind, ts_query, now=now),
            return_exceptions=True,
        )
        failure = next((r for r in (page, count) if isinstance(r, Exception)), None)
        if failure is not None:
            logger.warning(
                "fulltext_search_failed",
                kind=kind.value,
                error=str(failure),
                error_type=type(failure).__name__,
            )
            return await self._legacy(kind, query, request, now)
        if isinstance(page, BaseException):
            raise page
        if isinstance(count, BaseException):
            raise count

        raw, total = page, count
        return SearchResult.page(
            [transform_record(record) for record in raw],
            total=total,
            offset=request.offset,
            method=SearchMethod.FULLTEXT,
        )

    async def _legacy(
        self, kind: EntityKind, query: str, request: SearchRequest, now: datetime
    ) -> SearchResult:
        tokens = tokenize(query)
        raw, total = await asyncio.gather(
            self._repository.contains_page(
                kind, query, tokens, limit=request.limit, offset=request.offset, now=now
            ),
            self._repository.contains_count(kind, query, tokens, now=now),
        )
        return SearchResult.page(
            [transform_record(record) for record in raw],
            total=total,
            offset=request.offset,
            method=SearchMethod.LEGACY,
        )
