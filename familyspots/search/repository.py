"""Persistence query interface consumed by the search planner.

Every method is parameterised; implementations never interpolate user text
into query strings. Event methods receive ``now`` so that a page and its
count query see the same time predicate.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .types import EntityKind, Record


class SearchRepository(Protocol):
    async def list_page(
        self, kind: EntityKind, *, limit: int, offset: int, now: datetime
    ) -> list[Record]: ...

    async def count_all(self, kind: EntityKind, *, now: datetime) -> int: ...

    async def fulltext_page(
        self, kind: EntityKind, ts_query: str, *, limit: int, offset: int, now: datetime
    ) -> list[Record]: ...

    async def fulltext_count(self, kind: EntityKind, ts_query: str, *, now: datetime) -> int: ...

    async def contains_page(
        self,
        kind: EntityKind,
        query: str,
        tokens: list[str],
        *,
        limit: int,
        offset: int,
        now: datetime,
    ) -> list[Record]: ...

    async def contains_count(
        self, kind: EntityKind, query: str, tokens: list[str], *, now: datetime
    ) -> int: ...

    async def get_record(self, kind: EntityKind, record_id: str) -> Record | None: ...
