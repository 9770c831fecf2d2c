"""In-process search repository.

Backs local runs without PostgreSQL and the test suite. Full-text matching
approximates the ``simple`` tsquery: every AND-ed token has to occur in the
record's document, and rank is the number of occurrences.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from .sanitize import split_tsquery
from .types import EntityKind, Record

_TEXT_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.SPOT: ("name", "city", "address"),
    EntityKind.EVENT: ("title", "city", "description"),
}

_DOCUMENT_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.SPOT: ("name", "city", "address", "tags"),
    EntityKind.EVENT: ("title", "description", "city", "venue", "address", "tags"),
}


def _as_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _text(record: Record, field: str) -> str:
    value = record.get(field)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(str(item) for item in value)
    return str(value)


class InMemorySearchRepository:
    def __init__(
        self,
        *,
        spots: Iterable[Record] = (),
        events: Iterable[Record] = (),
    ) -> None:
        self._records: dict[EntityKind, list[Record]] = {
            EntityKind.SPOT: [dict(record) for record in spots],
            EntityKind.EVENT: [dict(record) for record in events],
        }

    def add(self, kind: EntityKind, record: Record) -> None:
        self._records[kind].append(dict(record))

    async def list_page(
        self, kind: EntityKind, *, limit: int, offset: int, now: datetime
    ) -> list[Record]:
        return self._ordered(kind, self._visible(kind, now))[offset : offset + limit]

    async def count_all(self, kind: EntityKind, *, now: datetime) -> int:
        return len(self._visible(kind, now))

    async def fulltext_page(
        self, kind: EntityKind, ts_query: str, *, limit: int, offset: int, now: datetime
    ) -> list[Record]:
        ranked = self._ranked(kind, ts_query, now)
        return [{**record, "rank": float(rank)} for rank, record in ranked][offset : offset + limit]

    async def fulltext_count(self, kind: EntityKind, ts_query: str, *, now: datetime) -> int:
        return len(self._ranked(kind, ts_query, now))

    async def contains_page(
        self,
        kind: EntityKind,
        query: str,
        tokens: list[str],
        *,
        limit: int,
        offset: int,
        now: datetime,
    ) -> list[Record]:
        matches = self._contains(kind, query, tokens, now)
        return self._ordered(kind, matches)[offset : offset + limit]

    async def contains_count(
        self, kind: EntityKind, query: str, tokens: list[str], *, now: datetime
    ) -> int:
        return len(self._contains(kind, query, tokens, now))

    async def get_record(self, kind: EntityKind, record_id: str) -> Record | None:
        for record in self._records[kind]:
            if record.get("id") != record_id:
                continue
            if kind is EntityKind.EVENT and record.get("status") != "public":
                return None
            return dict(record)
        return None

    def _visible(self, kind: EntityKind, now: datetime) -> list[Record]:
        records = self._records[kind]
        if kind is EntityKind.EVENT:
            return [
                record
                for record in records
                if record.get("status") == "public"
                and (start := _as_datetime(record.get("startAt"))) is not None
                and start >= now
            ]
        return list(records)

    def _ordered(self, kind: EntityKind, records: list[Record]) -> list[Record]:
        # Two stable sorts: id ascending as tie-breaker, then the default order.
        by_id = sorted(records, key=lambda record: str(record.get("id")))
        if kind is EntityKind.EVENT:
            return sorted(by_id, key=lambda record: _as_datetime(record.get("startAt")))
        return sorted(
            by_id,
            key=lambda record: _as_datetime(record.get("updatedAt")),
            reverse=True,
        )

    def _contains(
        self, kind: EntityKind, query: str, tokens: list[str], now: datetime
    ) -> list[Record]:
        needle = query.casefold()
        matches = []
        for record in self._visible(kind, now):
            if any(needle in _text(record, field).casefold() for field in _TEXT_FIELDS[kind]):
                matches.append(record)
                continue
            tags = _text(record, "tags")
            if any(token in tags for token in tokens):
                matches.append(record)
        return matches

    def _ranked(self, kind: EntityKind, ts_query: str, now: datetime) -> list[tuple[int, Record]]:
        terms = [term.casefold() for term in split_tsquery(ts_query)]
        if not terms:
            return []
        scored: list[tuple[int, Record]] = []
        for record in self._ordered(kind, self._visible(kind, now)):
            document = " ".join(_text(record, field) for field in _DOCUMENT_FIELDS[kind]).casefold()
            if all(term in document for term in terms):
                scored.append((sum(document.count(term) for term in terms), record))
        # Stable: equal ranks keep the default order.
        return sorted(scored, key=lambda pair: pair[0], reverse=True)
