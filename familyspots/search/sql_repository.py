"""SQLAlchemy implementation of the search repository.

Full-text queries target the PostgreSQL ``search_vector`` column with the
``simple`` configuration. On other backends they raise and the planner falls
back to substring search.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, Select, func, literal_column, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from familyspots.models import Event, Spot

from .types import EntityKind, Record, SearchBackendError

_TS_CONFIG = "simple"


def _model(kind: EntityKind) -> type[Spot] | type[Event]:
    return Spot if kind is EntityKind.SPOT else Event


def _base_filters(kind: EntityKind, now: datetime) -> list[ColumnElement[bool]]:
    if kind is EntityKind.EVENT:
        return [Event.status == "public", Event.start_at >= now]
    return []


def _detail_filters(kind: EntityKind) -> list[ColumnElement[bool]]:
    # Detail reads hide unpublished events but still serve ones that have started.
    if kind is EntityKind.EVENT:
        return [Event.status == "public"]
    return []


def _default_order(kind: EntityKind) -> list[Any]:
    if kind is EntityKind.EVENT:
        return [Event.start_at.asc(), Event.id.asc()]
    return [Spot.updated_at.desc(), Spot.id.asc()]


def _contains_predicate(kind: EntityKind, query: str, tokens: list[str]) -> ColumnElement[bool]:
    if kind is EntityKind.EVENT:
        text_columns = [Event.title, Event.city, Event.description]
        tags = Event.tags
    else:
        text_columns = [Spot.name, Spot.city, Spot.address]
        tags = Spot.tags
    clauses: list[ColumnElement[bool]] = [
        column.icontains(query, autoescape=True) for column in text_columns
    ]
    # Tags hold a serialised JSON array; token containment mirrors the stored text.
    clauses.extend(tags.contains(token, autoescape=True) for token in tokens)
    return or_(*clauses)


def _ts_query(ts_query: str) -> ColumnElement[Any]:
    return func.to_tsquery(_TS_CONFIG, ts_query)


def _ts_match(ts_query: str) -> ColumnElement[bool]:
    return literal_column("search_vector").op("@@")(_ts_query(ts_query))


class SqlSearchRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_page(
        self, kind: EntityKind, *, limit: int, offset: int, now: datetime
    ) -> list[Record]:
        model = _model(kind)
        stmt = (
            select(model)
            .where(*_base_filters(kind, now))
            .order_by(*_default_order(kind))
            .limit(limit)
            .offset(offset)
        )
        return await self._fetch_records(stmt)

    async def count_all(self, kind: EntityKind, *, now: datetime) -> int:
        model = _model(kind)
        stmt = select(func.count()).select_from(model).where(*_base_filters(kind, now))
        return await self._fetch_count(stmt)

    async def fulltext_page(
        self, kind: EntityKind, ts_query: str, *, limit: int, offset: int, now: datetime
    ) -> list[Record]:
        model = _model(kind)
        rank = func.ts_rank(literal_column("search_vector"), _ts_query(ts_query)).label("rank")
        stmt = (
            select(model, rank)
            .where(_ts_match(ts_query), *_base_filters(kind, now))
            .order_by(rank.desc(), *_default_order(kind))
            .limit(limit)
            .offset(offset)
        )
        async with self._session_factory() as session:
            try:
                rows = (await session.execute(stmt)).all()
            except SQLAlchemyError as exc:
                raise SearchBackendError(str(exc)) from exc
        return [{**row[0].to_record(), "rank": float(row[1])} for row in rows]

    async def fulltext_count(self, kind: EntityKind, ts_query: str, *, now: datetime) -> int:
        model = _model(kind)
        stmt = (
            select(func.count())
            .select_from(model)
            .where(_ts_match(ts_query), *_base_filters(kind, now))
        )
        return await self._fetch_count(stmt)

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
        model = _model(kind)
        stmt = (
            select(model)
            .where(_contains_predicate(kind, query, tokens), *_base_filters(kind, now))
            .order_by(*_default_order(kind))
            .limit(limit)
            .offset(offset)
        )
        return await self._fetch_records(stmt)

    async def contains_count(
        self, kind: EntityKind, query: str, tokens: list[str], *, now: datetime
    ) -> int:
        model = _model(kind)
        stmt = (
            select(func.count())
            .select_from(model)
            .where(_contains_predicate(kind, query, tokens), *_base_filters(kind, now))
        )
        return await self._fetch_count(stmt)

    async def get_record(self, kind: EntityKind, record_id: str) -> Record | None:
        model = _model(kind)
        stmt = select(model).where(model.id == record_id, *_detail_filters(kind))
        async with self._session_factory() as session:
            try:
                instance = (await session.execute(stmt)).scalar_one_or_none()
            except SQLAlchemyError as exc:
                raise SearchBackendError(str(exc)) from exc
        return None if instance is None else instance.to_record()

    async def _fetch_records(self, stmt: Select[Any]) -> list[Record]:
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as exc:
                raise SearchBackendError(str(exc)) from exc
            return [instance.to_record() for instance in result.scalars().all()]

    async def _fetch_count(self, stmt: Select[Any]) -> int:
        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
            except SQLAlchemyError as exc:
                raise SearchBackendError(str(exc)) from exc
            return int(result.scalar_one() or 0)
