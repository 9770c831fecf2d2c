"""SQL repository against SQLite.

SQLite has no ``to_tsquery``/``search_vector``, so full-text requests fail
at the backend and exercise the substring fallback end to end.
"""

import json
from collections.abc import AsyncIterator
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from familyspots.database import Base
from familyspots.models import Event, Spot
from familyspots.search import (
    EntityKind,
    SearchBackendError,
    SearchMethod,
    SearchPlanner,
    SearchRequest,
    SqlSearchRepository,
)

NOW = datetime(2025, 6, 1, 9, 0)


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all(
            [
                Spot(
                    id="s1",
                    name="沼津港 親水公園",
                    city="沼津市",
                    address="沼津市 1-1",
                    tags=json.dumps(["公園"], ensure_ascii=False),
                    images="[]",
                    created_at=NOW,
                    updated_at=NOW - timedelta(days=1),
                ),
                Spot(
                    id="s2",
                    name="100% Fun Playland",
                    city="Shizuoka",
                    tags=json.dumps(["playground"]),
                    created_at=NOW,
                    updated_at=NOW - timedelta(days=2),
                ),
                Spot(
                    id="s3",
                    name="Kids Science Museum",
                    city="Tokyo",
                    tags=json.dumps(["museum"]),
                    created_at=NOW,
                    updated_at=NOW,
                ),
                Event(
                    id="e1",
                    title="夏祭り",
                    city="沼津市",
                    start_at=NOW + timedelta(days=3),
                    status="public",
                    created_at=NOW,
                    updated_at=NOW,
                ),
                Event(
                    id="e2",
                    title="Past Fair",
                    start_at=NOW - timedelta(days=3),
                    status="public",
                    created_at=NOW,
                    updated_at=NOW,
                ),
                Event(
                    id="e3",
                    title="Draft Meetup",
                    start_at=NOW + timedelta(days=2),
                    status="draft",
                    created_at=NOW,
                    updated_at=NOW,
                ),
            ]
        )
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
def repo(session_factory) -> SqlSearchRepository:
    return SqlSearchRepository(session_factory)


@pytest.mark.asyncio
async def test_list_page_orders_by_updated_desc(repo: SqlSearchRepository) -> None:
    rows = await repo.list_page(EntityKind.SPOT, limit=10, offset=0, now=NOW)

    assert [row["id"] for row in rows] == ["s3", "s1", "s2"]
    assert await repo.count_all(EntityKind.SPOT, now=NOW) == 3


@pytest.mark.asyncio
async def test_contains_matches_text_or_tag_tokens(repo: SqlSearchRepository) -> None:
    rows = await repo.contains_page(
        EntityKind.SPOT, "沼津 公園", ["沼津", "公園"], limit=10, offset=0, now=NOW
    )

    assert [row["id"] for row in rows] == ["s1"]


@pytest.mark.asyncio
async def test_contains_escapes_like_wildcards(repo: SqlSearchRepository) -> None:
    literal = await repo.contains_count(EntityKind.SPOT, "100%", ["100%"], now=NOW)
    wildcard_only = await repo.contains_count(EntityKind.SPOT, "%", ["%"], now=NOW)

    assert literal == 1
    assert wildcard_only == 1


@pytest.mark.asyncio
async def test_events_exclude_past(repo: SqlSearchRepository) -> None:
    rows = await repo.list_page(EntityKind.EVENT, limit=10, offset=0, now=NOW)

    assert [row["id"] for row in rows] == ["e1"]


@pytest.mark.asyncio
async def test_full_text_raises_backend_error_without_postgres(repo: SqlSearchRepository) -> None:
    with pytest.raises(SearchBackendError):
        await repo.fulltext_page(EntityKind.SPOT, "公園", limit=10, offset=0, now=NOW)


@pytest.mark.asyncio
async def test_planner_falls_back_to_substring_search(repo: SqlSearchRepository) -> None:
    planner = SearchPlanner(repo, clock=lambda: NOW)

    result = await planner.search(EntityKind.SPOT, SearchRequest(query="沼津 公園"))

    assert result.method is SearchMethod.LEGACY
    assert [item["id"] for item in result.items] == ["s1"]
    assert result.items[0]["tags"] == ["公園"]


@pytest.mark.asyncio
async def test_get_record(repo: SqlSearchRepository) -> None:
    record = await repo.get_record(EntityKind.EVENT, "e1")

    assert record is not None
    assert record["title"] == "夏祭り"
    assert await repo.get_record(EntityKind.EVENT, "missing") is None


@pytest.mark.asyncio
async def test_get_record_hides_unpublished_events(repo: SqlSearchRepository) -> None:
    assert await repo.get_record(EntityKind.EVENT, "e3") is None
    assert (await repo.get_record(EntityKind.EVENT, "e2"))["title"] == "Past Fair"
