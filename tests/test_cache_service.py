import asyncio

import pytest

from familyspots.core.cache import CacheOptions, CacheService, CacheStore
from familyspots.core.cache import stats as cache_stats

from .conftest import FakeClock

SWR = CacheOptions(ttl_seconds=1.0, stale_while_revalidate_seconds=0.2, background_refresh=True)


@pytest.mark.asyncio
async def test_cold_concurrent_reads_refresh_once(cache: CacheService) -> None:
    calls = 0

    async def refresh() -> dict:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.05)
        return {"items": [1, 2, 3]}

    results = await asyncio.gather(
        *(cache.get_or_refresh("search:spot:x", refresh, SWR) for _ in range(10))
    )

    assert calls == 1
    assert all(result == {"items": [1, 2, 3]} for result in results)
    assert cache.get("search:spot:x") == {"items": [1, 2, 3]}


@pytest.mark.asyncio
async def test_fresh_value_skips_refresh(cache: CacheService) -> None:
    cache.set("k", "cached", SWR)

    async def refresh() -> str:
        raise AssertionError("refresh must not run for a fresh entry")

    assert await cache.get_or_refresh("k", refresh, SWR) == "cached"


@pytest.mark.asyncio
async def test_stale_value_is_served_while_refreshing_in_background(
    cache: CacheService, clock: FakeClock
) -> None:
    cache.set("k", "old", SWR)
    clock.advance(0.85)

    release = asyncio.Event()
    calls = 0

    async def refresh() -> str:
        nonlocal calls
        calls += 1
        await release.wait()
        return "new"

    first = await asyncio.wait_for(cache.get_or_refresh("k", refresh, SWR), timeout=0.5)
    second = await asyncio.wait_for(cache.get_or_refresh("k", refresh, SWR), timeout=0.5)

    assert first == "old"
    assert second == "old"

    release.set()
    await cache.wait_for_background()

    assert calls == 1
    assert cache.get("k", SWR) == "new"
    assert cache_stats.snapshot()["test"]["stale"] >= 2


@pytest.mark.asyncio
async def test_background_failure_is_logged_and_dropped(
    cache: CacheService, clock: FakeClock
) -> None:
    cache.set("k", "old", SWR)
    clock.advance(0.9)

    async def refresh() -> str:
        raise RuntimeError("backend down")

    assert await cache.get_or_refresh("k", refresh, SWR) == "old"
    await cache.wait_for_background()

    assert cache_stats.snapshot()["test"]["refresh_failed"] == 1
    assert cache.get("k", SWR) == "old"


@pytest.mark.asyncio
async def test_foreground_refresh_failure_serves_stale_value(
    cache: CacheService, clock: FakeClock
) -> None:
    options = CacheOptions(ttl_seconds=1.0, stale_while_revalidate_seconds=0.2)
    cache.set("k", "old", options)
    clock.advance(0.9)

    async def refresh() -> str:
        raise RuntimeError("backend down")

    assert await cache.get_or_refresh("k", refresh, options) == "old"
    assert cache_stats.snapshot()["test"]["fallback"] == 1


@pytest.mark.asyncio
async def test_refresh_failure_propagates_when_nothing_is_cached(cache: CacheService) -> None:
    async def refresh() -> str:
        raise RuntimeError("backend down")

    with pytest.raises(RuntimeError, match="backend down"):
        await cache.get_or_refresh("k", refresh, SWR)

    assert not cache.in_flight("k")
    assert not cache.has("k")


@pytest.mark.asyncio
async def test_reader_without_window_sees_hard_expiry(
    cache: CacheService, clock: FakeClock
) -> None:
    cache.set("k", "old", CacheOptions(ttl_seconds=1.0, stale_while_revalidate_seconds=5.0))
    clock.advance(1.5)

    calls = 0

    async def refresh() -> str:
        nonlocal calls
        calls += 1
        return "new"

    assert await cache.get_or_refresh("k", refresh, CacheOptions(ttl_seconds=1.0)) == "new"
    assert calls == 1


@pytest.mark.asyncio
async def test_delete_and_clear_forget_in_flight_refreshes(cache: CacheService) -> None:
    release = asyncio.Event()

    async def refresh() -> str:
        await release.wait()
        return "v"

    pending = asyncio.create_task(cache.get_or_refresh("k", refresh, SWR))
    await asyncio.sleep(0)
    assert cache.in_flight("k")

    cache.delete("k")
    assert not cache.in_flight("k")

    cache.clear()
    assert cache.size() == 0

    release.set()
    assert await pending == "v"


@pytest.mark.asyncio
async def test_init_and_shutdown_manage_cleanup(store: CacheStore) -> None:
    service = CacheService(store, namespace="test", cleanup_interval_seconds=60)

    await service.init()
    assert service.cleanup.running

    await service.shutdown()
    assert not service.cleanup.running
