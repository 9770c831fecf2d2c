import gzip
import random

import pytest

from familyspots.core.cache import CacheOptions, CacheStore, GzipCodec
from familyspots.core.cache import stats as cache_stats

from .conftest import FakeClock


def test_value_is_served_until_ttl_then_removed(store: CacheStore, clock: FakeClock) -> None:
    store.set("k", {"v": 1}, CacheOptions(ttl_seconds=10))

    clock.advance(9.999)
    assert store.get("k") == {"v": 1}

    clock.advance(0.002)
    assert store.get("k") is None
    assert not store.has("k")


def test_stale_window_serves_and_flags_entry(store: CacheStore, clock: FakeClock) -> None:
    store.set("k", "value", CacheOptions(ttl_seconds=1.0))

    clock.advance(0.85)
    found = store.lookup("k", stale_while_revalidate_seconds=0.2)

    assert found is not None
    assert found.value == "value"
    assert found.stale is True
    assert store.entry("k").stale is True


def test_stale_window_is_opt_in_per_read(store: CacheStore, clock: FakeClock) -> None:
    store.set("k", "value", CacheOptions(ttl_seconds=1.0, stale_while_revalidate_seconds=0.5))

    clock.advance(1.1)

    # A reader without a window treats the entry as hard expired.
    assert store.lookup("k") is None
    assert not store.has("k")


def test_zero_stale_window_means_no_stale_policy(store: CacheStore, clock: FakeClock) -> None:
    store.set("k", "value", CacheOptions(ttl_seconds=1.0))

    clock.advance(0.9)
    found = store.lookup("k", stale_while_revalidate_seconds=0)
    assert found is not None and found.stale is False

    clock.advance(0.2)
    assert store.lookup("k", stale_while_revalidate_seconds=0) is None


def test_capacity_evicts_oldest_timestamps_regardless_of_insertion_order(clock: FakeClock) -> None:
    capacity = 10
    store = CacheStore(capacity=capacity, namespace="test", clock=clock)

    timestamps = list(range(capacity + 5))
    random.Random(7).shuffle(timestamps)

    for ts in timestamps:
        clock.now = float(ts)
        store.set(f"k{ts}", ts, CacheOptions(ttl_seconds=10_000))

    assert store.size() == capacity
    survivors = {ts for ts in timestamps if store.has(f"k{ts}")}
    assert survivors == set(range(5, capacity + 5))


def test_capacity_drops_five_oldest_for_monotonic_writes(clock: FakeClock) -> None:
    store = CacheStore(capacity=10, namespace="test", clock=clock)

    for index in range(15):
        clock.advance(1)
        store.set(f"k{index}", index)

    assert store.size() == 10
    assert [store.has(f"k{i}") for i in range(5)] == [False] * 5
    assert all(store.has(f"k{i}") for i in range(5, 15))
    assert cache_stats.snapshot()["test"]["evict"] == 5


def test_large_payload_is_compressed_and_round_trips(store: CacheStore) -> None:
    value = {"items": [{"id": i, "name": "親水公園" * 20} for i in range(100)]}

    store.set("big", value, CacheOptions(compress=True))

    entry = store.entry("big")
    assert entry is not None
    assert entry.compressed is True
    assert isinstance(entry.data, bytes)
    assert store.get("big") == value


def test_small_payload_is_not_compressed(store: CacheStore) -> None:
    store.set("small", {"a": 1}, CacheOptions(compress=True))

    entry = store.entry("small")
    assert entry is not None
    assert entry.compressed is False


def test_corrupt_payload_is_dropped_as_a_miss(store: CacheStore) -> None:
    store.set("big", ["x" * 20_000], CacheOptions(compress=True))
    entry = store.entry("big")
    assert entry is not None and entry.compressed
    entry.data = b"not gzip at all"

    assert store.get("big") is None
    assert not store.has("big")
    assert cache_stats.snapshot()["test"]["corrupt"] == 1


def test_truncated_gzip_payload_is_corrupt(clock: FakeClock) -> None:
    store = CacheStore(codec=GzipCodec(), namespace="test", clock=clock)
    store.set("big", ["y" * 20_000], CacheOptions(compress=True))
    entry = store.entry("big")
    assert entry is not None
    entry.data = gzip.compress(b'["y"')[:-4]

    assert store.get("big") is None


def test_unserialisable_value_is_stored_uncompressed(store: CacheStore) -> None:
    value = {"when": object(), "pad": "z" * 20_000}

    store.set("k", value, CacheOptions(compress=True))

    entry = store.entry("k")
    assert entry is not None
    assert entry.compressed is False
    assert store.get("k")["pad"] == value["pad"]


def test_sweep_removes_only_hard_expired_entries(store: CacheStore, clock: FakeClock) -> None:
    store.set("short", 1, CacheOptions(ttl_seconds=5))
    store.set("long", 2, CacheOptions(ttl_seconds=500))

    clock.advance(10)

    assert store.sweep() == 1
    assert not store.has("short")
    assert store.has("long")


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        CacheStore(capacity=0)


def test_cached_containers_are_isolated_from_caller_mutation(store: CacheStore) -> None:
    value = {"items": [1, 2]}
    store.set("k", value)

    value["items"].append(3)
    assert store.get("k") == {"items": [1, 2]}

    read = store.get("k")
    read["items"].clear()
    assert store.get("k") == {"items": [1, 2]}
