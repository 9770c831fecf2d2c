"""Test fixtures and configuration."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from familyspots.core.cache import CacheService, CacheStore, GzipCodec, get_cache_service
from familyspots.core.cache import provider as cache_provider
from familyspots.core.cache import stats as cache_stats
from familyspots.main import app
from familyspots.search import InMemorySearchRepository, SearchPlanner, get_search_planner

from .factories import FIXED_NOW, sample_events, sample_spots


class FakeClock:
    """Monotonic clock driven by the test."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_cache_state() -> Iterator[None]:
    cache_stats.reset()
    cache_provider.reset_cache_service()
    yield
    cache_stats.reset()
    cache_provider.reset_cache_service()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> CacheStore:
    return CacheStore(capacity=10, codec=GzipCodec(), namespace="test", clock=clock)


@pytest.fixture
def cache(store: CacheStore) -> CacheService:
    return CacheService(store, namespace="test")


@pytest.fixture
def repository() -> InMemorySearchRepository:
    return InMemorySearchRepository(spots=sample_spots(), events=sample_events())


@pytest.fixture
def planner(repository: InMemorySearchRepository) -> SearchPlanner:
    return SearchPlanner(repository, clock=lambda: FIXED_NOW)


@pytest.fixture
def client(cache: CacheService, planner: SearchPlanner) -> Iterator[TestClient]:
    """Test client with the in-memory repository and a test cache injected."""
    app.dependency_overrides[get_cache_service] = lambda: cache
    app.dependency_overrides[get_search_planner] = lambda: planner
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
