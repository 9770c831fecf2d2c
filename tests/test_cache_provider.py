from familyspots.core.cache import get_cache_service, options_for
from familyspots.core.cache import stats as cache_stats


def test_cache_service_is_a_process_singleton() -> None:
    assert get_cache_service() is get_cache_service()


def test_built_service_uses_settings() -> None:
    service = get_cache_service()

    assert service.store.capacity == 1000
    assert service.store.codec.name == "gzip"


def test_search_pages_are_compressed_and_refreshed_in_background() -> None:
    options = options_for("search")

    assert options.compress is True
    assert options.background_refresh is True
    assert options.stale_while_revalidate_seconds


def test_unknown_namespace_has_no_stale_window() -> None:
    options = options_for("other")

    assert options.stale_while_revalidate_seconds is None
    assert options.background_refresh is False


def test_hit_ratio_counts_stale_reads_as_served() -> None:
    assert cache_stats.hit_ratio({"hit": 1, "stale": 1, "miss": 2}) == 0.5
    assert cache_stats.hit_ratio({}) is None
