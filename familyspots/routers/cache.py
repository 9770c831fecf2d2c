"""Cache observability endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from familyspots.core.cache import CacheService, get_cache_service
from familyspots.core.cache import stats as cache_stats

router = APIRouter()


class NamespaceStats(BaseModel):
    counts: dict[str, int]
    hit_ratio: float | None


class CacheStatsResponse(BaseModel):
    entries: int
    capacity: int
    codec: str
    namespaces: dict[str, NamespaceStats]


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats_snapshot(
    cache: CacheService = Depends(get_cache_service),
) -> CacheStatsResponse:
    """Counters per namespace since process start; no keys or payloads."""
    snapshot = cache_stats.snapshot()
    return CacheStatsResponse(
        entries=cache.size(),
        capacity=cache.store.capacity,
        codec=cache.store.codec.name,
        namespaces={
            ns: NamespaceStats(counts=counts, hit_ratio=cache_stats.hit_ratio(counts))
            for ns, counts in snapshot.items()
        },
    )
