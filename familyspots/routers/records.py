"""Single spot and event reads."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from familyspots.core.cache import CacheService, get_cache_service, options_for, resource_key
from familyspots.search import EntityKind, RecordNotFoundError, SearchPlanner, get_search_planner

router = APIRouter()


async def load_record(
    kind: EntityKind,
    record_id: str,
    cache: CacheService,
    planner: SearchPlanner,
) -> dict[str, Any]:
    async def refresh() -> dict[str, Any]:
        record = await planner.get(kind, record_id)
        if record is None:
            raise RecordNotFoundError(f"{kind.value} {record_id} not found")
        return record

    try:
        return await cache.get_or_refresh(
            resource_key(kind.value, record_id), refresh, options_for(kind.value)
        )
    except RecordNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.get("/spots/{spot_id}")
async def get_spot(
    spot_id: str,
    cache: CacheService = Depends(get_cache_service),
    planner: SearchPlanner = Depends(get_search_planner),
) -> dict[str, Any]:
    return await load_record(EntityKind.SPOT, spot_id, cache, planner)


@router.get("/events/{event_id}")
async def get_event(
    event_id: str,
    cache: CacheService = Depends(get_cache_service),
    planner: SearchPlanner = Depends(get_search_planner),
) -> dict[str, Any]:
    return await load_record(EntityKind.EVENT, event_id, cache, planner)
