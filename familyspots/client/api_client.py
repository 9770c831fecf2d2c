"""
HTTP client for the Family Spots API with a page cache in front of it.

Reads go through the page cache; ``prefetch`` warms it for links a user is
likely to open next; every mutation overwrites or drops the keys it makes
stale. Invalidation is manual: a new mutation method has to name the keys
it touches.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

import httpx

from familyspots.core.cache.keys import canonical_json
from familyspots.http_client import fetch_json
from familyspots.logger import get_logger

from .page_cache import PageCache

logger = get_logger(__name__)

SPOT_TTL_SECONDS = 60.0
EVENT_TTL_SECONDS = 60.0
FAMILY_TTL_SECONDS = 30.0
VISITS_TTL_SECONDS = 30.0
SEARCH_TTL_SECONDS = 30.0


def spot_key(spot_id: str) -> str:
    return f"spot:{spot_id}"


def event_key(event_id: str) -> str:
    return f"event:{event_id}"


def family_key(family_id: str) -> str:
    return f"family:{family_id}"


def family_visits_key(family_id: str) -> str:
    return f"visits:family:{family_id}"


def search_page_key(kind: str, params: dict[str, Any]) -> str:
    return f"search:{kind}:{canonical_json(params)}"


class FamilySpotsClient:
    def __init__(self, http: httpx.AsyncClient, cache: PageCache | None = None) -> None:
        self._http = http
        self.cache = cache or PageCache()
        self._prefetched: set[str] = set()

    # Reads

    async def get_spot(self, spot_id: str) -> dict[str, Any]:
        return await self._get_cached(
            spot_key(spot_id), f"/api/v1/spots/{spot_id}", SPOT_TTL_SECONDS
        )

    async def get_event(self, event_id: str) -> dict[str, Any]:
        return await self._get_cached(
            event_key(event_id), f"/api/v1/events/{event_id}", EVENT_TTL_SECONDS
        )

    async def get_family(self, family_id: str) -> dict[str, Any]:
        return await self._get_cached(
            family_key(family_id),
            f"/api/families/{family_id}",
            FAMILY_TTL_SECONDS,
            params={"includeMembers": "true"},
        )

    async def get_family_visits(self, family_id: str) -> dict[str, Any]:
        return await self._get_cached(
            family_visits_key(family_id), f"/api/families/{family_id}/visits", VISITS_TTL_SECONDS
        )

    async def search_spots(self, query: str, *, limit: int = 20, offset: int = 0) -> dict[str, Any]:
        return await self._search("spot", query, limit=limit, offset=offset)

    async def search_events(
        self, query: str, *, limit: int = 20, offset: int = 0
    ) -> dict[str, Any]:
        return await self._search("event", query, limit=limit, offset=offset)

    async def prefetch(self, href: str) -> bool:
        """Warm the cache for a page link; each href is fetched at most once."""
        if href in self._prefetched:
            return False

        loader = self._prefetch_loader(href)
        if loader is None:
            return False

        self._prefetched.add(href)
        try:
            await loader()
        except httpx.HTTPError as exc:
            # Prefetch is advisory; the real navigation will fetch again.
            self._prefetched.discard(href)
            logger.warning("prefetch_failed", href=href, error=str(exc))
            return False
        return True

    def _prefetch_loader(self, href: str) -> Callable[[], Awaitable[Any]] | None:
        parts = [part for part in href.split("?", 1)[0].split("/") if part]
        if len(parts) < 2 or parts[1] == "[id]":
            return None
        resource, resource_id = parts[0], parts[1]

        if len(parts) == 2:
            readers: dict[str, Callable[[str], Awaitable[Any]]] = {
                "spots": self.get_spot,
                "events": self.get_event,
                "families": self.get_family,
            }
            reader = readers.get(resource)
            return None if reader is None else partial(reader, resource_id)
        if len(parts) == 3 and resource == "families" and parts[2] == "visits":
            return partial(self.get_family_visits, resource_id)
        return None

    # Mutations

    async def create_spot(self, payload: dict[str, Any]) -> dict[str, Any]:
        spot = await self._send("POST", "/api/spots/create", json=payload)
        if spot.get("id"):
            self.cache.set(spot_key(str(spot["id"])), spot, SPOT_TTL_SECONDS)
        self.cache.delete_prefix("search:spot:")
        return spot

    async def update_spot(self, spot_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        spot = await self._send("PUT", f"/api/spots/{spot_id}", json=payload)
        self.cache.set(spot_key(spot_id), spot, SPOT_TTL_SECONDS)
        self.cache.delete_prefix("search:spot:")
        return spot

    async def delete_spot(self, spot_id: str) -> None:
        await self._send("DELETE", f"/api/spots/{spot_id}")
        self.cache.delete(spot_key(spot_id))
        self.cache.delete_prefix("search:spot:")

    async def set_visit_status(self, kind: str, target_id: str, status: str) -> dict[str, Any]:
        visit = await self._send("POST", f"/api/visits/{kind}s/{target_id}", json={"status": status})
        self.cache.delete_prefix("visits:")
        return visit

    async def join_family(self, invite_code: str) -> dict[str, Any]:
        family = await self._send(
            "POST", "/api/families/join-by-code", json={"inviteCode": invite_code}
        )
        if family.get("id"):
            self.cache.set(family_key(str(family["id"])), family, FAMILY_TTL_SECONDS)
        return family

    async def optimistic_update[T](
        self,
        key: str,
        optimistic_value: T,
        operation: Callable[[], Awaitable[T]],
        *,
        ttl_seconds: float = SPOT_TTL_SECONDS,
    ) -> T:
        """Show ``optimistic_value`` under ``key`` until ``operation`` settles.

        On success the real result replaces it; on failure the previous value
        is restored (or the key dropped) and the error re-raised.
        """
        previous = self.cache.get(key)
        self.cache.set(key, optimistic_value, ttl_seconds)
        try:
            result = await operation()
        except Exception:
            if previous is not None:
                self.cache.set(key, previous, ttl_seconds)
            else:
                self.cache.delete(key)
            raise
        self.cache.set(key, result, ttl_seconds)
        return result

    async def _search(self, kind: str, query: str, *, limit: int, offset: int) -> dict[str, Any]:
        params = {"q": query, "limit": limit, "offset": offset}
        return await self._get_cached(
            search_page_key(kind, params), f"/api/v1/search/{kind}s", SEARCH_TTL_SECONDS, params
        )

    async def _get_cached(
        self,
        key: str,
        path: str,
        ttl_seconds: float,
        params: dict[str, Any] | None = None,
    ) -> Any:
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        data = await fetch_json(self._http, path, params=params)
        self.cache.set(key, data, ttl_seconds)
        return data

    async def _send(self, method: str, path: str, *, json: Any = None) -> dict[str, Any]:
        response = await self._http.request(method, path, json=json)
        response.raise_for_status()
        if not response.content:
            return {}
        body = response.json()
        return body if isinstance(body, dict) else {"data": body}
