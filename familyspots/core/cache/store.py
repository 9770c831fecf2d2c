from __future__ import annotations

import copy
import json
import time
from collections.abc import Callable
from typing import Any

from familyspots.logger import get_logger

from .codec import IdentityCodec
from .logging import log_cache_event
from .types import CacheCorruptionError, CacheEntry, CacheOptions, Codec, Lookup

logger = get_logger(__name__)

DEFAULT_CAPACITY = 1000
COMPRESSION_THRESHOLD_BYTES = 10_000


class CacheStore:
    """Bounded in-memory entry map.

    Eviction drops the entries with the oldest write timestamp first; reads
    do not refresh an entry's position. Every public method is a plain
    synchronous block so a single mutation is never split by an ``await``.
    """

    def __init__(
        self,
        *,
        capacity: int = DEFAULT_CAPACITY,
        codec: Codec | None = None,
        compression_threshold_bytes: int = COMPRESSION_THRESHOLD_BYTES,
        namespace: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._capacity = capacity
        self._codec = codec or IdentityCodec()
        self._threshold = compression_threshold_bytes
        self._namespace = namespace
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def codec(self) -> Codec:
        return self._codec

    def now(self) -> float:
        return self._clock()

    def set(self, key: str, value: Any, options: CacheOptions | None = None) -> None:
        options = options or CacheOptions()
        data: Any = value
        compressed = False

        if options.compress and isinstance(value, (dict, list)):
            try:
                serialized = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
                if len(serialized.encode("utf-8")) > self._threshold:
                    data = self._codec.compress(serialized)
                    compressed = True
            except (TypeError, ValueError) as exc:
                logger.warning(
                    "cache_compress_failed",
                    namespace=self._namespace,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )

        if not compressed and isinstance(value, (dict, list)):
            # Later mutations by the caller must not leak into the cache.
            data = copy.deepcopy(value)

        self._entries[key] = CacheEntry(
            data=data,
            timestamp=self._clock(),
            ttl_seconds=options.ttl_seconds,
            compressed=compressed,
        )
        self._enforce_capacity()

    def lookup(
        self,
        key: str,
        *,
        stale_while_revalidate_seconds: float | None = None,
    ) -> Lookup[Any] | None:
        """Return the value and its staleness, or None when unusable."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if entry.is_expired(now) and not stale_while_revalidate_seconds:
            # Strict by default: a grace window has to be asked for on each read.
            del self._entries[key]
            log_cache_event(namespace=self._namespace, cache_event="expired")
            return None

        stale = entry.is_stale(now, stale_while_revalidate_seconds)
        if stale:
            entry.stale = True

        if not entry.compressed:
            value = entry.data
            if isinstance(value, (dict, list)):
                value = copy.deepcopy(value)
            return Lookup(value=value, stale=stale)

        try:
            value = json.loads(self._codec.decompress(entry.data))
        except (CacheCorruptionError, ValueError) as exc:
            self._entries.pop(key, None)
            logger.warning(
                "cache_entry_corrupt",
                namespace=self._namespace,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            log_cache_event(namespace=self._namespace, cache_event="corrupt")
            return None
        return Lookup(value=value, stale=stale)

    def get(self, key: str, *, stale_while_revalidate_seconds: float | None = None) -> Any | None:
        found = self.lookup(key, stale_while_revalidate_seconds=stale_while_revalidate_seconds)
        return None if found is None else found.value

    def entry(self, key: str) -> CacheEntry[Any] | None:
        """Raw entry access without expiry handling."""
        return self._entries.get(key)

    def has(self, key: str) -> bool:
        return key in self._entries

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def size(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def sweep(self) -> int:
        """Delete every hard-expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in list(self._entries.items()) if entry.is_expired(now)]
        for key in expired:
            self._entries.pop(key, None)

        if expired:
            log_cache_event(
                namespace=self._namespace,
                cache_event="evict",
                detail=f"reason=expired count={len(expired)}",
            )
        return len(expired)

    def _enforce_capacity(self) -> None:
        surplus = len(self._entries) - self._capacity
        if surplus <= 0:
            return

        oldest = sorted(self._entries.items(), key=lambda item: item[1].timestamp)
        for key, _entry in oldest[:surplus]:
            del self._entries[key]

        log_cache_event(
            namespace=self._namespace,
            cache_event="evict",
            detail=f"reason=capacity count={surplus}",
        )
