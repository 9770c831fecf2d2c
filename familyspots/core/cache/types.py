from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

type CacheNamespace = str

type RefreshFn[T] = Callable[[], Awaitable[T]]


class CacheError(Exception):
    """Base class for cache-internal failures."""


class CacheCorruptionError(CacheError):
    """A stored payload could not be decompressed or deserialised."""


class Codec(Protocol):
    name: str

    def compress(self, text: str) -> bytes: ...

    def decompress(self, data: bytes) -> str: ...


@dataclass(frozen=True, slots=True)
class CacheOptions:
    ttl_seconds: float = 300.0
    # None or 0 disables stale serving for the read.
    stale_while_revalidate_seconds: float | None = None
    compress: bool = False
    background_refresh: bool = False


@dataclass(slots=True)
class CacheEntry[T]:
    data: T | bytes
    timestamp: float
    ttl_seconds: float
    compressed: bool = False
    stale: bool = False

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_expired(self, now: float) -> bool:
        return self.age(now) > self.ttl_seconds

    def is_stale(self, now: float, stale_while_revalidate_seconds: float | None) -> bool:
        if not stale_while_revalidate_seconds:
            return False
        return self.age(now) > self.ttl_seconds - stale_while_revalidate_seconds


@dataclass(frozen=True, slots=True)
class Lookup[T]:
    value: T
    stale: bool
