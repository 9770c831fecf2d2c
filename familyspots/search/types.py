from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

MIN_LIMIT = 1
MAX_LIMIT = 50
DEFAULT_LIMIT = 20

type Record = dict[str, Any]


class EntityKind(StrEnum):
    SPOT = "spot"
    EVENT = "event"


class SearchMethod(StrEnum):
    FULLTEXT = "fulltext"
    LEGACY = "legacy"


class SearchError(Exception):
    """Base class for search failures."""


class SearchBackendError(SearchError):
    """The persistence backend could not run a search query."""


class RecordNotFoundError(SearchError):
    """No visible spot or event has the requested id."""


@dataclass(frozen=True, slots=True)
class SearchRequest:
    query: str = ""
    limit: int = DEFAULT_LIMIT
    offset: int = 0
    use_full_text: bool = True

    def bounded(self) -> SearchRequest:
        return replace(
            self,
            limit=min(max(self.limit, MIN_LIMIT), MAX_LIMIT),
            offset=max(self.offset, 0),
        )


@dataclass(slots=True)
class SearchResult:
    items: list[Record] = field(default_factory=list)
    total: int = 0
    next_offset: int | None = None
    method: SearchMethod = SearchMethod.LEGACY

    @classmethod
    def page(
        cls, items: list[Record], *, total: int, offset: int, method: SearchMethod
    ) -> SearchResult:
        consumed = offset + len(items)
        return cls(
            items=items,
            total=total,
            next_offset=consumed if consumed < total else None,
            method=method,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "nextOffset": self.next_offset,
            "method": self.method.value,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SearchResult:
        return cls(
            items=list(payload.get("items", [])),
            total=int(payload.get("total", 0)),
            next_offset=payload.get("nextOffset"),
            method=SearchMethod(payload.get("method", SearchMethod.LEGACY)),
        )
