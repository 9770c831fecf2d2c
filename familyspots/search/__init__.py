"""Spot and event search."""

from familyspots.search.memory_repository import InMemorySearchRepository
from familyspots.search.planner import SearchPlanner
from familyspots.search.provider import get_search_planner, reset_search_planner
from familyspots.search.repository import SearchRepository
from familyspots.search.sanitize import build_tsquery, highlight_search_terms, safe_parse_array
from familyspots.search.sql_repository import SqlSearchRepository
from familyspots.search.types import (
    EntityKind,
    RecordNotFoundError,
    SearchBackendError,
    SearchError,
    SearchMethod,
    SearchRequest,
    SearchResult,
)

__all__ = [
    "EntityKind",
    "InMemorySearchRepository",
    "RecordNotFoundError",
    "SearchBackendError",
    "SearchError",
    "SearchMethod",
    "SearchPlanner",
    "SearchRepository",
    "SearchRequest",
    "SearchResult",
    "SqlSearchRepository",
    "build_tsquery",
    "get_search_planner",
    "highlight_search_terms",
    "reset_search_planner",
    "safe_parse_array",
]
