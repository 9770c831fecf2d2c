from __future__ import annotations

from familyspots.database import get_session_factory

from .planner import SearchPlanner
from .sql_repository import SqlSearchRepository

_search_planner: SearchPlanner | None = None


def get_search_planner() -> SearchPlanner:
    """Get the global search planner backed by the SQL repository."""
    global _search_planner
    if _search_planner is None:
        _search_planner = SearchPlanner(SqlSearchRepository(get_session_factory()))
    return _search_planner


def reset_search_planner() -> None:
    global _search_planner
    _search_planner = None
