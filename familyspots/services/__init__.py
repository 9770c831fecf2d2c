"""Services module."""

from familyspots.services.web_search_service import (
    WebSearchItem,
    WebSearchService,
    get_web_search_service,
    reset_web_search_service,
)

__all__ = [
    "WebSearchItem",
    "WebSearchService",
    "get_web_search_service",
    "reset_web_search_service",
]
