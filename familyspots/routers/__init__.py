"""Main API router."""

from fastapi import APIRouter

from familyspots.routers.cache import router as cache_router
from familyspots.routers.records import router as records_router
from familyspots.routers.search import router as search_router
from familyspots.routers.websearch import router as websearch_router

api_router = APIRouter()
api_router.include_router(search_router, prefix="/search", tags=["search"])
api_router.include_router(records_router, tags=["records"])
api_router.include_router(websearch_router, prefix="/websearch", tags=["websearch"])
api_router.include_router(cache_router, prefix="/cache", tags=["cache"])
