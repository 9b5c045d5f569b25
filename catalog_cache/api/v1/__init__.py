"""V1 API router aggregation."""

from fastapi import APIRouter

from catalog_cache.api.v1.cache import router as cache_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(cache_router)
