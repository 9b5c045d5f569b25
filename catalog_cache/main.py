"""FastAPI application entrypoint."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from catalog_cache import __version__
from catalog_cache.api.v1 import v1_router
from catalog_cache.cache.backing import SqlBackingStore
from catalog_cache.cache.errors import BackingStoreError
from catalog_cache.cache.facade import get_cache
from catalog_cache.core.config import get_settings
from catalog_cache.workers.sweeper import run_sweeper

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    logging.getLogger("catalog_cache").setLevel(settings.log_level)

    cache = get_cache()
    backing = cache.backing

    # Startup: ensure the cache table exists; the cache still works without it
    if isinstance(backing, SqlBackingStore):
        try:
            await backing.create_table()
        except BackingStoreError as exc:
            logger.warning("Persistent cache tier unavailable at startup: %s", exc)

    sweeper = None
    if settings.cache_sweep_interval_seconds > 0:
        sweeper = asyncio.create_task(
            run_sweeper(cache, settings.cache_sweep_interval_seconds)
        )

    yield

    # Shutdown: stop the sweeper, release the backing engine
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    if isinstance(backing, SqlBackingStore):
        await backing.dispose()


app = FastAPI(
    title="Catalog Cache",
    version=__version__,
    description="Request-deduplicating TTL cache for the streaming catalog",
    lifespan=lifespan,
)

# ── API routes ───────────────────────────────────────────────
app.include_router(v1_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {"status": "ok"}
