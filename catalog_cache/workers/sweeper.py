"""Periodic job — drop expired cache entries from every tier."""

from __future__ import annotations

import asyncio
import logging

from catalog_cache.cache.backing import SqlBackingStore
from catalog_cache.cache.coordinator import Cache
from catalog_cache.cache.errors import BackingStoreError

logger = logging.getLogger(__name__)


async def sweep_expired(cache: Cache) -> dict:
    """One sweep pass. Reads already ignore stale entries; this only frees memory."""
    memory = cache.prune_expired()
    backing = 0

    if isinstance(cache.backing, SqlBackingStore):
        try:
            backing = await cache.backing.prune_expired()
        except BackingStoreError as exc:
            logger.warning("Cache sweep: backing prune failed: %s", exc)

    if memory or backing:
        logger.debug("Cache sweep: pruned %d memory and %d backing entries", memory, backing)
    return {"memory": memory, "backing": backing}


async def run_sweeper(cache: Cache, interval_seconds: float) -> None:
    """Sweep every *interval_seconds* until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        await sweep_expired(cache)
