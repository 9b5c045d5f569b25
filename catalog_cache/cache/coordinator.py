"""The cache coordinator: tiered lookups, single-flight population, invalidation."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from catalog_cache.cache.backing import BackingStore, StoredValue
from catalog_cache.cache.errors import BackingStoreError
from catalog_cache.cache.keys import compile_pattern, validate_key, validate_prefix
from catalog_cache.cache.singleflight import SingleFlight
from catalog_cache.cache.store import MemoryStore
from catalog_cache.models.cache_entry import CacheStats

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheCounters:
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    failures: int = 0


class Cache:
    """Request-deduplicating TTL cache.

    The memory store is authoritative for reads; the optional backing store
    is a best-effort second tier whose failures only ever cost a recompute.
    """

    def __init__(
        self,
        store: MemoryStore[Any] | None = None,
        *,
        backing: BackingStore | None = None,
    ) -> None:
        self._store: MemoryStore[Any] = store if store is not None else MemoryStore()
        self._backing = backing
        self._flights = SingleFlight()
        self.counters = CacheCounters()

    @property
    def store(self) -> MemoryStore[Any]:
        return self._store

    @property
    def backing(self) -> BackingStore | None:
        return self._backing

    @property
    def in_flight(self) -> int:
        return len(self._flights)

    # ── Population ───────────────────────────────────────────

    async def with_cache(
        self,
        key: str,
        ttl_seconds: float,
        factory: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the cached value for *key*, computing it with *factory* on a miss.

        Concurrent calls for the same key share one factory invocation. A
        factory exception reaches every waiting caller unchanged and is not
        cached. A non-positive *ttl_seconds* returns the result without
        storing it.
        """
        validate_key(key)

        value = self._store.get(key, _MISSING)
        if value is not _MISSING:
            self.counters.hits += 1
            return value

        if key in self._flights:
            self.counters.coalesced += 1
        else:
            self.counters.misses += 1

        restored: StoredValue | None = None

        async def load() -> T:
            nonlocal restored
            if self._backing is not None:
                restored = await self._read_backing(self._backing, key)
                if restored is not None:
                    return restored.value
            try:
                return await factory()
            except Exception:
                self.counters.failures += 1
                raise

        async def commit(result: T) -> None:
            if restored is not None:
                self._store.set(key, result, restored.ttl_remaining)
                return
            self._store.set(key, result, ttl_seconds)
            await self._write_backing(key, result, ttl_seconds)

        return await self._flights.do(key, load, commit)

    # ── Direct access ────────────────────────────────────────

    async def get(self, key: str) -> Any | None:
        """Cached value for *key* from either tier, or None."""
        validate_key(key)
        value = self._store.get(key, _MISSING)
        if value is not _MISSING:
            return value
        if self._backing is None:
            return None
        restored = await self._read_backing(self._backing, key)
        if restored is None:
            return None
        self._store.set(key, restored.value, restored.ttl_remaining)
        return restored.value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        validate_key(key)
        self._store.set(key, value, ttl_seconds)
        await self._write_backing(key, value, ttl_seconds)

    # ── Invalidation ─────────────────────────────────────────

    async def invalidate_key(self, key: str) -> bool:
        """Drop *key* from every tier; True when something was removed."""
        validate_key(key)
        self._flights.mark_stale(lambda k: k == key)
        removed = self._store.delete(key)
        if self._backing is not None:
            try:
                removed = await self._backing.delete(key) or removed
            except BackingStoreError as exc:
                logger.warning("Backing delete failed for %s: %s", key, exc)
        return removed

    async def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with *prefix*; return how many were removed."""
        validate_prefix(prefix)
        self._flights.mark_stale(lambda k: isinstance(k, str) and k.startswith(prefix))
        removed = set(self._store.pop_prefix(prefix))
        if self._backing is not None:
            try:
                removed.update(await self._backing.delete_by_prefix(prefix))
            except BackingStoreError as exc:
                logger.warning("Backing prefix invalidation failed for %s: %s", prefix, exc)
        return len(removed)

    async def invalidate_pattern(self, pattern: str) -> int:
        """Drop every key matching *pattern* (glob, or ``re:<regex>``)."""
        matches = compile_pattern(pattern)
        self._flights.mark_stale(lambda k: isinstance(k, str) and matches(k))
        removed = set(self._store.pop_pattern(pattern))
        if self._backing is not None:
            try:
                removed.update(await self._backing.delete_by_pattern(pattern))
            except BackingStoreError as exc:
                logger.warning("Backing pattern invalidation failed for %s: %s", pattern, exc)
        return len(removed)

    async def clear(self) -> int:
        """Drop every entry from every tier; return how many keys were removed."""
        self._flights.mark_stale(lambda k: True)
        removed = set(self._store.pop_all())
        if self._backing is not None:
            try:
                removed.update(await self._backing.clear())
            except BackingStoreError as exc:
                logger.warning("Backing clear failed: %s", exc)
        return len(removed)

    def prune_expired(self) -> int:
        return self._store.prune_expired()

    def stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._store),
            in_flight=len(self._flights),
            max_entries=self._store.max_entries,
            backing=self._backing is not None,
            hits=self.counters.hits,
            misses=self.counters.misses,
            coalesced=self.counters.coalesced,
            failures=self.counters.failures,
        )

    # ── Backing tier ─────────────────────────────────────────

    async def _read_backing(self, backing: BackingStore, key: str) -> StoredValue | None:
        try:
            return await backing.get(key)
        except BackingStoreError as exc:
            logger.warning("Backing read failed for %s, treating as miss: %s", key, exc)
            return None

    async def _write_backing(self, key: str, value: Any, ttl_seconds: float) -> None:
        if self._backing is None:
            return
        try:
            await self._backing.set(key, value, ttl_seconds)
        except BackingStoreError as exc:
            logger.warning("Backing write failed for %s: %s", key, exc)
