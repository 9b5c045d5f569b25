"""Service-local TTL cache.

For memoization that does not belong in the shared cache: per-service lookup
tables, small derived values, anything keyed by something other than a
string. Single-flight on ``get_or_set`` like the shared cache, no backing
tier, no invalidation by prefix.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

from catalog_cache.cache.singleflight import SingleFlight
from catalog_cache.cache.store import MemoryStore

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class TtlCache(Generic[K, V]):
    def __init__(
        self,
        ttl_seconds: float,
        *,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = max(0.0, ttl_seconds)
        self._store: MemoryStore[V] = MemoryStore(max_entries=max_entries, clock=clock)
        self._flights = SingleFlight()

    def _ttl_for(self, ttl_seconds: float | None) -> float:
        return self._ttl if ttl_seconds is None else max(0.0, ttl_seconds)

    def get(self, key: K) -> V | None:
        return self._store.get(key)

    def set(self, key: K, value: V, ttl_seconds: float | None = None) -> None:
        self._store.set(key, value, self._ttl_for(ttl_seconds))

    async def get_or_set(
        self,
        key: K,
        loader: Callable[[], Awaitable[V]],
        ttl_seconds: float | None = None,
    ) -> V:
        cached = self._store.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        async def commit(value: V) -> None:
            self.set(key, value, ttl_seconds)

        return await self._flights.do(key, loader, commit)

    def delete(self, key: K) -> None:
        self._flights.mark_stale(lambda k: k == key)
        self._store.delete(key)

    def clear(self) -> None:
        self._store.clear()
        self._flights.mark_stale(lambda k: True)

    def size(self) -> int:
        return len(self._store)
