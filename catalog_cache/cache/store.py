"""In-memory TTL store — the first (and by default only) cache tier.

Every operation is synchronous: a single ``set`` or ``delete`` is never
partially visible to another coroutine.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from catalog_cache.cache.keys import compile_pattern, validate_prefix

V = TypeVar("V")


@dataclass(slots=True)
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class MemoryStore(Generic[V]):
    """Key → value map with per-entry expiry and optional LRU bound.

    An entry is fresh while ``clock() < expires_at``. Stale entries are
    dropped when read, when the bound is enforced, or by ``prune_expired``.
    """

    def __init__(
        self,
        *,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: OrderedDict[Hashable, CacheEntry[V]] = OrderedDict()
        self._max_entries = max_entries if max_entries and max_entries > 0 else None
        self._clock = clock

    @property
    def max_entries(self) -> int | None:
        return self._max_entries

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def get(self, key: Hashable, default: Any = None) -> V | Any:
        """Return the fresh value for *key*, else *default*."""
        entry = self._entries.get(key)
        if entry is None:
            return default
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return default
        if self._max_entries:
            self._entries.move_to_end(key)
        return entry.value

    def set(self, key: Hashable, value: V, ttl_seconds: float) -> None:
        """Store *value* for *ttl_seconds*.

        A non-positive TTL means "do not cache": any previous entry is removed
        and nothing is stored, so the next read misses.
        """
        if ttl_seconds <= 0:
            self._entries.pop(key, None)
            return

        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
        self._entries.move_to_end(key)
        if self._max_entries and len(self._entries) > self._max_entries:
            self.prune_expired()
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def expires_at(self, key: Hashable) -> float | None:
        entry = self._entries.get(key)
        if entry is None or entry.expires_at <= self._clock():
            return None
        return entry.expires_at

    def delete(self, key: Hashable) -> bool:
        return self._entries.pop(key, None) is not None

    def delete_by_prefix(self, prefix: str) -> int:
        return len(self.pop_prefix(prefix))

    def delete_by_pattern(self, pattern: str) -> int:
        return len(self.pop_pattern(pattern))

    def pop_prefix(self, prefix: str) -> list[str]:
        """Remove every string key starting with *prefix*; return the keys."""
        validate_prefix(prefix)
        return self._pop_where(lambda key: key.startswith(prefix))

    def pop_pattern(self, pattern: str) -> list[str]:
        """Remove every string key matching *pattern*; return the keys."""
        matches = compile_pattern(pattern)
        return self._pop_where(matches)

    def _pop_where(self, predicate: Callable[[str], bool]) -> list[str]:
        # Stale matches are dropped too but only fresh ones are reported
        now = self._clock()
        removed: list[str] = []
        doomed = [key for key in self._entries if isinstance(key, str) and predicate(key)]
        for key in doomed:
            if self._entries.pop(key).expires_at > now:
                removed.append(key)
        return removed

    def prune_expired(self) -> int:
        """Drop every stale entry; return how many were dropped."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def pop_all(self) -> list[Hashable]:
        """Remove every entry; return the keys that were still fresh."""
        now = self._clock()
        removed = [key for key, entry in self._entries.items() if entry.expires_at > now]
        self._entries.clear()
        return removed

    def keys(self) -> list[Hashable]:
        """Snapshot of the keys currently held (fresh or not yet pruned)."""
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return self.expires_at(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)
