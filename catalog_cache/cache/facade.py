"""Process-wide cache instance and the module-level API used by services.

The instance is created lazily from settings on first use and lives until the
process exits. Tests and alternative wiring inject their own with
``set_cache`` and drop it again with ``reset_cache``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from catalog_cache.cache.backing import SqlBackingStore
from catalog_cache.cache.coordinator import Cache
from catalog_cache.cache.store import MemoryStore
from catalog_cache.core.config import Settings, get_settings

T = TypeVar("T")

_settings = get_settings()

CACHE_TTL_SHORT_SECONDS = _settings.cache_ttl_short
CACHE_TTL_MEDIUM_SECONDS = _settings.cache_ttl_medium
CACHE_TTL_LONG_SECONDS = _settings.cache_ttl_long
CACHE_TTL_SEARCH_SECONDS = _settings.cache_ttl_search

_cache: Cache | None = None


def build_cache(settings: Settings) -> Cache:
    """Wire a Cache from settings: bounded memory tier, optional SQL tier."""
    backing = None
    if settings.cache_backing_url:
        backing = SqlBackingStore.from_url(
            settings.cache_backing_url, namespace=settings.cache_namespace
        )
    store: MemoryStore[Any] = MemoryStore(max_entries=settings.cache_memory_max_items)
    return Cache(store, backing=backing)


def get_cache() -> Cache:
    global _cache
    if _cache is None:
        _cache = build_cache(get_settings())
    return _cache


def set_cache(cache: Cache) -> None:
    global _cache
    _cache = cache


def reset_cache() -> None:
    global _cache
    _cache = None


async def with_cache(key: str, ttl_seconds: float, factory: Callable[[], Awaitable[T]]) -> T:
    return await get_cache().with_cache(key, ttl_seconds, factory)


async def get_cached_value(key: str) -> Any | None:
    return await get_cache().get(key)


async def set_cached_value(key: str, value: Any, ttl_seconds: float) -> None:
    await get_cache().set(key, value, ttl_seconds)


async def delete_cached_value(key: str) -> None:
    await get_cache().invalidate_key(key)


async def invalidate_cache_prefix(prefix: str) -> int:
    return await get_cache().invalidate_prefix(prefix)


async def invalidate_cache_pattern(pattern: str) -> int:
    return await get_cache().invalidate_pattern(pattern)
