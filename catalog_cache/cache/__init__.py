"""Request-deduplicating TTL cache.

Usage from a service::

    from catalog_cache.cache import CACHE_TTL_LONG_SECONDS, build_cache_key, with_cache

    async def get_tv_details(tmdb_id: int) -> dict:
        key = build_cache_key("tmdb", "tv", tmdb_id)
        return await with_cache(key, CACHE_TTL_LONG_SECONDS, lambda: fetch_tv(tmdb_id))
"""

from catalog_cache.cache.backing import BackingStore, SqlBackingStore, StoredValue
from catalog_cache.cache.coordinator import Cache, CacheCounters
from catalog_cache.cache.errors import (
    BackingStoreError,
    CacheError,
    InvalidKeyError,
    SerializationError,
    StoreUnavailableError,
)
from catalog_cache.cache.facade import (
    CACHE_TTL_LONG_SECONDS,
    CACHE_TTL_MEDIUM_SECONDS,
    CACHE_TTL_SEARCH_SECONDS,
    CACHE_TTL_SHORT_SECONDS,
    build_cache,
    delete_cached_value,
    get_cache,
    get_cached_value,
    invalidate_cache_pattern,
    invalidate_cache_prefix,
    reset_cache,
    set_cache,
    set_cached_value,
    with_cache,
)
from catalog_cache.cache.keys import build_cache_key, compile_pattern, validate_key
from catalog_cache.cache.singleflight import SingleFlight
from catalog_cache.cache.store import MemoryStore
from catalog_cache.cache.tmdb import invalidate_tmdb_caches, invalidate_tmdb_id
from catalog_cache.cache.ttl_cache import TtlCache

__all__ = [
    "CACHE_TTL_LONG_SECONDS",
    "CACHE_TTL_MEDIUM_SECONDS",
    "CACHE_TTL_SEARCH_SECONDS",
    "CACHE_TTL_SHORT_SECONDS",
    "BackingStore",
    "BackingStoreError",
    "Cache",
    "CacheCounters",
    "CacheError",
    "InvalidKeyError",
    "MemoryStore",
    "SerializationError",
    "SingleFlight",
    "SqlBackingStore",
    "StoreUnavailableError",
    "StoredValue",
    "TtlCache",
    "build_cache",
    "build_cache_key",
    "compile_pattern",
    "delete_cached_value",
    "get_cache",
    "get_cached_value",
    "invalidate_cache_pattern",
    "invalidate_cache_prefix",
    "invalidate_tmdb_caches",
    "invalidate_tmdb_id",
    "reset_cache",
    "set_cache",
    "set_cached_value",
    "validate_key",
    "with_cache",
]
