"""Invalidation helpers for cached TMDB metadata.

TMDB lookups are cached under ``tmdb:<media>:<id>[:<sub>...]`` keys, e.g.
``tmdb:tv:603``, ``tmdb:tv:603:season:1``, ``tmdb:movie:27205:credits``.
"""

from __future__ import annotations

from typing import Literal

from catalog_cache.cache.facade import (
    get_cache,
    invalidate_cache_pattern,
    invalidate_cache_prefix,
)
from catalog_cache.cache.keys import KEY_DELIMITER, build_cache_key

TMDB_NAMESPACE = "tmdb"

MediaType = Literal["movie", "tv"]
MEDIA_TYPES: tuple[MediaType, ...] = ("movie", "tv")


async def invalidate_tmdb_caches(pattern: str | None = None) -> int:
    """Drop entries matching *pattern*, or every TMDB entry when omitted."""
    if pattern:
        return await invalidate_cache_pattern(pattern)
    return await invalidate_cache_prefix(TMDB_NAMESPACE + KEY_DELIMITER)


async def invalidate_tmdb_id(tmdb_id: int, media_type: MediaType | None = None) -> int:
    """Drop one title's entries: details, seasons, credits, recommendations."""
    media_types = (media_type,) if media_type else MEDIA_TYPES
    removed = 0
    for media in media_types:
        base = build_cache_key(TMDB_NAMESPACE, media, tmdb_id)
        # The exact key, then its sub-keys; a bare prefix would also hit 6031
        removed += int(await get_cache().invalidate_key(base))
        removed += await invalidate_cache_prefix(base + KEY_DELIMITER)
    return removed
