"""Import all models so SQLModel.metadata picks them up."""

from catalog_cache.models.cache_entry import CacheRecord, CacheStats

__all__ = [
    "CacheRecord",
    "CacheStats",
]
