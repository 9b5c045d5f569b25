"""Application settings loaded from environment / .env file."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Every TTL tier is clamped into this window (seconds)
TTL_MIN_SECONDS = 300
TTL_MAX_SECONDS = 1800

DEFAULT_TTL_SHORT = 300
DEFAULT_TTL_MEDIUM = 900
DEFAULT_TTL_LONG = 1500
DEFAULT_TTL_SEARCH = 300
DEFAULT_MEMORY_MAX_ITEMS = 512


def clamp_ttl(raw: object, fallback: int) -> int:
    """Parse a TTL tier; unusable values fall back, usable ones are clamped."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return fallback
    if value <= 0:
        return fallback
    return min(max(value, TTL_MIN_SECONDS), TTL_MAX_SECONDS)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Cache TTL tiers (seconds) ─────────────────────────
    cache_ttl_short: int = DEFAULT_TTL_SHORT
    cache_ttl_medium: int = DEFAULT_TTL_MEDIUM
    cache_ttl_long: int = DEFAULT_TTL_LONG
    cache_ttl_search: int = DEFAULT_TTL_SEARCH

    # ── Memory tier ───────────────────────────────────────
    cache_memory_max_items: int = DEFAULT_MEMORY_MAX_ITEMS
    cache_sweep_interval_seconds: float = 60.0  # 0 disables the sweeper

    # ── Backing tier ──────────────────────────────────────
    # e.g. sqlite+aiosqlite:///data/catalog.db; empty keeps the cache in memory
    cache_backing_url: str = ""
    cache_namespace: str = "catalog"

    # ── Admin API ─────────────────────────────────────────
    cache_admin_token: str = ""  # empty disables /v1/cache

    log_level: str = "INFO"

    @field_validator("cache_ttl_short", mode="before")
    @classmethod
    def _short(cls, v: object) -> int:
        return clamp_ttl(v, DEFAULT_TTL_SHORT)

    @field_validator("cache_ttl_medium", mode="before")
    @classmethod
    def _medium(cls, v: object) -> int:
        return clamp_ttl(v, DEFAULT_TTL_MEDIUM)

    @field_validator("cache_ttl_long", mode="before")
    @classmethod
    def _long(cls, v: object) -> int:
        return clamp_ttl(v, DEFAULT_TTL_LONG)

    @field_validator("cache_ttl_search", mode="before")
    @classmethod
    def _search(cls, v: object) -> int:
        return clamp_ttl(v, DEFAULT_TTL_SEARCH)

    @field_validator("cache_memory_max_items", mode="before")
    @classmethod
    def _max_items(cls, v: object) -> int:
        try:
            value = int(str(v).strip())
        except (TypeError, ValueError):
            return DEFAULT_MEMORY_MAX_ITEMS
        return value if value > 0 else DEFAULT_MEMORY_MAX_ITEMS

    @field_validator("log_level")
    @classmethod
    def _level(cls, v: str) -> str:
        return v.strip().upper() or "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
