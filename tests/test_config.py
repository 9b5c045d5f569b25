"""Tests for settings parsing and TTL tier clamping."""

import pytest

from catalog_cache.cache.backing import SqlBackingStore
from catalog_cache.cache.facade import build_cache
from catalog_cache.core.config import Settings, clamp_ttl


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.cache_ttl_short == 300
    assert settings.cache_ttl_medium == 900
    assert settings.cache_ttl_long == 1500
    assert settings.cache_ttl_search == 300
    assert settings.cache_memory_max_items == 512
    assert settings.cache_backing_url == ""
    assert settings.cache_admin_token == ""


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("600", 600),
        ("60", 300),  # below the window
        ("7200", 1800),  # above the window
        ("0", 900),
        ("-5", 900),
        ("soon", 900),
        ("", 900),
        (None, 900),
    ],
)
def test_clamp_ttl(raw, expected):
    assert clamp_ttl(raw, 900) == expected


def test_tiers_read_from_environment(monkeypatch):
    monkeypatch.setenv("CACHE_TTL_LONG", "1200")
    monkeypatch.setenv("CACHE_TTL_SHORT", "5")
    monkeypatch.setenv("CACHE_TTL_MEDIUM", "not-a-number")

    settings = Settings(_env_file=None)
    assert settings.cache_ttl_long == 1200
    assert settings.cache_ttl_short == 300
    assert settings.cache_ttl_medium == 900


def test_invalid_max_items_falls_back(monkeypatch):
    monkeypatch.setenv("CACHE_MEMORY_MAX_ITEMS", "0")
    assert Settings(_env_file=None).cache_memory_max_items == 512


def test_log_level_is_normalised(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    assert Settings(_env_file=None).log_level == "DEBUG"


def test_build_cache_memory_only():
    cache = build_cache(Settings(_env_file=None, cache_memory_max_items=8))
    assert cache.backing is None
    assert cache.store.max_entries == 8


def test_build_cache_with_backing_url():
    cache = build_cache(
        Settings(
            _env_file=None,
            cache_backing_url="sqlite+aiosqlite://",
            cache_namespace="staging",
        )
    )
    assert isinstance(cache.backing, SqlBackingStore)
    assert cache.backing.namespace == "staging"
