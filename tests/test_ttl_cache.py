"""Unit tests for the service-local TtlCache."""

import asyncio

import pytest

from catalog_cache.cache.ttl_cache import TtlCache


def test_get_set_with_default_ttl(clock):
    genres = TtlCache(60, clock=clock)
    genres.set(28, "Action")

    assert genres.get(28) == "Action"
    clock.advance(60)
    assert genres.get(28) is None


def test_per_call_ttl_override(clock):
    local = TtlCache(60, clock=clock)
    local.set("k", "v", ttl_seconds=5)
    clock.advance(6)
    assert local.get("k") is None


def test_zero_and_negative_ttl_do_not_cache(clock):
    local = TtlCache(-10, clock=clock)
    local.set("k", "v")
    assert local.get("k") is None

    local = TtlCache(60, clock=clock)
    local.set("k", "v", ttl_seconds=-1)
    assert local.size() == 0


def test_tuple_keys_and_lru_bound(clock):
    local = TtlCache(60, max_entries=2, clock=clock)
    local.set(("movie", 1), "a")
    local.set(("movie", 2), "b")
    local.get(("movie", 1))
    local.set(("movie", 3), "c")

    assert local.size() == 2
    assert local.get(("movie", 2)) is None
    assert local.get(("movie", 1)) == "a"


def test_delete_and_clear(clock):
    local = TtlCache(60, clock=clock)
    local.set("a", 1)
    local.set("b", 2)
    local.delete("a")
    assert local.get("a") is None
    local.clear()
    assert local.size() == 0


@pytest.mark.asyncio
async def test_get_or_set_collapses_concurrent_loads(clock):
    local: TtlCache[str, int] = TtlCache(60, clock=clock)
    gate = asyncio.Event()
    calls = 0

    async def loader() -> int:
        nonlocal calls
        calls += 1
        await gate.wait()
        return 42

    tasks = [asyncio.create_task(local.get_or_set("answer", loader)) for _ in range(4)]
    await asyncio.sleep(0)
    gate.set()

    assert await asyncio.gather(*tasks) == [42, 42, 42, 42]
    assert calls == 1
    assert await local.get_or_set("answer", loader) == 42
    assert calls == 1


@pytest.mark.asyncio
async def test_get_or_set_failure_is_retried(clock):
    local = TtlCache(60, clock=clock)
    attempts = 0

    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise ConnectionError("reset")
        return "ok"

    with pytest.raises(ConnectionError):
        await local.get_or_set("k", flaky)
    assert await local.get_or_set("k", flaky) == "ok"
    assert attempts == 2


@pytest.mark.asyncio
async def test_clear_during_load_discards_result(clock):
    local = TtlCache(60, clock=clock)
    gate = asyncio.Event()

    async def loader():
        await gate.wait()
        return "stale"

    pending = asyncio.create_task(local.get_or_set("k", loader))
    await asyncio.sleep(0)
    local.clear()
    gate.set()

    assert await pending == "stale"
    assert local.get("k") is None
