"""Shared test fixtures — fake clocks, isolated caches, async SQLite tier, test client."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from catalog_cache.cache.backing import SqlBackingStore
from catalog_cache.cache.coordinator import Cache
from catalog_cache.cache.facade import reset_cache, set_cache
from catalog_cache.cache.store import MemoryStore
from catalog_cache.core.config import Settings, get_settings
from catalog_cache.core.database import create_session_factory, init_db
from catalog_cache.main import app

ADMIN_TOKEN = "test-admin-token"


class FakeClock:
    """Manually advanced clock, injected wherever the cache reads time."""

    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_000.0)


@pytest.fixture
def wall_clock() -> FakeClock:
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def store(clock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture
def cache(store) -> Cache:
    return Cache(store)


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def backing(session_factory, wall_clock) -> SqlBackingStore:
    return SqlBackingStore(session_factory, namespace="test", clock=wall_clock)


@pytest.fixture
def tiered_cache(clock, backing) -> Cache:
    return Cache(MemoryStore(clock=clock), backing=backing)


@pytest.fixture
def global_cache(cache) -> Cache:
    """Install the isolated cache as the process-wide instance."""
    set_cache(cache)
    yield cache
    reset_cache()


@pytest.fixture
async def client(global_cache) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async test client with the admin token configured."""
    app.dependency_overrides[get_settings] = lambda: Settings(cache_admin_token=ADMIN_TOKEN)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
