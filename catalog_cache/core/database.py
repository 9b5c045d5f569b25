"""Async database engine and session factory for the persistent cache tier."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel


def create_engine(url: str) -> AsyncEngine:
    """Build the async engine backing the cache table."""
    return create_async_engine(url, echo=False)


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create the cache table if it does not exist yet."""
    # Import the model so SQLModel.metadata picks it up
    import catalog_cache.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
