"""Persistent cache tier — the contract and a SQL implementation.

The memory tier is always consulted first. A backing store only sees reads
for keys the memory tier missed, and every write after a successful
population. Values cross this boundary as JSON, so a pydantic model cached
in memory comes back from the backing tier as a plain dict.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic_core import PydanticSerializationError, to_json
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import sessionmaker
from sqlmodel import col, select

from catalog_cache.cache.errors import SerializationError, StoreUnavailableError
from catalog_cache.cache.keys import compile_pattern, validate_prefix
from catalog_cache.core.database import create_engine, create_session_factory, init_db
from catalog_cache.models.cache_entry import CacheRecord, utcnow

# Bound on the size of IN (...) lists sent in one DELETE
_DELETE_BATCH = 500


@dataclass(slots=True)
class StoredValue:
    value: Any
    ttl_remaining: float


class BackingStore(Protocol):
    """Async key/value store with expiry. Failures raise BackingStoreError."""

    async def get(self, key: str) -> StoredValue | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def delete_by_prefix(self, prefix: str) -> list[str]: ...

    async def delete_by_pattern(self, pattern: str) -> list[str]: ...

    async def clear(self) -> list[str]: ...


def encode_value(value: Any) -> str:
    try:
        return to_json(value).decode()
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise SerializationError(f"cannot encode {type(value).__name__}: {exc}") from exc


def decode_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise SerializationError(f"cannot decode stored value: {exc}") from exc


class SqlBackingStore:
    """Rows in the ``cache_entries`` table, scoped to one namespace."""

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        namespace: str = "catalog",
        clock: Callable[[], float] = time.time,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._namespace = namespace
        self._clock = clock
        self._engine = engine

    @classmethod
    def from_url(cls, url: str, *, namespace: str = "catalog") -> SqlBackingStore:
        """Own a fresh engine for *url*; see create_table() and dispose()."""
        engine = create_engine(url)
        return cls(create_session_factory(engine), namespace=namespace, engine=engine)

    async def create_table(self) -> None:
        if self._engine is None:
            return
        try:
            await init_db(self._engine)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"cannot create cache table: {exc}") from exc

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    @property
    def namespace(self) -> str:
        return self._namespace

    async def get(self, key: str) -> StoredValue | None:
        try:
            async with self._session_factory() as session:
                record = await session.get(CacheRecord, (self._namespace, key))
                if record is None:
                    return None
                if record.expires_at <= self._clock():
                    await session.delete(record)
                    await session.commit()
                    return None
                raw, ttl_remaining = record.value, record.expires_at - self._clock()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"backing get failed for {key!r}: {exc}") from exc
        return StoredValue(value=decode_value(raw), ttl_remaining=ttl_remaining)

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            await self.delete(key)
            return

        payload = encode_value(value)
        record = CacheRecord(
            namespace=self._namespace,
            key=key,
            value=payload,
            expires_at=self._clock() + ttl_seconds,
            updated_at=utcnow(),
        )
        try:
            async with self._session_factory() as session:
                await session.merge(record)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"backing set failed for {key!r}: {exc}") from exc

    async def delete(self, key: str) -> bool:
        stmt = delete(CacheRecord).where(
            CacheRecord.namespace == self._namespace,
            CacheRecord.key == key,
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"backing delete failed for {key!r}: {exc}") from exc
        return bool(result.rowcount)

    async def delete_by_prefix(self, prefix: str) -> list[str]:
        validate_prefix(prefix)
        # LIKE is case-insensitive on SQLite; it only narrows the scan
        return await self._delete_where(
            lambda key: key.startswith(prefix),
            col(CacheRecord.key).startswith(prefix, autoescape=True),
        )

    async def delete_by_pattern(self, pattern: str) -> list[str]:
        return await self._delete_where(compile_pattern(pattern))

    async def clear(self) -> list[str]:
        return await self._delete_where(lambda key: True)

    async def prune_expired(self) -> int:
        stmt = delete(CacheRecord).where(
            CacheRecord.namespace == self._namespace,
            CacheRecord.expires_at <= self._clock(),
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"backing prune failed: {exc}") from exc
        return result.rowcount or 0

    async def _delete_where(self, predicate: Callable[[str], bool], *criteria) -> list[str]:
        """Delete matching rows; return the keys of those that were still fresh."""
        stmt = select(CacheRecord.key, CacheRecord.expires_at).where(
            CacheRecord.namespace == self._namespace, *criteria
        )
        now = self._clock()
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = [(key, expires_at) for key, expires_at in result.all() if predicate(key)]
                doomed = [key for key, _ in rows]
                for i in range(0, len(doomed), _DELETE_BATCH):
                    batch = doomed[i : i + _DELETE_BATCH]
                    await session.execute(
                        delete(CacheRecord).where(
                            CacheRecord.namespace == self._namespace,
                            col(CacheRecord.key).in_(batch),
                        )
                    )
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"backing bulk delete failed: {exc}") from exc
        return [key for key, expires_at in rows if expires_at > now]
