"""Cache record model — one row per persisted cache key."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheRecord(SQLModel, table=True):
    __tablename__ = "cache_entries"

    # Several deployments may share one database; rows are scoped per namespace
    namespace: str = Field(primary_key=True, max_length=64)
    key: str = Field(primary_key=True, max_length=512)

    # JSON-encoded payload
    value: str = Field(nullable=False)

    # Wall-clock epoch seconds; the row is stale once time.time() reaches it
    expires_at: float = Field(nullable=False, index=True)

    updated_at: datetime = Field(
        default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False
    )


# ── Pydantic schemas ─────────────────────────────────────────

class CacheStats(SQLModel):
    entries: int
    in_flight: int
    max_entries: int | None
    backing: bool
    hits: int
    misses: int
    coalesced: int
    failures: int
