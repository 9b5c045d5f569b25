"""Cache administration — stats, targeted invalidation, flush."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, model_validator

from catalog_cache.api.deps import CacheDep, require_admin
from catalog_cache.cache.errors import InvalidKeyError
from catalog_cache.cache.tmdb import invalidate_tmdb_id
from catalog_cache.models.cache_entry import CacheStats

router = APIRouter(
    prefix="/cache",
    tags=["cache"],
    dependencies=[Depends(require_admin)],
)


class InvalidateRequest(BaseModel):
    """Exactly one of ``prefix`` / ``pattern``."""

    prefix: str | None = None
    pattern: str | None = None

    @model_validator(mode="after")
    def _one_selector(self) -> "InvalidateRequest":
        if (self.prefix is None) == (self.pattern is None):
            raise ValueError("provide exactly one of 'prefix' or 'pattern'")
        return self


class TmdbInvalidateRequest(BaseModel):
    tmdb_id: int = Field(gt=0)
    media_type: Literal["movie", "tv"] | None = None


class RemovedCount(BaseModel):
    removed: int


class KeyRemoved(BaseModel):
    removed: bool


def _bad_request(exc: InvalidKeyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/stats", response_model=CacheStats)
async def cache_stats(cache: CacheDep) -> CacheStats:
    return cache.stats()


@router.delete("/entries/{key:path}", response_model=KeyRemoved)
async def delete_entry(key: str, cache: CacheDep) -> KeyRemoved:
    try:
        removed = await cache.invalidate_key(key)
    except InvalidKeyError as exc:
        raise _bad_request(exc) from exc
    return KeyRemoved(removed=removed)


@router.post("/invalidate", response_model=RemovedCount)
async def invalidate(body: InvalidateRequest, cache: CacheDep) -> RemovedCount:
    """Drop every entry under a prefix, or matching a glob / ``re:`` pattern."""
    try:
        if body.prefix is not None:
            removed = await cache.invalidate_prefix(body.prefix)
        else:
            removed = await cache.invalidate_pattern(body.pattern)  # type: ignore[arg-type]
    except InvalidKeyError as exc:
        raise _bad_request(exc) from exc
    return RemovedCount(removed=removed)


@router.post("/invalidate/tmdb", response_model=RemovedCount)
async def invalidate_tmdb(body: TmdbInvalidateRequest) -> RemovedCount:
    """Drop cached metadata for one TMDB title (both media types when unset)."""
    removed = await invalidate_tmdb_id(body.tmdb_id, body.media_type)
    return RemovedCount(removed=removed)


@router.delete("", response_model=RemovedCount)
async def clear_cache(cache: CacheDep) -> RemovedCount:
    return RemovedCount(removed=await cache.clear())
