"""FastAPI dependencies for the cache admin API."""

import hmac
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from catalog_cache.cache.coordinator import Cache
from catalog_cache.cache.facade import get_cache
from catalog_cache.core.config import Settings, get_settings

bearer_scheme = HTTPBearer(auto_error=False)


async def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Check the bearer token against CACHE_ADMIN_TOKEN.

    With no token configured the admin API is switched off entirely.
    """
    if not settings.cache_admin_token:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Cache admin API is not configured",
        )
    if credentials is None or not hmac.compare_digest(
        credentials.credentials.encode(), settings.cache_admin_token.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Typed shorthand for use in route signatures
CacheDep = Annotated[Cache, Depends(get_cache)]
