"""
API Dependencies

Resolve the calling actor from the bearer token and enforce the role
allow-lists from settings.
"""
from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer

from app.core.security import Actor, get_actor_from_token
from app.core.settings import settings
from app.db.session import get_db  # noqa: F401  re-exported for endpoints
from app.schemas.common import PaginationParams

# Tokens are issued by the identity service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_actor(token: Annotated[str, Depends(oauth2_scheme)]) -> Actor:
    """
    Dependency to get the calling actor from the access token

    Raises:
        HTTPException 401 if the token is invalid
    """
    actor = get_actor_from_token(token, expected_type="access")
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return actor


async def require_queue_role(
    actor: Annotated[Actor, Depends(get_current_actor)]
) -> Actor:
    """
    Dependency for print queue and order approval endpoints.

    Allowed roles: QUEUE_ROLES (Super Admin, Admin, Office Employee).
    """
    if not actor.has_any_role(settings.QUEUE_ROLES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions for print queue operations",
        )
    return actor


async def require_maintenance_role(
    actor: Annotated[Actor, Depends(get_current_actor)]
) -> Actor:
    """
    Dependency for queue maintenance and diagnostics.

    Allowed roles: MAINTENANCE_ROLES (Super Admin, Admin).
    """
    if not actor.has_any_role(settings.MAINTENANCE_ROLES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return actor


def get_pagination_params(
    offset: int = Query(
        default=0,
        ge=0,
        description="Number of records to skip (for pagination)"
    ),
    limit: int = Query(
        default=50,
        ge=1,
        le=500,
        description="Maximum number of records to return (1-500)"
    )
) -> PaginationParams:
    """Dependency for offset-based pagination parameters."""
    return PaginationParams(offset=offset, limit=limit)
