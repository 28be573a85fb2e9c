"""
Actor tokens

Login and role administration live in the identity service; this side only
issues (for tooling and tests) and verifies bearer tokens carrying the
actor id in ``sub`` and the actor's role names in ``roles``.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import jwt

from app.core.settings import settings
from app.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    id: str
    roles: List[str] = field(default_factory=list)

    def has_any_role(self, allowed) -> bool:
        return any(role in allowed for role in self.roles)


def create_access_token(
    actor_id: str,
    roles: List[str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": str(actor_id),
        "roles": list(roles),
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def get_actor_from_token(token: str, expected_type: str = "access") -> Optional[Actor]:
    """
    Decode a bearer token.

    Returns:
        Actor, or None when the token is invalid, expired or of the wrong type
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected invalid access token: {e}")
        return None

    if payload.get("type") != expected_type:
        return None
    actor_id = payload.get("sub")
    roles = payload.get("roles") or []
    if not actor_id or not isinstance(roles, list):
        return None
    return Actor(id=actor_id, roles=[str(role) for role in roles])
