"""Authentication dependencies for protecting endpoints."""

import hmac
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from fansite.config import get_settings
from fansite.core.security import TokenError, decode_access_token
from fansite.db.database import get_db
from fansite.db.models import User, UserRole

logger = logging.getLogger(__name__)

settings = get_settings()

# auto_error=False so a missing header yields a clear 401 instead of 403
_bearer_scheme = HTTPBearer(auto_error=False)


async def _user_from_credentials(
    credentials: HTTPAuthorizationCredentials | None,
    db: AsyncSession,
) -> User | None:
    if not credentials:
        return None
    try:
        payload = decode_access_token(credentials.credentials)
    except TokenError:
        return None
    return await db.get(User, payload["sub"])


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Dependency returning the authenticated user, 401 otherwise."""
    user = await _user_from_credentials(credentials, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous callers get None."""
    return await _user_from_credentials(credentials, db)


def require_roles(*roles: UserRole):
    """
    Dependency factory that enforces one of the given roles.

    Usage:
        @router.put("/{id}/approve")
        async def approve(user: User = Depends(require_roles(UserRole.MODERATOR, UserRole.ADMIN))):
            ...
    """
    allowed = {r.value for r in roles}

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return checker


def is_moderator(user: User | None) -> bool:
    return user is not None and user.role in (UserRole.MODERATOR.value, UserRole.ADMIN.value)


def _admin_key_matches(token: str) -> bool:
    if not settings.admin_api_key:
        return False
    return hmac.compare_digest(
        token.encode("utf-8"),
        settings.admin_api_key.encode("utf-8"),
    )


async def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> str:
    """
    Dependency for operational endpoints.

    Accepts either the static ADMIN_API_KEY or an access token belonging to a
    user with the admin role:
        Authorization: Bearer <ADMIN_API_KEY | access token>
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin credentials required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Constant-time comparison for the static key
    if _admin_key_matches(credentials.credentials):
        return "api-key"

    user = await _user_from_credentials(credentials, db)
    if user is not None and user.role == UserRole.ADMIN.value:
        return f"user:{user.id}"

    client_ip = request.client.host if request.client else "unknown"
    logger.warning("Failed admin auth attempt from %s", client_ip)
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid admin credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


require_moderator = require_roles(UserRole.MODERATOR, UserRole.ADMIN)
require_admin_role = require_roles(UserRole.ADMIN)
