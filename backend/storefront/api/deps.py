"""
Shared API dependencies: authentication and role guards.
"""

from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.core.exceptions import ForbiddenError, UnauthorizedError
from storefront.core.security import decode_access_token
from storefront.models import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


async def _user_from_token(db: AsyncSession, token: str) -> User | None:
    payload = decode_access_token(token)
    if not payload or "sub" not in payload:
        return None
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None
    return await db.get(User, user_id)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user or fail with 401."""
    if credentials is None:
        raise UnauthorizedError("Authentication token is missing")

    user = await _user_from_token(db, credentials.credentials)
    if user is None:
        raise UnauthorizedError("Invalid or expired token")
    return user


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that only admits the given roles.

    Usage:
        @router.get("/orders")
        async def list_orders(user: User = Depends(require_roles(UserRole.ADMIN))):
            ...
    """

    async def guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise ForbiddenError(
                f"This action requires role: {', '.join(role.value for role in roles)}"
            )
        return user

    return guard


require_customer = require_roles(UserRole.CUSTOMER)
require_seller = require_roles(UserRole.SELLER)
require_admin = require_roles(UserRole.ADMIN)


async def get_optional_customer(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """
    Customer behind the bearer token, if any.

    Tokens that are invalid or belong to other roles are ignored so the
    request falls back to guest-session handling.
    """
    if credentials is None:
        return None
    user = await _user_from_token(db, credentials.credentials)
    if user is None or user.role != UserRole.CUSTOMER:
        return None
    return user
