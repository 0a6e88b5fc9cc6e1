"""
Shared FastAPI dependencies.

Centralizes common dependencies so routers can import from a single place
(DB session, auth guards, pagination).
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import User
from domain.enums import Role
from domain.errors import PermissionDeniedError, UnauthorizedError
from middleware.auth import require_token_subject


class Pagination(TypedDict):
    page: int
    limit: int
    offset: int


def pagination_params(
    page: int = Query(1, ge=1, le=10_000),
    limit: int = Query(10, ge=1, le=100),
) -> Pagination:
    return {"page": page, "limit": limit, "offset": (page - 1) * limit}


async def require_user(
    user_id: int = Depends(require_token_subject),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Require an authenticated user.

    The token must still map to an existing account; deleted users get 401.
    """
    user = await db.get(User, user_id)
    if not user:
        raise UnauthorizedError("Account for this token no longer exists.")
    return user


async def require_admin(user: User = Depends(require_user)) -> User:
    """Require that the authenticated user has the ADMIN role."""
    if user.role != Role.ADMIN.value:
        raise PermissionDeniedError("Admin role required for this endpoint.")
    return user
