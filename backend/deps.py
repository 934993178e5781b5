"""
Shared FastAPI dependencies.

Routers import DB session, auth guards and pagination from here so the
access rules (own rows for customers, everything for admins) live in one place.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from fastapi import Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import Profile
from domain.enums import UserRole
from domain.errors import PermissionDeniedError, UnauthorizedError
from middleware.auth import get_token_payload, require_token_payload, subject_profile_id


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


async def _load_profile(db: AsyncSession, profile_id: int) -> Profile | None:
    res = await db.execute(select(Profile).where(Profile.id == profile_id))
    return res.scalar_one_or_none()


async def require_user(
    payload: dict = Depends(require_token_payload),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Require a valid bearer token whose subject still exists."""
    profile = await _load_profile(db, subject_profile_id(payload))
    if not profile:
        raise UnauthorizedError("Account no longer exists.")
    return profile


async def optional_user(
    payload: Optional[dict] = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
) -> Profile | None:
    if payload is None:
        return None
    return await _load_profile(db, subject_profile_id(payload))


async def require_admin(user: Profile = Depends(require_user)) -> Profile:
    """
    Require the admin role.

    The role is read from the profile row, not from the token claim, so a
    demoted admin loses access without waiting for token expiry.
    """
    if user.role != UserRole.ADMIN.value:
        raise PermissionDeniedError("Admin role required for this endpoint.")
    return user
