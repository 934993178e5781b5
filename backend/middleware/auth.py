"""
Access-token helpers.

Flow:
  - POST /auth/signup or /auth/login verifies credentials and issues a
    short-lived HS256 JWT (sub = profile id, role = profile role).
  - Protected endpoints read `Authorization: Bearer <jwt>`; deps.py turns the
    subject into a Profile row, which is the authority for the role.
"""
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt
from fastapi import Header

from config import settings
from domain.errors import UnauthorizedError

logger = logging.getLogger(__name__)


class AuthMisconfiguredError(RuntimeError):
    """JWT_SECRET is not set; tokens can be neither issued nor verified."""


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _require_secret() -> str:
    if not settings.jwt_secret:
        raise AuthMisconfiguredError("Server auth misconfigured (JWT secret missing).")
    return settings.jwt_secret


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def issue_access_token(*, profile_id: int, role: str) -> str:
    now = _now_utc()
    exp = now.replace(microsecond=0) + timedelta(minutes=settings.jwt_access_ttl_minutes)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": str(profile_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, _require_secret(), algorithm="HS256")


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            _require_secret(),
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token.")


def subject_profile_id(payload: dict) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Invalid access token.")


async def get_token_payload(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Optional[dict]:
    """Decode the bearer token when one is sent; anonymous callers get None."""
    token = _parse_bearer_token(authorization)
    if not token:
        return None
    return decode_access_token(token)


async def require_token_payload(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> dict:
    payload = await get_token_payload(authorization=authorization)
    if payload is None:
        raise UnauthorizedError("Authentication required. Provide Authorization: Bearer <token>.")
    return payload
