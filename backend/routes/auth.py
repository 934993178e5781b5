"""
Auth endpoints — email/password accounts.

Flow:
  1) POST /auth/signup  -> creates a customer (or admin, for ADMIN_EMAILS) profile
  2) POST /auth/login   -> returns a JWT access token
  3) GET  /auth/me      -> current profile (Authorization: Bearer <token>)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from db_models import Profile
from deps import require_user
from domain.responses import success_response
from middleware.rate_limit import rate_limit
from models import AuthResponse, LoginRequest, ProfileResponse, SignupRequest
from services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_payload(profile: Profile) -> dict:
    return AuthResponse(
        profile=ProfileResponse.model_validate(profile),
        access_token=auth_service.token_for(profile),
        expires_in_seconds=settings.jwt_access_ttl_minutes * 60,
    ).model_dump(mode="json")


@router.post("/signup", status_code=201)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=10, window_seconds=60)),
):
    profile = await auth_service.signup(
        db,
        email=request.email,
        password=request.password,
        full_name=request.full_name,
    )
    await db.commit()
    return success_response(data=_auth_payload(profile))


@router.post("/login")
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=20, window_seconds=60)),
):
    profile = await auth_service.authenticate(db, email=request.email, password=request.password)
    return success_response(data=_auth_payload(profile))


@router.get("/me")
async def me(user: Profile = Depends(require_user)):
    return success_response(data=ProfileResponse.model_validate(user).model_dump(mode="json"))
