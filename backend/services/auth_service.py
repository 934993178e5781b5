"""
Account service — signup, login and password hashing.

Passwords are hashed with bcrypt in the shared thread pool so a burst of logins
does not block the event loop.
"""
import logging

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Profile
from domain.enums import UserRole
from domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from middleware.auth import issue_access_token
from services.async_executor import run_blocking

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password."


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _hash_password_sync(password: str) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=settings.bcrypt_rounds),
    ).decode("utf-8")


def _check_password_sync(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


async def hash_password(password: str) -> str:
    return await run_blocking(_hash_password_sync, password)


async def verify_password(password: str, password_hash: str) -> bool:
    return await run_blocking(_check_password_sync, password, password_hash)


def role_for_email(email: str) -> str:
    if normalize_email(email) in settings.admin_emails_list:
        return UserRole.ADMIN.value
    return UserRole.CUSTOMER.value


async def get_profile_by_email(db: AsyncSession, email: str) -> Profile | None:
    res = await db.execute(select(Profile).where(Profile.email == normalize_email(email)))
    return res.scalar_one_or_none()


async def signup(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str,
) -> Profile:
    """Create a profile. Emails listed in ADMIN_EMAILS get the admin role."""
    email = normalize_email(email)
    if len(password) < settings.min_password_length:
        raise ValidationError(
            f"Password must be at least {settings.min_password_length} characters",
            field="password",
        )
    if await get_profile_by_email(db, email):
        raise ConflictError(f"An account already exists for {email}")

    profile = Profile(
        email=email,
        password_hash=await hash_password(password),
        full_name=full_name.strip(),
        role=role_for_email(email),
    )
    db.add(profile)
    await db.flush()
    logger.info(f"Profile created: id={profile.id} role={profile.role}")
    return profile


async def authenticate(db: AsyncSession, *, email: str, password: str) -> Profile:
    """Return the profile for valid credentials; one generic 401 otherwise."""
    profile = await get_profile_by_email(db, email)
    if not profile or not await verify_password(password, profile.password_hash):
        logger.warning(f"Failed login for {normalize_email(email)}")
        raise UnauthorizedError(_INVALID_CREDENTIALS)
    return profile


def token_for(profile: Profile) -> str:
    return issue_access_token(profile_id=profile.id, role=profile.role)


async def promote_to_admin(db: AsyncSession, *, email: str) -> Profile:
    profile = await get_profile_by_email(db, email)
    if not profile:
        raise NotFoundError("Profile", normalize_email(email))
    profile.role = UserRole.ADMIN.value
    await db.flush()
    logger.info(f"Profile {profile.id} promoted to admin")
    return profile
