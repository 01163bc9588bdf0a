"""
Authentication business logic.

Handles user registration, password and Google sign-in, and admin login.
Routers own the transaction; everything here only flushes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from pickmypit.auth.password import (
    PasswordStrengthError,
    hash_password,
    validate_password_strength,
    verify_password,
)
from pickmypit.auth.referrals import apply_referral_bonus, generate_unique_referral_code
from pickmypit.db.models import Admin, User
from pickmypit.exceptions import AuthenticationError, ConflictError, ValidationError
from pickmypit.users.service import get_user_by_email

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pickmypit.auth.google import GoogleProfile
    from pickmypit.auth.schemas import RegisterRequest

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid credentials"


async def get_admin_by_email(db: AsyncSession, email: str) -> Admin | None:
    """Fetch an admin by email (case-insensitive)."""
    result = await db.execute(select(Admin).where(func.lower(Admin.email) == email.lower().strip()))
    return result.scalar_one_or_none()


async def _insert_user(db: AsyncSession, user: User) -> None:
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError("User already exists with this email") from e


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_user(db: AsyncSession, body: RegisterRequest) -> User:
    """
    Register a new user with email + password.

    The account is active immediately. A referral code, when given, is applied
    best-effort after the user row exists.

    Raises:
        ValidationError: If the password violates the length policy.
        ConflictError: If the email is already registered.
    """
    try:
        validate_password_strength(body.password)
    except PasswordStrengthError as e:
        raise ValidationError(str(e), errors=[{"field": "password", "message": str(e)}]) from e

    if await get_user_by_email(db, body.email) is not None:
        raise ConflictError("User already exists with this email")

    user = User(
        first_name=body.first_name.strip(),
        last_name=body.last_name.strip(),
        email=body.email,
        password_hash=hash_password(body.password),
        gender=body.gender,
        role="user",
        status="active",
        referral_code=await generate_unique_referral_code(db),
        coins=0,
    )
    await _insert_user(db, user)
    logger.info("user_registered", user_id=user.id, method="password")

    if body.referral_code:
        await apply_referral_bonus(db, user, body.referral_code)
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """
    Authenticate a user with email + password.

    Raises:
        AuthenticationError: Unknown email, wrong password, password-less
            (Google) account, or an account that is not active.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS, code="invalid_credentials")
    if user.status != "active":
        raise AuthenticationError("Account is not active", code="account_inactive")
    logger.info("user_logged_in", user_id=user.id, method="password")
    return user


async def authenticate_admin(db: AsyncSession, email: str, password: str) -> Admin:
    """Same as authenticate_user, against the admin credential store."""
    admin = await get_admin_by_email(db, email)
    if admin is None or not verify_password(password, admin.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS, code="invalid_credentials")
    if admin.status != "active":
        raise AuthenticationError("Admin account is not active", code="account_inactive")
    logger.info("admin_logged_in", admin_id=admin.id)
    return admin


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------


async def get_or_create_google_user(
    db: AsyncSession,
    profile: GoogleProfile,
    referral_code: str | None = None,
) -> tuple[User, bool]:
    """
    Get the user for a Google profile, creating an active account if missing.

    An existing user only receives a referral bonus if nobody referred them yet.

    Returns:
        Tuple of (user, created).
    """
    user = await get_user_by_email(db, profile.email)
    if user is not None:
        if user.status != "active":
            raise AuthenticationError("Account is not active", code="account_inactive")
        if referral_code and user.referred_by_id is None:
            await apply_referral_bonus(db, user, referral_code)
        logger.info("user_logged_in", user_id=user.id, method="google")
        return user, False

    user = User(
        first_name=(profile.given_name or "User")[:30],
        last_name=(profile.family_name or "")[:30],
        email=profile.email,
        password_hash=None,
        avatar_url=profile.picture,
        email_confirmed=True,
        role="user",
        status="active",
        referral_code=await generate_unique_referral_code(db),
        coins=0,
    )
    await _insert_user(db, user)
    logger.info("user_registered", user_id=user.id, method="google")

    if referral_code:
        await apply_referral_bonus(db, user, referral_code)
    return user, True
