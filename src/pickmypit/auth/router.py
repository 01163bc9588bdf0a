"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.admin.schemas import AdminResponse
from pickmypit.auth.dependencies import (
    ADMIN_COOKIE,
    USER_COOKIE,
    USER_FLAG_COOKIE,
    get_current_admin,
    get_current_user,
)
from pickmypit.auth.google import GoogleOAuthClient, get_google_client
from pickmypit.auth.jwt import create_admin_token, create_user_token
from pickmypit.auth.schemas import (
    AdminLoginData,
    AuthUserData,
    GoogleAuthRequest,
    LoginRequest,
    RegisterRequest,
)
from pickmypit.auth.service import (
    authenticate_admin,
    authenticate_user,
    get_or_create_google_user,
    register_user,
)
from pickmypit.config import get_settings
from pickmypit.database import get_session
from pickmypit.db.models import Admin, User
from pickmypit.schemas import ApiResponse, ok
from pickmypit.users.schemas import UserResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _cookie_max_age(days: int) -> int:
    return days * 24 * 60 * 60


def _set_user_cookies(response: Response, token: str) -> None:
    """The token cookie is httponly; the flag cookie is readable by the frontend."""
    settings = get_settings()
    max_age = _cookie_max_age(settings.jwt_user_token_expire_days)
    response.set_cookie(
        USER_COOKIE,
        token,
        max_age=max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    response.set_cookie(
        USER_FLAG_COOKIE,
        "true",
        max_age=max_age,
        httponly=False,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def _user_payload(user: User, is_new_user: bool | None = None) -> AuthUserData:
    return AuthUserData(user=UserResponse.model_validate(user), is_new_user=is_new_user)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.post("/register", response_model=ApiResponse[AuthUserData], status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Register with email + password and start a cookie session."""
    user = await register_user(db, body)
    await db.commit()
    _set_user_cookies(response, create_user_token(user.id, user.email, user.role))
    return ok(_user_payload(user), "User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthUserData])
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    user = await authenticate_user(db, body.email, body.password)
    _set_user_cookies(response, create_user_token(user.id, user.email, user.role))
    return ok(_user_payload(user), "Login successful")


@router.post("/google-auth", response_model=ApiResponse[AuthUserData])
async def google_auth(
    body: GoogleAuthRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
    google: GoogleOAuthClient = Depends(get_google_client),
) -> dict[str, Any]:
    """Sign in (or sign up) with a Google access token."""
    profile = await google.fetch_profile(body.token)
    user, created = await get_or_create_google_user(db, profile, body.referral_code)
    await db.commit()

    if created:
        response.status_code = 201
    _set_user_cookies(response, create_user_token(user.id, user.email, user.role))
    message = "User registered successfully" if created else "Login successful"
    return ok(_user_payload(user, is_new_user=created), message)


@router.post("/logout", response_model=ApiResponse[None])
async def logout(response: Response) -> dict[str, Any]:
    """Clear the session cookies. Works without a valid session."""
    response.delete_cookie(USER_COOKIE, path="/", httponly=True, samesite="lax")
    response.delete_cookie(USER_FLAG_COOKIE, path="/", samesite="lax")
    return ok(None, "Logout successful")


@router.get("/verify-token", response_model=ApiResponse[AuthUserData])
async def verify_user_token(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return ok(_user_payload(user), "Token is valid")


# ---------------------------------------------------------------------------
# Admins
# ---------------------------------------------------------------------------


@router.post("/admin/login", response_model=ApiResponse[AdminLoginData])
async def admin_login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Admin login; the token is set as a cookie and also returned for bearer use."""
    settings = get_settings()
    admin = await authenticate_admin(db, body.email, body.password)
    token = create_admin_token(admin.id, admin.email, admin.role)
    response.set_cookie(
        ADMIN_COOKIE,
        token,
        max_age=_cookie_max_age(settings.jwt_admin_token_expire_days),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    data = AdminLoginData(admin=AdminResponse.model_validate(admin), token=token)
    return ok(data, "Admin login successful")


@router.get("/admin/verify", response_model=ApiResponse[AdminResponse])
async def admin_verify(admin: Admin = Depends(get_current_admin)) -> dict[str, Any]:
    return ok(AdminResponse.model_validate(admin), "Admin authenticated")
