"""FastAPI authentication dependencies.

Users authenticate with the ``auth_token`` cookie. Admins send a bearer token
or the ``admin_token`` cookie. A verified token is never enough on its own:
the referenced account must still exist and be active.
"""

from __future__ import annotations

from dataclasses import dataclass

import jwt
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.auth.jwt import TokenExpiredError, TokenKind, verify_token
from pickmypit.database import get_session
from pickmypit.db.models import ADMIN_ROLES, Admin, User
from pickmypit.exceptions import AuthenticationError, AuthorizationError

USER_COOKIE = "auth_token"
USER_FLAG_COOKIE = "is_authenticated"
ADMIN_COOKIE = "admin_token"

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Identity attached to a request, either a user or an admin."""

    id: int
    email: str
    role: str
    kind: TokenKind

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def _decode(token: str, kind: TokenKind) -> int:
    try:
        payload = verify_token(token, expected_kind=kind)
    except TokenExpiredError as e:
        raise AuthenticationError("Token expired. Please log in again.", code="token_expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid token", code="token_invalid") from e
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token", code="token_invalid") from e


def _admin_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ADMIN_COOKIE) or None


async def _load_user(db: AsyncSession, token: str) -> User:
    user = await db.get(User, _decode(token, "user"))
    if user is None or user.status != "active":
        raise AuthenticationError("User not found or inactive", code="account_inactive")
    return user


async def _load_admin(db: AsyncSession, token: str) -> Admin:
    admin = await db.get(Admin, _decode(token, "admin"))
    if admin is None or admin.status != "active":
        raise AuthenticationError("Admin no longer exists or is inactive", code="account_inactive")
    return admin


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the ``auth_token`` cookie to an active User."""
    token = request.cookies.get(USER_COOKIE)
    if not token:
        raise AuthenticationError("Access denied. No token provided.", code="token_missing")
    return await _load_user(db, token)


async def get_current_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> Admin:
    """Resolve the admin bearer token (or ``admin_token`` cookie) to an active Admin."""
    token = _admin_token(request, credentials)
    if not token:
        raise AuthenticationError("Access denied. No token provided.", code="token_missing")
    return await _load_admin(db, token)


async def get_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> Principal:
    """Resolve whichever credential the request carries, admin first.

    The role comes from the account store, not from the token payload.
    """
    admin_token = _admin_token(request, credentials)
    if admin_token:
        admin = await _load_admin(db, admin_token)
        return Principal(id=admin.id, email=admin.email, role=admin.role, kind="admin")

    user_token = request.cookies.get(USER_COOKIE)
    if not user_token:
        raise AuthenticationError("Access denied. No token provided.", code="token_missing")
    user = await _load_user(db, user_token)
    return Principal(id=user.id, email=user.email, role=user.role, kind="user")


async def require_admin_role(principal: Principal = Depends(get_principal)) -> Principal:
    """Allow admins and superadmins, from either credential store."""
    if not principal.is_admin:
        raise AuthorizationError("Access denied. Not authorized as admin.")
    return principal


async def require_superadmin(admin: Admin = Depends(get_current_admin)) -> Admin:
    if admin.role != "superadmin":
        raise AuthorizationError("Access denied. Super admin privileges required.")
    return admin
