"""
HS256 JWT token management.

User and admin sessions are signed with the same secret. The ``kind`` claim
keeps a user token from being accepted where an admin token is required and
vice versa.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Literal

import jwt

from pickmypit.config import get_settings

TokenKind = Literal["user", "admin"]


class TokenExpiredError(jwt.InvalidTokenError):
    """Raised when a token's signature is valid but its ``exp`` has passed."""


def _create_token(subject_id: int, email: str, role: str, kind: TokenKind, expire_days: int) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(subject_id),
        "email": email,
        "role": role,
        "kind": kind,
        "iat": now,
        "exp": now + timedelta(days=expire_days),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_user_token(user_id: int, email: str, role: str = "user") -> str:
    """
    Create a session token for a marketplace user.

    Args:
        user_id: The user's database ID.
        email: The user's email address.
        role: The user's role at issue time.

    Returns:
        Encoded JWT string.
    """
    return _create_token(user_id, email, role, "user", get_settings().jwt_user_token_expire_days)


def create_admin_token(admin_id: int, email: str, role: str) -> str:
    """Create a session token for a back-office admin."""
    return _create_token(admin_id, email, role, "admin", get_settings().jwt_admin_token_expire_days)


def verify_token(token: str, expected_kind: TokenKind = "user") -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: The encoded JWT string.
        expected_kind: Principal type the token must have been issued for.

    Returns:
        Decoded payload dictionary.

    Raises:
        TokenExpiredError: If the token has expired.
        jwt.InvalidTokenError: If the token is malformed, forged or of the wrong kind.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise TokenExpiredError(msg) from None

    if payload.get("kind") != expected_kind:
        msg = f"Expected {expected_kind} token, got '{payload.get('kind')}'"
        raise jwt.InvalidTokenError(msg)

    return payload
