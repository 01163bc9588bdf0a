"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from pickmypit.admin.schemas import AdminResponse
from pickmypit.users.schemas import Gender, UserResponse


def _normalize_email(v: str) -> str:
    return v.lower().strip()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=30)
    last_name: str = Field(..., min_length=1, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    gender: Gender = "other"
    referral_code: str | None = Field(None, max_length=16)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class GoogleAuthRequest(BaseModel):
    token: str = Field(..., min_length=1)
    referral_code: str | None = Field(None, max_length=16)


class AuthUserData(BaseModel):
    user: UserResponse
    is_new_user: bool | None = None


# ---------------------------------------------------------------------------
# Admins
# ---------------------------------------------------------------------------


class AdminLoginData(BaseModel):
    admin: AdminResponse
    token: str
