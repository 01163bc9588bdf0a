"""Request/response schemas for user profiles."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pickmypit.addresses.schemas import AddressResponse

Gender = Literal["male", "female", "other"]


class UserResponse(BaseModel):
    """Public view of a user. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    role: str
    status: str
    gender: str
    avatar_url: str | None = None
    phone: str | None = None
    about: str | None = None
    email_confirmed: bool = False
    referral_code: str | None = None
    coins: int = 0
    created_at: datetime


class UserProfileResponse(UserResponse):
    """The caller's own profile, with their addresses."""

    addresses: list[AddressResponse] = []


class UserUpdateRequest(BaseModel):
    """Editable profile fields. Role, status, email and coins are not listed here."""

    model_config = ConfigDict(extra="ignore")

    first_name: str | None = Field(None, min_length=1, max_length=30)
    last_name: str | None = Field(None, max_length=30)
    gender: Gender | None = None
    avatar_url: str | None = Field(None, max_length=2000)
    phone: str | None = Field(None, max_length=20)
    about: str | None = Field(None, max_length=500)


class UserStatusUpdateRequest(BaseModel):
    """Admin-only account fields."""

    status: Literal["active", "inactive", "blocked"] | None = None
    role: Literal["user", "admin", "superadmin"] | None = None


class UserAccountUpdateRequest(UserUpdateRequest):
    """Body for ``PUT /api/users/{id}``. Only admins may send status or role."""

    status: Literal["active", "inactive", "blocked"] | None = None
    role: Literal["user", "admin", "superadmin"] | None = None
