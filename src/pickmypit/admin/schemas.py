"""Request/response schemas for admin accounts and the dashboard."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

AdminGender = Literal["male", "female", "other"]


class AdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    role: str
    status: str
    gender: str | None = None
    avatar_url: str | None = None
    created_at: datetime


class AdminProfileUpdateRequest(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=30)
    last_name: str | None = Field(None, min_length=1, max_length=30)
    gender: AdminGender | None = None


class AdminCreateRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=30)
    last_name: str = Field(..., min_length=1, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: Literal["admin", "superadmin"] = "admin"
    status: Literal["active", "inactive"] = "active"
    gender: AdminGender | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class AdminUpdateRequest(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=30)
    last_name: str | None = Field(None, min_length=1, max_length=30)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=1, max_length=128)
    role: Literal["admin", "superadmin"] | None = None
    status: Literal["active", "inactive"] | None = None
    gender: AdminGender | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return v.lower().strip() if v else v


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class UserStats(BaseModel):
    total: int
    active: int
    recent: int


class PostStats(BaseModel):
    total: int
    pending: int
    available: int
    sold: int
    adopted: int
    rejected: int
    banned: int
    recent: int


class AdminStats(BaseModel):
    total: int


class DashboardStats(BaseModel):
    users: UserStats
    posts: PostStats
    admins: AdminStats
