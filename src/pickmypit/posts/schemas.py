"""Request/response schemas for pet listings."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from pickmypit.addresses.schemas import AddressResponse

AgeUnit = Literal["days", "weeks", "months", "years"]
PostType = Literal["free", "paid"]
PostStatus = Literal["pending", "available", "sold", "adopted", "rejected", "banned"]

PHONE_PATTERN = re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
LINK_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)


def contains_contact_details(text: str) -> bool:
    """True if the text carries a phone number or a link."""
    return bool(PHONE_PATTERN.search(text) or LINK_PATTERN.search(text))


def format_age(value: int | None, unit: str | None) -> str:
    """``1 month old``, ``3 years old``; empty when no age is known."""
    if not value or not unit:
        return ""
    unit_label = unit[:-1] if value == 1 else unit
    return f"{value} {unit_label} old"


class PostAge(BaseModel):
    value: int = Field(..., ge=0, le=1000)
    unit: AgeUnit


class _ContentChecks(BaseModel):
    @field_validator("title", check_fields=False)
    @classmethod
    def title_has_no_contact_details(cls, v: str | None) -> str | None:
        if v is not None and contains_contact_details(v):
            msg = "Title cannot contain phone numbers or links."
            raise ValueError(msg)
        return v

    @field_validator("description", check_fields=False)
    @classmethod
    def description_has_no_contact_details(cls, v: str | None) -> str | None:
        if v is not None and contains_contact_details(v):
            msg = "Description cannot contain phone numbers or links."
            raise ValueError(msg)
        return v


class PostCreateRequest(_ContentChecks):
    """New listing. Image entries may be data URIs (uploaded) or URLs (kept)."""

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=20, max_length=5000)
    amount: float = Field(0, ge=0)
    type: PostType = "free"
    category: str = Field(..., min_length=1, max_length=100)
    species: str = Field(..., min_length=1, max_length=100)
    address_id: int | None = None
    images: list[str] = Field(default_factory=list, max_length=10)
    age: PostAge | None = None


class PostUpdateRequest(_ContentChecks):
    """Content-only update. Status changes go through the moderation endpoints."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=20, max_length=5000)
    amount: float | None = Field(None, ge=0)
    type: PostType | None = None
    category: str | None = Field(None, min_length=1, max_length=100)
    species: str | None = Field(None, min_length=1, max_length=100)
    address_id: int | None = None
    images: list[str] | None = Field(None, max_length=10)
    age: PostAge | None = None


class StatusUpdateRequest(BaseModel):
    status: PostStatus


class ModerationRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class OwnerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    avatar_url: str | None = None
    phone: str | None = None


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    description: str
    images: list[str]
    amount: float
    type: str
    category: str
    species: str
    category_slug: str
    species_slug: str
    status: str
    rejection_reason: str | None = None
    moderated_at: datetime | None = None
    owner_id: int
    address_id: int | None = None
    owner: OwnerSummary | None = None
    address: AddressResponse | None = None
    age_value: int | None = None
    age_unit: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def age(self) -> PostAge | None:
        if self.age_value is None or self.age_unit is None:
            return None
        return PostAge(value=self.age_value, unit=self.age_unit)  # type: ignore[arg-type]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def formatted_age(self) -> str:
        return format_age(self.age_value, self.age_unit)
