"""Request/response schemas for user addresses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

POSTAL_CODE_PATTERN = r"^\d{6}$"


class AddressCreateRequest(BaseModel):
    street: str = Field(..., min_length=5, max_length=200)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    postal_code: str = Field(..., pattern=POSTAL_CODE_PATTERN)
    country: str = Field(..., min_length=2, max_length=100)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    landmark: str | None = Field(None, max_length=200)
    is_default: bool = False


class AddressUpdateRequest(BaseModel):
    """Partial update; at least one field must be present."""

    street: str | None = Field(None, min_length=5, max_length=200)
    city: str | None = Field(None, min_length=2, max_length=100)
    state: str | None = Field(None, min_length=2, max_length=100)
    postal_code: str | None = Field(None, pattern=POSTAL_CODE_PATTERN)
    country: str | None = Field(None, min_length=2, max_length=100)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    landmark: str | None = Field(None, max_length=200)
    is_default: bool | None = None

    @field_validator("street", "city", "state", "postal_code", "country")
    @classmethod
    def required_fields_not_null(cls, v: str | None) -> str:
        if v is None:
            msg = "This field cannot be cleared"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def at_least_one_field(self) -> AddressUpdateRequest:
        if not self.model_fields_set:
            msg = "At least one field must be provided"
            raise ValueError(msg)
        return self


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    street: str
    city: str
    state: str
    postal_code: str
    country: str
    latitude: float | None = None
    longitude: float | None = None
    landmark: str | None = None
    is_default: bool
    created_at: datetime
    updated_at: datetime
