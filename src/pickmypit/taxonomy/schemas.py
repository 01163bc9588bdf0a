"""Request/response schemas for species and breeds."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _lower(v: str | None) -> str | None:
    return v.strip().lower() if v is not None else v


# ---------------------------------------------------------------------------
# Species
# ---------------------------------------------------------------------------


class SpeciesCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    display_name: str = Field(..., min_length=2, max_length=50)
    description: str = Field("", max_length=500)
    icon: str = Field("", max_length=200)
    active: bool = True
    popularity: int = Field(0, ge=0)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return v.strip().lower()


class SpeciesUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=50)
    display_name: str | None = Field(None, min_length=2, max_length=50)
    description: str | None = Field(None, max_length=500)
    icon: str | None = Field(None, max_length=200)
    active: bool | None = None
    popularity: int | None = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        return _lower(v)


class SpeciesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    display_name: str
    description: str
    icon: str
    active: bool
    popularity: int
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Breeds
# ---------------------------------------------------------------------------


class BreedCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    species_id: int
    description: str = Field("", max_length=500)
    characteristics: list[str] = Field(default_factory=list)
    active: bool = True
    popularity: int = Field(0, ge=0)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return v.strip().lower()


class BreedUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=50)
    species_id: int | None = None
    description: str | None = Field(None, max_length=500)
    characteristics: list[str] | None = None
    active: bool | None = None
    popularity: int | None = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        return _lower(v)


class SpeciesSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    display_name: str


class BreedSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    characteristics: list[str]
    popularity: int


class BreedResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    species_id: int
    species_name: str
    name: str
    description: str
    characteristics: list[str]
    active: bool
    popularity: int
    species: SpeciesSummary | None = None
    created_at: datetime
    updated_at: datetime


class SpeciesHierarchyItem(SpeciesResponse):
    breeds: list[BreedSummary] = []
