"""Request/response schemas for blog articles."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

BlogStatus = Literal["draft", "published"]


class BlogCreateRequest(BaseModel):
    """``content`` is the rich-text editor state, stored as-is."""

    title: str = Field(..., min_length=5, max_length=150)
    content: dict[str, Any]
    category: str = Field(..., min_length=1, max_length=100)
    cover_image: str = ""
    status: BlogStatus = "draft"


class BlogUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=5, max_length=150)
    content: dict[str, Any] | None = None
    category: str | None = Field(None, min_length=1, max_length=100)
    cover_image: str | None = None
    status: BlogStatus | None = None


class BlogAuthor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    avatar_url: str | None = None


class BlogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    content: dict[str, Any]
    category: str
    cover_image: str
    status: str
    author_id: int | None = None
    author: BlogAuthor | None = None
    created_at: datetime
    updated_at: datetime
