"""Response envelope shared by every endpoint."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from pickmypit.pagination import build_meta

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Page bookkeeping, serialized with the camelCase keys clients expect."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(serialization_alias="totalPages")
    has_next: bool = Field(serialization_alias="hasNext")
    has_prev: bool = Field(serialization_alias="hasPrev")


class Meta(BaseModel):
    pagination: PaginationMeta


class ApiResponse(BaseModel, Generic[T]):
    """``{success, message, data, meta}`` envelope."""

    success: bool = True
    message: str = "Success"
    data: T | None = None
    meta: Meta | None = None


def ok(data: Any = None, message: str = "Success") -> dict[str, Any]:  # noqa: ANN401
    """Success envelope without pagination."""
    return {"success": True, "message": message, "data": data}


def paginated(items: list[Any], total: int, page: int, limit: int, message: str = "Success") -> dict[str, Any]:
    """Success envelope with pagination meta."""
    return {
        "success": True,
        "message": message,
        "data": items,
        "meta": {"pagination": build_meta(total, page, limit)},
    }
