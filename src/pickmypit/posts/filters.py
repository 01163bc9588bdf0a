"""
Listing query builder.

Turns raw query-string values into a SQLAlchemy select over posts. Parsing is
lenient: blank values count as absent and unparseable numbers fall back to
their defaults without an error. Each listing endpoint supplies a
``ListingScope`` that fixes its default status, page size and search columns.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pickmypit.db.models import POST_STATUSES, POST_TYPES, Post
from pickmypit.pagination import MAX_LIMIT, parse_positive_int
from pickmypit.posts.geo import find_address_ids_within

PUBLIC_STATUS = "available"
ALL = "all"

SORT_ORDERS: dict[str, tuple[Any, ...]] = {
    "newest": (Post.created_at.desc(), Post.id.desc()),
    "oldest": (Post.created_at.asc(), Post.id.asc()),
    "price-low": (Post.amount.asc(), Post.id.desc()),
    "price-high": (Post.amount.desc(), Post.id.desc()),
    "title-az": (Post.title.asc(), Post.id.asc()),
    "title-za": (Post.title.desc(), Post.id.desc()),
}
DEFAULT_SORT = "newest"

_TRUTHY = frozenset({"true", "1", "yes", "on"})


@dataclass(frozen=True)
class ListingScope:
    """Per-endpoint defaults for the builder."""

    default_status: str | None
    default_limit: int
    search_columns: tuple[str, ...] = ("title", "description")
    allow_geo: bool = False


PUBLIC_LISTING = ListingScope(default_status=PUBLIC_STATUS, default_limit=10)
PUBLIC_FILTER = ListingScope(default_status=PUBLIC_STATUS, default_limit=12, allow_geo=True)
MODERATION_QUEUE = ListingScope(
    default_status="pending", default_limit=10, search_columns=("title", "description", "category")
)
ADMIN_LISTING = ListingScope(
    default_status=None, default_limit=10, search_columns=("title", "description", "category")
)


def _clean(raw: str | None) -> str | None:
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _parse_float(raw: str | None) -> float | None:
    value = _clean(raw)
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class PostFilterParams:
    """Normalized listing parameters."""

    page: int = 1
    limit: int = 10
    species: str | None = None
    breed: str | None = None
    type: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    search: str | None = None
    status: str | None = None
    sort: str = DEFAULT_SORT
    near: tuple[float, float, float] | None = None

    @classmethod
    def from_query(cls, query: Mapping[str, str], scope: ListingScope) -> PostFilterParams:
        """Build params from raw query values (``request.query_params``)."""
        post_type = _clean(query.get("type"))
        if post_type is not None:
            post_type = post_type.lower()
            if post_type not in POST_TYPES:
                post_type = None

        sort = (_clean(query.get("sort")) or DEFAULT_SORT).lower()
        if sort not in SORT_ORDERS:
            sort = DEFAULT_SORT

        status = _clean(query.get("status"))
        if status is not None:
            status = status.lower()
            if status != ALL and status not in POST_STATUSES:
                status = None

        near = None
        if scope.allow_geo and (_clean(query.get("nearMe")) or "").lower() in _TRUTHY:
            longitude = _parse_float(query.get("longitude"))
            latitude = _parse_float(query.get("latitude"))
            max_distance = _parse_float(query.get("maxDistance"))
            if (
                longitude is not None
                and latitude is not None
                and max_distance is not None
                and -90 <= latitude <= 90
                and -180 <= longitude <= 180
                and max_distance >= 0
            ):
                near = (latitude, longitude, max_distance)

        species = _clean(query.get("species"))
        if species is not None and species.lower() == ALL:
            species = None

        return cls(
            page=parse_positive_int(query.get("page"), 1),
            limit=parse_positive_int(query.get("limit"), scope.default_limit, MAX_LIMIT),
            species=species,
            breed=_clean(query.get("breed")),
            type=post_type,
            min_price=_parse_float(query.get("minPrice")),
            max_price=_parse_float(query.get("maxPrice")),
            search=_clean(query.get("search")),
            status=status,
            sort=sort,
            near=near,
        )


async def build_conditions(
    db: AsyncSession,
    params: PostFilterParams,
    scope: ListingScope,
) -> list[ColumnElement[bool]]:
    """WHERE clauses for ``params`` under ``scope``.

    With a geo constraint and no address in range the result contains
    ``false()``, so the listing is empty rather than unfiltered.
    """
    conditions: list[ColumnElement[bool]] = []

    if params.status is None:
        if scope.default_status is not None:
            conditions.append(Post.status == scope.default_status)
    elif params.status != ALL:
        conditions.append(Post.status == params.status)

    if params.species:
        conditions.append(func.lower(Post.species) == params.species.lower())
    if params.breed:
        conditions.append(func.lower(Post.category) == params.breed.lower())
    if params.type:
        conditions.append(Post.type == params.type)

    if params.type == "paid":
        conditions.append(Post.amount >= (params.min_price if params.min_price is not None else 0))
        if params.max_price is not None:
            conditions.append(Post.amount <= params.max_price)

    if params.search:
        pattern = f"%{_escape_like(params.search.lower())}%"
        conditions.append(
            or_(*(func.lower(getattr(Post, column)).like(pattern, escape="\\") for column in scope.search_columns))
        )

    if params.near is not None:
        latitude, longitude, max_distance = params.near
        address_ids = await find_address_ids_within(db, latitude, longitude, max_distance)
        conditions.append(Post.address_id.in_(address_ids) if address_ids else false())

    return conditions


def listing_query(conditions: list[ColumnElement[bool]], sort: str = DEFAULT_SORT) -> Select:  # type: ignore[type-arg]
    """Posts matching ``conditions`` with owner and address eagerly loaded."""
    return (
        select(Post)
        .where(*conditions)
        .options(selectinload(Post.owner), selectinload(Post.address))
        .order_by(*SORT_ORDERS.get(sort, SORT_ORDERS[DEFAULT_SORT]))
        .execution_options(populate_existing=True)
    )
