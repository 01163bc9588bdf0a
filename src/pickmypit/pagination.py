"""Offset pagination over SQLAlchemy selects.

Listings are small enough that page/limit offsets are fine. The total is
counted with the same WHERE clause as the page query, with ordering and
eager loads stripped.
"""

from __future__ import annotations

import math
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

MAX_LIMIT = 100


def parse_positive_int(raw: str | int | None, default: int, maximum: int | None = None) -> int:
    """Lenient integer parsing: blanks, garbage and values < 1 fall back to ``default``."""
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    if value < 1:
        return default
    if maximum is not None:
        value = min(value, maximum)
    return value


def build_meta(total: int, page: int, limit: int) -> dict[str, Any]:
    """Compute page counters for a result of ``total`` rows."""
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


async def paginate(
    db: AsyncSession,
    query: Select,  # type: ignore[type-arg]
    page: int,
    limit: int,
) -> tuple[list[Any], int]:
    """Fetch one page of ``query`` plus the total number of matching rows.

    Args:
        db: Database session.
        query: Ordered select of ORM entities.
        page: 1-based page number.
        limit: Page size (capped at MAX_LIMIT).

    Returns:
        Tuple of (items, total).
    """
    limit = min(limit, MAX_LIMIT)
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    items = list(result.scalars().unique().all())
    return items, int(total)
