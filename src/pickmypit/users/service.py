"""User management business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.orm import selectinload

from pickmypit.db.models import User
from pickmypit.exceptions import NotFoundError
from pickmypit.pagination import paginate

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pickmypit.users.schemas import UserStatusUpdateRequest, UserUpdateRequest

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower().strip()))
    return result.scalar_one_or_none()


async def require_user(db: AsyncSession, user_id: int) -> User:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def get_profile(db: AsyncSession, user_id: int) -> User:
    """Load a user together with their addresses."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.addresses))
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_users(
    db: AsyncSession,
    page: int,
    limit: int,
    *,
    search: str | None = None,
    status: str | None = None,
    role: str | None = None,
) -> tuple[list[User], int]:
    """Paginated user listing for admins, newest first."""
    query = select(User)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern),
                func.lower(User.email).like(pattern),
            )
        )
    if status:
        query = query.where(User.status == status)
    if role:
        query = query.where(User.role == role)
    query = query.order_by(User.created_at.desc(), User.id.desc())
    return await paginate(db, query, page, limit)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def update_profile(db: AsyncSession, user: User, body: UserUpdateRequest) -> User:
    """Apply the editable profile fields that were sent."""
    changes: dict[str, Any] = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)
    await db.flush()
    logger.info("user_profile_updated", user_id=user.id, fields=sorted(changes))
    return user


async def update_account_state(db: AsyncSession, user: User, body: UserStatusUpdateRequest) -> User:
    """Admin-only changes to role and status."""
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(user, field, value)
    await db.flush()
    if changes:
        logger.info("user_account_updated", user_id=user.id, **changes)
    return user


async def delete_user(db: AsyncSession, user_id: int) -> None:
    user = await require_user(db, user_id)
    await db.delete(user)
    await db.flush()
    logger.info("user_deleted", user_id=user_id)
