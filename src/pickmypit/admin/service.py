"""Admin accounts and the moderation dashboard."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from pickmypit.auth.password import PasswordStrengthError, hash_password, validate_password_strength
from pickmypit.auth.service import get_admin_by_email
from pickmypit.db.models import POST_STATUSES, Admin, Post, User
from pickmypit.exceptions import ConflictError, NotFoundError, ValidationError
from pickmypit.pagination import paginate
from pickmypit.posts.service import count_posts_by_status

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pickmypit.admin.schemas import AdminCreateRequest, AdminProfileUpdateRequest, AdminUpdateRequest

logger = structlog.get_logger()

RECENT_WINDOW = timedelta(days=30)
DUPLICATE_EMAIL = "Admin with this email already exists"


def _checked_hash(password: str) -> str:
    try:
        validate_password_strength(password)
    except PasswordStrengthError as e:
        raise ValidationError(str(e), errors=[{"field": "password", "message": str(e)}]) from e
    return hash_password(password)


async def _flush_admin(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError(DUPLICATE_EMAIL) from e


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def update_admin_profile(db: AsyncSession, admin: Admin, body: AdminProfileUpdateRequest) -> Admin:
    changes: dict[str, Any] = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(admin, field, value)
    await db.flush()
    logger.info("admin_profile_updated", admin_id=admin.id, fields=sorted(changes))
    return admin


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def _count(db: AsyncSession, query: Any) -> int:  # noqa: ANN401
    return int((await db.execute(query)).scalar_one())


async def dashboard_stats(db: AsyncSession, now: datetime | None = None) -> dict[str, Any]:
    """Headline counts for the admin dashboard.

    ``recent`` means created within the last 30 days.
    """
    since = (now or datetime.now(timezone.utc)) - RECENT_WINDOW

    users = {
        "total": await _count(db, select(func.count()).select_from(User)),
        "active": await _count(db, select(func.count()).select_from(User).where(User.status == "active")),
        "recent": await _count(db, select(func.count()).select_from(User).where(User.created_at >= since)),
    }

    by_status = await count_posts_by_status(db)
    posts: dict[str, int] = {status: by_status.get(status, 0) for status in POST_STATUSES}
    posts["total"] = sum(by_status.values())
    posts["recent"] = await _count(db, select(func.count()).select_from(Post).where(Post.created_at >= since))

    admins = {"total": await _count(db, select(func.count()).select_from(Admin))}
    return {"users": users, "posts": posts, "admins": admins}


# ---------------------------------------------------------------------------
# Admin management (superadmin only)
# ---------------------------------------------------------------------------


async def list_admins(db: AsyncSession, page: int, limit: int) -> tuple[list[Admin], int]:
    query = select(Admin).order_by(Admin.created_at.desc(), Admin.id.desc())
    return await paginate(db, query, page, limit)


async def get_admin(db: AsyncSession, admin_id: int) -> Admin:
    admin = await db.get(Admin, admin_id)
    if admin is None:
        raise NotFoundError("Admin not found")
    return admin


async def create_admin(db: AsyncSession, body: AdminCreateRequest) -> Admin:
    if await get_admin_by_email(db, body.email) is not None:
        raise ConflictError(DUPLICATE_EMAIL)

    admin = Admin(
        first_name=body.first_name.strip(),
        last_name=body.last_name.strip(),
        email=body.email,
        password_hash=_checked_hash(body.password),
        role=body.role,
        status=body.status,
        gender=body.gender,
    )
    db.add(admin)
    await _flush_admin(db)
    logger.info("admin_created", admin_id=admin.id, role=admin.role)
    return admin


async def update_admin(db: AsyncSession, admin_id: int, body: AdminUpdateRequest) -> Admin:
    """Update another admin. A new password is re-hashed; email stays unique."""
    admin = await get_admin(db, admin_id)
    changes: dict[str, Any] = body.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes and changes["email"] != admin.email:
        existing = await get_admin_by_email(db, changes["email"])
        if existing is not None and existing.id != admin.id:
            raise ConflictError(DUPLICATE_EMAIL)
    if "password" in changes:
        admin.password_hash = _checked_hash(changes.pop("password"))

    for field, value in changes.items():
        setattr(admin, field, value)
    await _flush_admin(db)
    logger.info("admin_updated", admin_id=admin.id, fields=sorted(body.model_fields_set))
    return admin


async def delete_admin(db: AsyncSession, acting: Admin, admin_id: int) -> None:
    if acting.id == admin_id:
        raise ValidationError("You cannot delete your own account")
    admin = await get_admin(db, admin_id)
    await db.delete(admin)
    await db.flush()
    logger.info("admin_deleted", admin_id=admin_id, deleted_by=acting.id)
