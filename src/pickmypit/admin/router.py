"""Admin router: all /api/admin/* endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.admin.schemas import (
    AdminCreateRequest,
    AdminProfileUpdateRequest,
    AdminResponse,
    AdminUpdateRequest,
    DashboardStats,
)
from pickmypit.admin.service import (
    create_admin,
    dashboard_stats,
    delete_admin,
    get_admin,
    list_admins,
    update_admin,
    update_admin_profile,
)
from pickmypit.auth.dependencies import get_current_admin, require_superadmin
from pickmypit.database import get_session
from pickmypit.db.models import Admin
from pickmypit.pagination import MAX_LIMIT, parse_positive_int
from pickmypit.schemas import ApiResponse, ok, paginated

router = APIRouter(prefix="/api/admin", tags=["Admin"])


# ---------------------------------------------------------------------------
# Own profile
# ---------------------------------------------------------------------------


@router.get("/profile", response_model=ApiResponse[AdminResponse])
async def get_own_profile(admin: Admin = Depends(get_current_admin)) -> dict[str, Any]:
    return ok(AdminResponse.model_validate(admin), "Admin profile retrieved successfully")


@router.put("/profile", response_model=ApiResponse[AdminResponse])
async def update_own_profile(
    body: AdminProfileUpdateRequest,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    admin = await update_admin_profile(db, admin, body)
    await db.commit()
    return ok(AdminResponse.model_validate(admin), "Admin profile updated successfully")


@router.get("/dashboard/stats", response_model=ApiResponse[DashboardStats])
async def get_dashboard_stats(
    _: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """User, post and admin counts for the dashboard landing page."""
    return ok(DashboardStats.model_validate(await dashboard_stats(db)), "Dashboard stats retrieved successfully")


# ---------------------------------------------------------------------------
# Admin management
# ---------------------------------------------------------------------------


@router.get("/", response_model=ApiResponse[list[AdminResponse]])
async def get_admins(
    request: Request,
    _: Admin = Depends(require_superadmin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    page = parse_positive_int(request.query_params.get("page"), 1)
    limit = parse_positive_int(request.query_params.get("limit"), 10, MAX_LIMIT)
    admins, total = await list_admins(db, page, limit)
    items = [AdminResponse.model_validate(a) for a in admins]
    return paginated(items, total, page, limit, "Admins retrieved successfully")


@router.post("/", response_model=ApiResponse[AdminResponse], status_code=201)
async def create(
    body: AdminCreateRequest,
    _: Admin = Depends(require_superadmin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    admin = await create_admin(db, body)
    await db.commit()
    return ok(AdminResponse.model_validate(admin), "Admin created successfully")


@router.get("/{admin_id}", response_model=ApiResponse[AdminResponse])
async def get_by_id(
    admin_id: int,
    _: Admin = Depends(require_superadmin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(AdminResponse.model_validate(await get_admin(db, admin_id)), "Admin retrieved successfully")


@router.put("/{admin_id}", response_model=ApiResponse[AdminResponse])
async def update(
    admin_id: int,
    body: AdminUpdateRequest,
    _: Admin = Depends(require_superadmin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    admin = await update_admin(db, admin_id, body)
    await db.commit()
    return ok(AdminResponse.model_validate(admin), "Admin updated successfully")


@router.delete("/{admin_id}", response_model=ApiResponse[None])
async def delete(
    admin_id: int,
    acting: Admin = Depends(require_superadmin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Delete another admin. Deleting yourself is rejected."""
    await delete_admin(db, acting, admin_id)
    await db.commit()
    return ok(None, "Admin deleted successfully")
