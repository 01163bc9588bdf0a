"""User management router: all /api/users/* endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.auth.dependencies import Principal, get_current_user, get_principal, require_admin_role
from pickmypit.database import get_session
from pickmypit.db.models import USER_ROLES, USER_STATUSES, User
from pickmypit.exceptions import AuthorizationError
from pickmypit.pagination import MAX_LIMIT, parse_positive_int
from pickmypit.schemas import ApiResponse, ok, paginated
from pickmypit.users.schemas import (
    UserAccountUpdateRequest,
    UserProfileResponse,
    UserResponse,
    UserStatusUpdateRequest,
    UserUpdateRequest,
)
from pickmypit.users.service import (
    delete_user,
    get_profile,
    list_users,
    require_user,
    update_account_state,
    update_profile,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/users", tags=["Users"])

_PROFILE_FIELDS = set(UserUpdateRequest.model_fields)
_ACCOUNT_FIELDS = set(UserStatusUpdateRequest.model_fields)


def _choice(request: Request, name: str, allowed: tuple[str, ...]) -> str | None:
    raw = (request.query_params.get(name) or "").strip().lower()
    return raw if raw in allowed else None


# ---------------------------------------------------------------------------
# Own profile
# ---------------------------------------------------------------------------


@router.get("/profile/me", response_model=ApiResponse[UserProfileResponse])
async def get_my_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Own profile, including saved addresses."""
    profile = await get_profile(db, user.id)
    return ok(UserProfileResponse.model_validate(profile), "Profile retrieved successfully")


@router.put("/profile/me", response_model=ApiResponse[UserResponse])
async def update_my_profile(
    body: UserUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    user = await update_profile(db, user, body)
    await db.commit()
    return ok(UserResponse.model_validate(user), "Profile updated successfully")


# ---------------------------------------------------------------------------
# Admin listing
# ---------------------------------------------------------------------------


@router.get("/", response_model=ApiResponse[list[UserResponse]])
async def get_users(
    request: Request,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Paginated users; filter with ``search``, ``status`` and ``role``."""
    page = parse_positive_int(request.query_params.get("page"), 1)
    limit = parse_positive_int(request.query_params.get("limit"), 10, MAX_LIMIT)
    users, total = await list_users(
        db,
        page,
        limit,
        search=(request.query_params.get("search") or "").strip() or None,
        status=_choice(request, "status", USER_STATUSES),
        role=_choice(request, "role", USER_ROLES),
    )
    return paginated([UserResponse.model_validate(u) for u in users], total, page, limit, "Users retrieved successfully")


# ---------------------------------------------------------------------------
# By id
# ---------------------------------------------------------------------------


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(user_id: int, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return ok(UserResponse.model_validate(await require_user(db, user_id)), "User retrieved successfully")


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: int,
    body: UserAccountUpdateRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Update a user. The user themself may edit profile fields; only admins may change status or role."""
    is_self = principal.kind == "user" and principal.id == user_id
    if not (is_self or principal.is_admin):
        raise AuthorizationError("You can only update your own profile")

    sent = body.model_fields_set
    if sent & _ACCOUNT_FIELDS and not principal.is_admin:
        raise AuthorizationError("Only admins can change account status or role")

    user = await require_user(db, user_id)
    user = await update_profile(db, user, UserUpdateRequest.model_validate(body.model_dump(include=_PROFILE_FIELDS & sent)))
    if sent & _ACCOUNT_FIELDS:
        account = UserStatusUpdateRequest.model_validate(body.model_dump(include=_ACCOUNT_FIELDS & sent))
        user = await update_account_state(db, user, account)
        logger.info("user_account_changed_by_admin", user_id=user.id, admin_id=principal.id)
    await db.commit()
    return ok(UserResponse.model_validate(user), "User updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse[None])
async def remove_user(
    user_id: int,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await delete_user(db, user_id)
    await db.commit()
    return ok(None, "User deleted successfully")
