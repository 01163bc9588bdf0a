"""Listings router: all /api/posts/* endpoints.

Fixed paths are registered before ``/{post_id}`` so they are not captured by it.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.auth.dependencies import Principal, get_current_user, get_principal, require_admin_role
from pickmypit.database import get_session
from pickmypit.db.models import Post, User
from pickmypit.media.cloudinary import CloudinaryImageHost, get_image_host
from pickmypit.pagination import MAX_LIMIT, parse_positive_int
from pickmypit.posts.filters import (
    ADMIN_LISTING,
    MODERATION_QUEUE,
    PUBLIC_FILTER,
    PUBLIC_LISTING,
    ListingScope,
    PostFilterParams,
)
from pickmypit.posts.schemas import (
    ModerationRequest,
    PostCreateRequest,
    PostResponse,
    PostUpdateRequest,
    StatusUpdateRequest,
)
from pickmypit.posts.service import (
    change_status,
    cleanup_images,
    create_post,
    delete_post,
    get_post,
    get_post_by_slug,
    list_posts,
    list_user_posts,
    update_post,
)
from pickmypit.schemas import ApiResponse, ok, paginated

router = APIRouter(prefix="/api/posts", tags=["Posts"])


def _post(post: Post) -> PostResponse:
    return PostResponse.model_validate(post)


async def _listing(request: Request, db: AsyncSession, scope: ListingScope, message: str) -> dict[str, Any]:
    params = PostFilterParams.from_query(request.query_params, scope)
    posts, total = await list_posts(db, params, scope)
    return paginated([_post(p) for p in posts], total, params.page, params.limit, message)


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


@router.get("/", response_model=ApiResponse[list[PostResponse]])
async def get_all_posts(request: Request, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Public listing of approved posts (species, breed and type filters)."""
    return await _listing(request, db, PUBLIC_LISTING, "Posts retrieved successfully")


@router.get("/filter", response_model=ApiResponse[list[PostResponse]])
async def filter_posts(request: Request, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Public listing with price range, search, sorting and the ``nearMe`` radius filter."""
    return await _listing(request, db, PUBLIC_FILTER, "Filtered posts retrieved successfully")


@router.get("/pending-approvals", response_model=ApiResponse[list[PostResponse]])
async def get_pending_approvals(
    request: Request,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Moderation queue. ``status=all`` lists every status."""
    return await _listing(request, db, MODERATION_QUEUE, "Approvals retrieved successfully")


@router.get("/admin", response_model=ApiResponse[list[PostResponse]])
async def get_posts_for_admin(
    request: Request,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return await _listing(request, db, ADMIN_LISTING, "Posts retrieved successfully")


@router.get("/admin/{post_id}", response_model=ApiResponse[PostResponse])
async def get_post_for_admin(
    post_id: int,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(_post(await get_post(db, post_id)), "Post retrieved successfully")


@router.get("/user-posts", response_model=ApiResponse[list[PostResponse]])
async def get_user_posts(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """The caller's own posts, whatever their status."""
    page = parse_positive_int(request.query_params.get("page"), 1)
    limit = parse_positive_int(request.query_params.get("limit"), 10, MAX_LIMIT)
    posts, total = await list_user_posts(db, user.id, page, limit)
    return paginated([_post(p) for p in posts], total, page, limit, "User posts retrieved successfully")


@router.get("/slug/{slug}", response_model=ApiResponse[PostResponse])
async def get_by_slug(slug: str, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return ok(_post(await get_post_by_slug(db, slug)), "Post retrieved successfully")


@router.get("/{post_id}", response_model=ApiResponse[PostResponse])
async def get_by_id(post_id: int, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return ok(_post(await get_post(db, post_id)), "Post retrieved successfully")


# ---------------------------------------------------------------------------
# Owner writes
# ---------------------------------------------------------------------------


@router.post("/", response_model=ApiResponse[PostResponse], status_code=201)
async def create(
    body: PostCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    image_host: CloudinaryImageHost = Depends(get_image_host),
) -> dict[str, Any]:
    """Create a listing; it waits in the moderation queue until approved."""
    post = await create_post(db, user.id, body, image_host)
    await db.commit()
    return ok(_post(post), "Post created successfully")


@router.put("/{post_id}", response_model=ApiResponse[PostResponse])
async def update(
    post_id: int,
    body: PostUpdateRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_session),
    image_host: CloudinaryImageHost = Depends(get_image_host),
) -> dict[str, Any]:
    post = await update_post(db, principal, post_id, body, image_host)
    await db.commit()
    return ok(_post(post), "Post updated successfully")


@router.delete("/{post_id}", response_model=ApiResponse[None])
async def delete(
    post_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_session),
    image_host: CloudinaryImageHost = Depends(get_image_host),
) -> dict[str, Any]:
    images = await delete_post(db, principal, post_id)
    await db.commit()
    await cleanup_images(image_host, images)
    return ok(None, "Post deleted successfully")


# ---------------------------------------------------------------------------
# Moderation
# ---------------------------------------------------------------------------


@router.put("/{post_id}/approve", response_model=ApiResponse[PostResponse])
async def approve(
    post_id: int,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    post = await change_status(db, principal, post_id, "available")
    await db.commit()
    return ok(_post(post), "Post approved successfully")


@router.post("/{post_id}/reject", response_model=ApiResponse[PostResponse])
async def reject(
    post_id: int,
    body: ModerationRequest | None = None,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    reason = body.reason if body else None
    post = await change_status(db, principal, post_id, "rejected", reason)
    await db.commit()
    return ok(_post(post), "Post rejected successfully")


@router.put("/{post_id}/ban", response_model=ApiResponse[PostResponse])
async def ban(
    post_id: int,
    body: ModerationRequest | None = None,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    reason = body.reason if body else None
    post = await change_status(db, principal, post_id, "banned", reason)
    await db.commit()
    return ok(_post(post), "Post banned successfully")


@router.put("/{post_id}/status", response_model=ApiResponse[PostResponse])
async def update_status(
    post_id: int,
    body: StatusUpdateRequest,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Owner or admin marks a listing sold or adopted."""
    post = await change_status(db, principal, post_id, body.status)
    await db.commit()
    return ok(_post(post), "Post status updated successfully")
