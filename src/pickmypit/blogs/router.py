"""Blog router: public /api/blogs/* and admin /api/blogs/admin/*."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.auth.dependencies import get_current_admin
from pickmypit.blogs.schemas import BlogCreateRequest, BlogResponse, BlogUpdateRequest
from pickmypit.blogs.service import create_blog, delete_blog, get_blog, get_published_blog, list_blogs, update_blog
from pickmypit.database import get_session
from pickmypit.db.models import BLOG_STATUSES, Admin
from pickmypit.media.cloudinary import CloudinaryImageHost, get_image_host
from pickmypit.pagination import MAX_LIMIT, parse_positive_int
from pickmypit.schemas import ApiResponse, ok, paginated

router = APIRouter(prefix="/api/blogs", tags=["Blogs"])


def _status_filter(request: Request, default: str | None) -> str | None:
    """``all`` removes the filter, a known status selects it, anything else keeps the default."""
    raw = (request.query_params.get("status") or "").strip().lower()
    if raw == "all":
        return None
    if raw in BLOG_STATUSES:
        return raw
    return default


async def _listing(request: Request, db: AsyncSession, default_status: str | None) -> dict[str, Any]:
    page = parse_positive_int(request.query_params.get("page"), 1)
    limit = parse_positive_int(request.query_params.get("limit"), 10, MAX_LIMIT)
    blogs, total = await list_blogs(db, page, limit, _status_filter(request, default_status))
    return paginated([BlogResponse.model_validate(b) for b in blogs], total, page, limit, "Blogs retrieved successfully")


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.get("/admin/all", response_model=ApiResponse[list[BlogResponse]])
async def admin_list(
    request: Request,
    _: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return await _listing(request, db, None)


@router.post("/admin", response_model=ApiResponse[BlogResponse], status_code=201)
async def admin_create(
    body: BlogCreateRequest,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    image_host: CloudinaryImageHost = Depends(get_image_host),
) -> dict[str, Any]:
    """Create an article; a data-URI cover image is uploaded first."""
    blog = await create_blog(db, admin.id, body, image_host)
    await db.commit()
    return ok(BlogResponse.model_validate(blog), "Blog post created successfully")


@router.get("/admin/{blog_id}", response_model=ApiResponse[BlogResponse])
async def admin_get(
    blog_id: int,
    _: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return ok(BlogResponse.model_validate(await get_blog(db, blog_id)), "Blog post retrieved successfully")


@router.put("/admin/{blog_id}", response_model=ApiResponse[BlogResponse])
async def admin_update(
    blog_id: int,
    body: BlogUpdateRequest,
    _: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
    image_host: CloudinaryImageHost = Depends(get_image_host),
) -> dict[str, Any]:
    blog = await update_blog(db, blog_id, body, image_host)
    await db.commit()
    return ok(BlogResponse.model_validate(blog), "Blog post updated successfully")


@router.delete("/admin/{blog_id}", response_model=ApiResponse[None])
async def admin_delete(
    blog_id: int,
    _: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await delete_blog(db, blog_id)
    await db.commit()
    return ok(None, "Blog post deleted successfully")


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------


@router.get("/", response_model=ApiResponse[list[BlogResponse]])
async def list_public(request: Request, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Published articles unless ``status`` says otherwise."""
    return await _listing(request, db, "published")


@router.get("/{slug}", response_model=ApiResponse[BlogResponse])
async def get_by_slug(slug: str, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return ok(BlogResponse.model_validate(await get_published_blog(db, slug)), "Blog post retrieved successfully")
