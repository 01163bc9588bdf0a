"""Blog articles written by admins."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from pickmypit.db.models import Blog
from pickmypit.exceptions import ConflictError, NotFoundError, ValidationError
from pickmypit.media.cloudinary import is_data_uri
from pickmypit.pagination import paginate
from pickmypit.slugs import slugify

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pickmypit.blogs.schemas import BlogCreateRequest, BlogUpdateRequest
    from pickmypit.media.cloudinary import CloudinaryImageHost

logger = structlog.get_logger()

BLOG_IMAGE_FOLDER = "blogs"
DUPLICATE_TITLE = "A blog post with this title already exists"


def _blog_query() -> Any:  # noqa: ANN401
    return select(Blog).options(selectinload(Blog.author)).execution_options(populate_existing=True)


def _blog_slug(title: str) -> str:
    slug = slugify(title)
    if not slug:
        raise ValidationError(
            "Title must contain letters or digits",
            errors=[{"field": "title", "message": "Title produces an empty slug"}],
        )
    return slug


async def _store_cover(cover_image: str, image_host: CloudinaryImageHost) -> str:
    cover_image = cover_image.strip()
    if cover_image and is_data_uri(cover_image):
        uploaded = await image_host.upload(cover_image, folder=f"{image_host.folder}/{BLOG_IMAGE_FOLDER}")
        return uploaded.url
    return cover_image


async def _flush_unique(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError(DUPLICATE_TITLE) from e


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_blogs(
    db: AsyncSession,
    page: int,
    limit: int,
    status: str | None,
) -> tuple[list[Blog], int]:
    """Newest first; ``status=None`` lists every status."""
    query = _blog_query()
    if status is not None:
        query = query.where(Blog.status == status)
    return await paginate(db, query.order_by(Blog.created_at.desc(), Blog.id.desc()), page, limit)


async def get_blog(db: AsyncSession, blog_id: int) -> Blog:
    result = await db.execute(_blog_query().where(Blog.id == blog_id))
    blog = result.scalar_one_or_none()
    if blog is None:
        raise NotFoundError("Blog post not found")
    return blog


async def get_published_blog(db: AsyncSession, slug: str) -> Blog:
    """Public lookup; drafts are reported as missing."""
    result = await db.execute(_blog_query().where(Blog.slug == slug.lower(), Blog.status == "published"))
    blog = result.scalar_one_or_none()
    if blog is None:
        raise NotFoundError("Blog post not found")
    return blog


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def _ensure_title_free(db: AsyncSession, title: str, slug: str, exclude_id: int | None = None) -> None:
    query = select(Blog.id).where((Blog.title == title) | (Blog.slug == slug))
    if exclude_id is not None:
        query = query.where(Blog.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError(DUPLICATE_TITLE)


async def create_blog(
    db: AsyncSession,
    author_id: int,
    body: BlogCreateRequest,
    image_host: CloudinaryImageHost,
) -> Blog:
    title = body.title.strip()
    slug = _blog_slug(title)
    await _ensure_title_free(db, title, slug)

    blog = Blog(
        title=title,
        slug=slug,
        content=body.content,
        category=body.category.strip(),
        cover_image=await _store_cover(body.cover_image, image_host),
        status=body.status,
        author_id=author_id,
    )
    db.add(blog)
    await _flush_unique(db)
    logger.info("blog_created", blog_id=blog.id, author_id=author_id, status=blog.status)
    return await get_blog(db, blog.id)


async def update_blog(
    db: AsyncSession,
    blog_id: int,
    body: BlogUpdateRequest,
    image_host: CloudinaryImageHost,
) -> Blog:
    blog = await get_blog(db, blog_id)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    if body.title is not None and body.title.strip() != blog.title:
        title = body.title.strip()
        slug = _blog_slug(title)
        await _ensure_title_free(db, title, slug, exclude_id=blog.id)
        blog.title = title
        blog.slug = slug
    if body.content is not None:
        blog.content = body.content
    if body.category is not None:
        blog.category = body.category.strip()
    if body.cover_image is not None:
        blog.cover_image = await _store_cover(body.cover_image, image_host)
    if body.status is not None:
        blog.status = body.status

    await _flush_unique(db)
    logger.info("blog_updated", blog_id=blog.id, fields=sorted(changes))
    return await get_blog(db, blog.id)


async def delete_blog(db: AsyncSession, blog_id: int) -> None:
    blog = await get_blog(db, blog_id)
    await db.delete(blog)
    await db.flush()
    logger.info("blog_deleted", blog_id=blog_id)
