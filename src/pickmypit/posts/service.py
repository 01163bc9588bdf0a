"""
Listing business logic.

Writes follow one pipeline: validate ownership, derive the slug and the
lowercase species/breed slugs, upload inline images, then flush. The router
commits.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from pickmypit.addresses.service import get_default_address
from pickmypit.db.models import Address, Post
from pickmypit.exceptions import AuthorizationError, ExternalServiceError, NotFoundError, ValidationError
from pickmypit.media.cloudinary import is_data_uri
from pickmypit.pagination import paginate
from pickmypit.posts.filters import ListingScope, PostFilterParams, build_conditions, listing_query
from pickmypit.posts.moderation import ADMIN_TARGETS, INITIAL_STATUS, authorize_transition, validate_transition
from pickmypit.slugs import generate_unique_post_slug, slugify

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pickmypit.auth.dependencies import Principal
    from pickmypit.media.cloudinary import CloudinaryImageHost
    from pickmypit.posts.schemas import PostCreateRequest, PostUpdateRequest

logger = structlog.get_logger()

POST_IMAGE_FOLDER = "posts"


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _with_relations(query: Any) -> Any:  # noqa: ANN401
    return query.options(selectinload(Post.owner), selectinload(Post.address)).execution_options(
        populate_existing=True
    )


async def get_post(db: AsyncSession, post_id: int) -> Post:
    """Fetch a post with its owner and address. Raises NotFoundError."""
    result = await db.execute(_with_relations(select(Post).where(Post.id == post_id)))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def get_post_by_slug(db: AsyncSession, slug: str) -> Post:
    result = await db.execute(_with_relations(select(Post).where(Post.slug == slug.lower())))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def list_posts(
    db: AsyncSession,
    params: PostFilterParams,
    scope: ListingScope,
) -> tuple[list[Post], int]:
    """Run a filtered listing. Total is counted with the same filter."""
    conditions = await build_conditions(db, params, scope)
    return await paginate(db, listing_query(conditions, params.sort), params.page, params.limit)


async def list_user_posts(db: AsyncSession, owner_id: int, page: int, limit: int) -> tuple[list[Post], int]:
    """Every post of one owner, any status, newest first."""
    return await paginate(db, listing_query([Post.owner_id == owner_id]), page, limit)


async def count_posts_by_status(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(Post.status, func.count()).group_by(Post.status))
    return {status: int(count) for status, count in result.all()}


# ---------------------------------------------------------------------------
# Write helpers
# ---------------------------------------------------------------------------


def _ensure_can_edit(principal: Principal, post: Post, action: str) -> None:
    if principal.is_admin:
        return
    if principal.kind == "user" and principal.id == post.owner_id:
        return
    raise AuthorizationError(f"You can only {action} your own posts")


async def _resolve_address(db: AsyncSession, owner_id: int, address_id: int | None) -> Address | None:
    """The given address (which must be the owner's), else the owner's default, else None."""
    if address_id is None:
        return await get_default_address(db, owner_id)
    result = await db.execute(select(Address).where(Address.id == address_id, Address.user_id == owner_id))
    address = result.scalar_one_or_none()
    if address is None:
        raise ValidationError(
            "Address not found",
            errors=[{"field": "address_id", "message": "Address does not belong to the post owner"}],
        )
    return address


async def _store_images(images: list[str], image_host: CloudinaryImageHost) -> list[str]:
    """Upload data URIs; keep plain URLs as they are."""
    stored: list[str] = []
    for image in images:
        image = image.strip()
        if not image:
            continue
        if is_data_uri(image):
            uploaded = await image_host.upload(image, folder=f"{image_host.folder}/{POST_IMAGE_FOLDER}")
            stored.append(uploaded.url)
        else:
            stored.append(image)
    return stored


def _apply_classification(post: Post, species: str | None, category: str | None) -> None:
    if species is not None:
        post.species = species.strip()
        post.species_slug = slugify(post.species)
    if category is not None:
        post.category = category.strip()
        post.category_slug = slugify(post.category)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_post(
    db: AsyncSession,
    owner_id: int,
    body: PostCreateRequest,
    image_host: CloudinaryImageHost,
) -> Post:
    """Create a listing in the moderation queue."""
    address = await _resolve_address(db, owner_id, body.address_id)
    images = await _store_images(body.images, image_host)
    title = body.title.strip()

    post = Post(
        owner_id=owner_id,
        address_id=address.id if address is not None else None,
        title=title,
        slug=await generate_unique_post_slug(db, title),
        description=body.description.strip(),
        images=images,
        amount=body.amount if body.type == "paid" else 0,
        type=body.type,
        age_value=body.age.value if body.age else None,
        age_unit=body.age.unit if body.age else None,
        status=INITIAL_STATUS,
    )
    _apply_classification(post, body.species, body.category)
    db.add(post)
    await db.flush()
    logger.info("post_created", post_id=post.id, owner_id=owner_id, slug=post.slug)
    return await get_post(db, post.id)


async def update_post(
    db: AsyncSession,
    principal: Principal,
    post_id: int,
    body: PostUpdateRequest,
    image_host: CloudinaryImageHost,
) -> Post:
    """Content update by the owner or an admin. A new title gets a new slug."""
    post = await get_post(db, post_id)
    _ensure_can_edit(principal, post, "update")
    changes = body.model_dump(exclude_unset=True)

    if body.title is not None and body.title.strip() != post.title:
        post.title = body.title.strip()
        post.slug = await generate_unique_post_slug(db, post.title, exclude_post_id=post.id)
    if body.description is not None:
        post.description = body.description.strip()
    if body.type is not None:
        post.type = body.type
    if body.amount is not None:
        post.amount = body.amount
    if post.type == "free":
        post.amount = 0
    _apply_classification(post, body.species, body.category)
    if "age" in changes:
        post.age_value = body.age.value if body.age else None
        post.age_unit = body.age.unit if body.age else None
    if "address_id" in changes and body.address_id is not None:
        address = await _resolve_address(db, post.owner_id, body.address_id)
        post.address_id = address.id if address is not None else None
    if body.images is not None:
        post.images = await _store_images(body.images, image_host)

    await db.flush()
    logger.info("post_updated", post_id=post.id, by=principal.kind, actor_id=principal.id, fields=sorted(changes))
    return await get_post(db, post.id)


async def delete_post(db: AsyncSession, principal: Principal, post_id: int) -> list[str]:
    """Delete a post. Returns its image URLs so the caller can clean them up after commit."""
    post = await get_post(db, post_id)
    _ensure_can_edit(principal, post, "delete")
    images = list(post.images or [])
    await db.delete(post)
    await db.flush()
    logger.info("post_deleted", post_id=post_id, by=principal.kind, actor_id=principal.id)
    return images


async def cleanup_images(image_host: CloudinaryImageHost, urls: list[str]) -> int:
    """Remove hosted images of a deleted post. Failures are logged, not raised."""
    removed = 0
    for url in urls:
        public_id = image_host.public_id_from_url(url)
        if public_id is None:
            continue
        try:
            if await image_host.delete(public_id):
                removed += 1
        except ExternalServiceError:
            logger.warning("image_cleanup_failed", public_id=public_id)
    return removed


async def change_status(
    db: AsyncSession,
    principal: Principal,
    post_id: int,
    target_status: str,
    reason: str | None = None,
) -> Post:
    """
    Move a post to ``target_status``.

    Checks run in order: the post must exist (404), the principal must be
    allowed to set the target (403), and the edge must exist (409). The row is
    locked for the duration so concurrent moderators see a consistent state.
    """
    result = await db.execute(select(Post).where(Post.id == post_id).with_for_update())
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found")

    authorize_transition(principal, post.owner_id, target_status)
    validate_transition(post.status, target_status)

    previous = post.status
    post.status = target_status
    if target_status in ADMIN_TARGETS:
        post.moderated_at = datetime.now(timezone.utc)
        post.rejection_reason = reason.strip() if reason and target_status != "available" else None
    await db.flush()

    logger.info(
        "post_status_changed",
        post_id=post.id,
        from_status=previous,
        to_status=target_status,
        by=principal.kind,
        actor_id=principal.id,
    )
    return await get_post(db, post.id)
