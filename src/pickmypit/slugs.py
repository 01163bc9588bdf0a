"""URL slug helpers shared by listings and blog posts.

A slug is lowercase, hyphen separated and restricted to word characters.
Listing slugs carry a 6-digit suffix so that two listings with the same
title still get distinct slugs.
"""

from __future__ import annotations

import re
import secrets
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.db.models import Post

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\-]+", re.ASCII)
_MULTI_DASH = re.compile(r"-{2,}")

SUFFIX_LENGTH = 6
MAX_ATTEMPTS = 10


def slugify(value: str | None) -> str:
    """Lowercase, hyphenate whitespace, strip everything but ``[A-Za-z0-9_-]``."""
    if not value:
        return ""
    slug = _WHITESPACE.sub("-", str(value).strip().lower())
    slug = _NON_WORD.sub("", slug)
    slug = _MULTI_DASH.sub("-", slug)
    return slug.strip("-")


def _timestamp_suffix() -> str:
    return str(time.time_ns() // 1_000_000)[-SUFFIX_LENGTH:]


def _random_suffix() -> str:
    return "".join(secrets.choice("0123456789") for _ in range(SUFFIX_LENGTH))


def post_slug(title: str, suffix: str | None = None) -> str:
    """Build ``<slugified-title>-<suffix>``; falls back to ``pet-post`` for empty titles."""
    base = slugify(title) or "pet-post"
    return f"{base}-{suffix or _timestamp_suffix()}"


async def generate_unique_post_slug(db: AsyncSession, title: str, exclude_post_id: int | None = None) -> str:
    """Generate a listing slug that no other post uses.

    The first candidate uses the millisecond clock; retries draw random digits.
    """
    for attempt in range(MAX_ATTEMPTS):
        candidate = post_slug(title, None if attempt == 0 else _random_suffix())
        query = select(Post.id).where(Post.slug == candidate)
        if exclude_post_id is not None:
            query = query.where(Post.id != exclude_post_id)
        existing = await db.execute(query)
        if existing.scalar_one_or_none() is None:
            return candidate
    raise RuntimeError(f"Failed to generate unique slug after {MAX_ATTEMPTS} attempts")
