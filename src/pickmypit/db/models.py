"""ORM models for users, admins, addresses, listings, taxonomy and blogs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pickmypit.db.base import Base, BigIntPK

JSONType = JSON().with_variant(JSONB(), "postgresql")

USER_ROLES = ("user", "admin", "superadmin")
ADMIN_ROLES = ("admin", "superadmin")
USER_STATUSES = ("active", "inactive", "blocked")
ADMIN_STATUSES = ("active", "inactive")
POST_TYPES = ("free", "paid")
POST_STATUSES = ("pending", "available", "sold", "adopted", "rejected", "banned")
BLOG_STATUSES = ("draft", "published")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _in(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class User(TimestampMixin, Base):
    """Marketplace account holder."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(_in("role", USER_ROLES), name="role"),
        CheckConstraint(_in("status", USER_STATUSES), name="status"),
        CheckConstraint("coins >= 0", name="coins_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(30), nullable=False)
    last_name: Mapped[str] = mapped_column(String(30), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user", server_default="user")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active", server_default="active")
    gender: Mapped[str] = mapped_column(String(16), nullable=False, default="other", server_default="other")
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    about: Mapped[str | None] = mapped_column(String(500), nullable=True)
    email_confirmed: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    referral_code: Mapped[str | None] = mapped_column(String(16), nullable=True, unique=True)
    referred_by_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    addresses: Mapped[list[Address]] = relationship(
        "Address", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    posts: Mapped[list[Post]] = relationship(
        "Post", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )


class Admin(TimestampMixin, Base):
    """Back-office principal with its own credential store."""

    __tablename__ = "admins"
    __table_args__ = (
        CheckConstraint(_in("role", ADMIN_ROLES), name="role"),
        CheckConstraint(_in("status", ADMIN_STATUSES), name="status"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(30), nullable=False)
    last_name: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="admin", server_default="admin")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active", server_default="active")
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------


class Address(TimestampMixin, Base):
    """A physical location owned by a user.

    The partial unique index allows at most one default address per user.
    """

    __tablename__ = "addresses"
    __table_args__ = (
        Index(
            "uq_addresses_user_default",
            "user_id",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
        Index("ix_addresses_lat_lon", "latitude", "longitude"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    street: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(6), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    landmark: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    user: Mapped[User] = relationship("User", back_populates="addresses")


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class Post(TimestampMixin, Base):
    """A pet listing."""

    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint(_in("type", POST_TYPES), name="type"),
        CheckConstraint(_in("status", POST_STATUSES), name="status"),
        CheckConstraint("amount >= 0", name="amount_non_negative"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    address_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(140), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    images: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False, default=0, index=True)
    type: Mapped[str] = mapped_column(String(8), nullable=False, default="free", server_default="free", index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    species: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    category_slug: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    species_slug: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    age_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    age_unit: Mapped[str | None] = mapped_column(String(8), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending", server_default="pending", index=True
    )
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    moderated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    owner: Mapped[User] = relationship("User", back_populates="posts")
    address: Mapped[Address | None] = relationship("Address")


# ---------------------------------------------------------------------------
# Taxonomy
# ---------------------------------------------------------------------------


class Species(TimestampMixin, Base):
    __tablename__ = "species"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true", index=True)
    popularity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    breeds: Mapped[list[Breed]] = relationship(
        "Breed", back_populates="species", cascade="all, delete-orphan", passive_deletes=True
    )


class Breed(TimestampMixin, Base):
    __tablename__ = "breeds"
    __table_args__ = (UniqueConstraint("species_id", "name", name="uq_breeds_species_name"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    species_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("species.id", ondelete="CASCADE"), nullable=False, index=True
    )
    species_name: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    characteristics: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true", index=True)
    popularity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    species: Mapped[Species] = relationship("Species", back_populates="breeds")


# ---------------------------------------------------------------------------
# Editorial
# ---------------------------------------------------------------------------


class Blog(TimestampMixin, Base):
    __tablename__ = "blogs"
    __table_args__ = (CheckConstraint(_in("status", BLOG_STATUSES), name="status"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(170), nullable=False, unique=True)
    content: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    cover_image: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="draft", server_default="draft", index=True)
    author_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True
    )

    author: Mapped[Admin | None] = relationship("Admin")
