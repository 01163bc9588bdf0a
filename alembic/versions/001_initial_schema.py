"""Initial schema: accounts, addresses, listings, taxonomy and blogs.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    # --- Accounts ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(30), nullable=False),
        sa.Column("last_name", sa.String(30), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=True),
        sa.Column("role", sa.String(16), server_default="user", nullable=False),
        sa.Column("status", sa.String(16), server_default="active", nullable=False),
        sa.Column("gender", sa.String(16), server_default="other", nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("about", sa.String(500), nullable=True),
        sa.Column("email_confirmed", sa.Boolean(), server_default="false", nullable=True),
        sa.Column("referral_code", sa.String(16), nullable=True),
        sa.Column(
            "referred_by_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="SET NULL", name="fk_users_referred_by_id_users"),
            nullable=True,
        ),
        sa.Column("coins", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("referral_code", name="uq_users_referral_code"),
        sa.CheckConstraint("role IN ('user', 'admin', 'superadmin')", name="ck_users_role"),
        sa.CheckConstraint("status IN ('active', 'inactive', 'blocked')", name="ck_users_status"),
        sa.CheckConstraint("coins >= 0", name="ck_users_coins_non_negative"),
    )

    op.create_table(
        "admins",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(30), nullable=False),
        sa.Column("last_name", sa.String(30), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("role", sa.String(16), server_default="admin", nullable=False),
        sa.Column("status", sa.String(16), server_default="active", nullable=False),
        sa.Column("gender", sa.String(16), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_admins_email"),
        sa.CheckConstraint("role IN ('admin', 'superadmin')", name="ck_admins_role"),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_admins_status"),
    )

    # --- Addresses ---
    op.create_table(
        "addresses",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_addresses_user_id_users"),
            nullable=False,
        ),
        sa.Column("street", sa.String(200), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("postal_code", sa.String(6), nullable=False),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("landmark", sa.String(200), nullable=True),
        sa.Column("is_default", sa.Boolean(), server_default="false", nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_addresses_user_id", "addresses", ["user_id"])
    op.create_index("ix_addresses_lat_lon", "addresses", ["latitude", "longitude"])
    # At most one default address per user
    op.create_index(
        "uq_addresses_user_default",
        "addresses",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_default"),
        sqlite_where=sa.text("is_default = 1"),
    )

    # --- Listings ---
    op.create_table(
        "posts",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id",
            sa.BigInteger(),
            sa.ForeignKey("users.id", ondelete="CASCADE", name="fk_posts_owner_id_users"),
            nullable=False,
        ),
        sa.Column(
            "address_id",
            sa.BigInteger(),
            sa.ForeignKey("addresses.id", ondelete="SET NULL", name="fk_posts_address_id_addresses"),
            nullable=True,
        ),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(140), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("images", JSON, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("type", sa.String(8), server_default="free", nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("species", sa.String(100), nullable=False),
        sa.Column("category_slug", sa.String(120), nullable=False),
        sa.Column("species_slug", sa.String(120), nullable=False),
        sa.Column("age_value", sa.Integer(), nullable=True),
        sa.Column("age_unit", sa.String(8), nullable=True),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("moderated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("slug", name="uq_posts_slug"),
        sa.CheckConstraint("type IN ('free', 'paid')", name="ck_posts_type"),
        sa.CheckConstraint(
            "status IN ('pending', 'available', 'sold', 'adopted', 'rejected', 'banned')",
            name="ck_posts_status",
        ),
        sa.CheckConstraint("amount >= 0", name="ck_posts_amount_non_negative"),
    )
    for column in ("owner_id", "address_id", "amount", "type", "species", "category_slug", "species_slug", "status"):
        op.create_index(f"ix_posts_{column}", "posts", [column])

    # --- Taxonomy ---
    op.create_table(
        "species",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(50), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("icon", sa.String(200), nullable=False),
        sa.Column("active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("popularity", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("name", name="uq_species_name"),
    )
    op.create_index("ix_species_active", "species", ["active"])

    op.create_table(
        "breeds",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "species_id",
            sa.BigInteger(),
            sa.ForeignKey("species.id", ondelete="CASCADE", name="fk_breeds_species_id_species"),
            nullable=False,
        ),
        sa.Column("species_name", sa.String(50), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("characteristics", JSON, nullable=False),
        sa.Column("active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("popularity", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("species_id", "name", name="uq_breeds_species_name"),
    )
    op.create_index("ix_breeds_species_id", "breeds", ["species_id"])
    op.create_index("ix_breeds_active", "breeds", ["active"])

    # --- Editorial ---
    op.create_table(
        "blogs",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(150), nullable=False),
        sa.Column("slug", sa.String(170), nullable=False),
        sa.Column("content", JSON, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("cover_image", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), server_default="draft", nullable=False),
        sa.Column(
            "author_id",
            sa.BigInteger(),
            sa.ForeignKey("admins.id", ondelete="SET NULL", name="fk_blogs_author_id_admins"),
            nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint("title", name="uq_blogs_title"),
        sa.UniqueConstraint("slug", name="uq_blogs_slug"),
        sa.CheckConstraint("status IN ('draft', 'published')", name="ck_blogs_status"),
    )
    op.create_index("ix_blogs_status", "blogs", ["status"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("blogs")
    op.drop_table("breeds")
    op.drop_table("species")
    op.drop_table("posts")
    op.drop_table("addresses")
    op.drop_table("admins")
    op.drop_table("users")
