"""
Address business logic.

Each user has at most one default address. Every write that makes an address
the default runs the same pipeline inside the caller's transaction:

1. lock the owning user row (``SELECT ... FOR UPDATE``) so concurrent
   default changes for the same user serialize;
2. clear ``is_default`` on every other address of that user;
3. flag the target.

The partial unique index ``uq_addresses_user_default`` rejects anything that
still slips through; that surfaces as a ConflictError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from pickmypit.db.models import Address, User
from pickmypit.exceptions import ConflictError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pickmypit.addresses.schemas import AddressCreateRequest, AddressUpdateRequest

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_addresses(db: AsyncSession, user_id: int) -> list[Address]:
    """All addresses of a user, default first, then newest."""
    result = await db.execute(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_address(db: AsyncSession, user_id: int, address_id: int) -> Address:
    """Fetch one of the user's addresses. Another user's address is reported as missing."""
    result = await db.execute(
        select(Address)
        .where(Address.id == address_id, Address.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    address = result.scalar_one_or_none()
    if address is None:
        raise NotFoundError("Address not found")
    return address


async def get_default_address(db: AsyncSession, user_id: int) -> Address | None:
    result = await db.execute(
        select(Address)
        .where(Address.user_id == user_id, Address.is_default.is_(True))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def require_default_address(db: AsyncSession, user_id: int) -> Address:
    address = await get_default_address(db, user_id)
    if address is None:
        raise NotFoundError("No default address found")
    return address


async def count_defaults(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(Address.id).where(Address.user_id == user_id, Address.is_default.is_(True))
    )
    return len(result.all())


# ---------------------------------------------------------------------------
# Default invariant
# ---------------------------------------------------------------------------


async def _lock_user(db: AsyncSession, user_id: int) -> None:
    """Serialize default-address writes per user. No-op on SQLite."""
    await db.execute(select(User.id).where(User.id == user_id).with_for_update())


async def _clear_other_defaults(db: AsyncSession, user_id: int, keep_id: int | None = None) -> None:
    stmt = update(Address).where(Address.user_id == user_id, Address.is_default.is_(True))
    if keep_id is not None:
        stmt = stmt.where(Address.id != keep_id)
    await db.execute(stmt.values(is_default=False).execution_options(synchronize_session=False))


async def _flush_default_change(db: AsyncSession, user_id: int) -> None:
    try:
        await db.flush()
    except IntegrityError as e:
        logger.warning("default_address_conflict", user_id=user_id)
        raise ConflictError("Default address was changed concurrently, retry the request") from e


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_address(db: AsyncSession, user_id: int, body: AddressCreateRequest) -> Address:
    """Create an address; when it is flagged default, siblings are cleared first."""
    data = body.model_dump()
    if data["is_default"]:
        await _lock_user(db, user_id)
        await _clear_other_defaults(db, user_id)

    address = Address(user_id=user_id, **data)
    db.add(address)
    await _flush_default_change(db, user_id)
    logger.info("address_created", user_id=user_id, address_id=address.id, is_default=address.is_default)
    return address


async def update_address(
    db: AsyncSession,
    user_id: int,
    address_id: int,
    body: AddressUpdateRequest,
) -> Address:
    address = await get_address(db, user_id, address_id)
    changes: dict[str, Any] = body.model_dump(exclude_unset=True)
    make_default = changes.pop("is_default", None)

    for field, value in changes.items():
        setattr(address, field, value)

    if make_default:
        await _lock_user(db, user_id)
        await _clear_other_defaults(db, user_id, keep_id=address.id)
        address.is_default = True
        await _flush_default_change(db, user_id)
    else:
        if make_default is False:
            address.is_default = False
        await db.flush()

    logger.info("address_updated", user_id=user_id, address_id=address.id, fields=sorted(body.model_fields_set))
    return address


async def set_default_address(db: AsyncSession, user_id: int, address_id: int) -> Address:
    """Make ``address_id`` the user's only default. Repeating the call changes nothing."""
    address = await get_address(db, user_id, address_id)
    await _lock_user(db, user_id)
    await _clear_other_defaults(db, user_id, keep_id=address.id)
    address.is_default = True
    await _flush_default_change(db, user_id)
    logger.info("default_address_set", user_id=user_id, address_id=address.id)
    return address


async def delete_address(db: AsyncSession, user_id: int, address_id: int) -> None:
    """Delete an address. Deleting the default leaves the user with none."""
    address = await get_address(db, user_id, address_id)
    await db.delete(address)
    await db.flush()
    logger.info("address_deleted", user_id=user_id, address_id=address_id)
