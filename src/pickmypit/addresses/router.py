"""Address book router: all /api/addresses/* endpoints (user session required)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.addresses.schemas import AddressCreateRequest, AddressResponse, AddressUpdateRequest
from pickmypit.addresses.service import (
    create_address,
    delete_address,
    get_address,
    list_addresses,
    require_default_address,
    set_default_address,
    update_address,
)
from pickmypit.auth.dependencies import get_current_user
from pickmypit.database import get_session
from pickmypit.db.models import User
from pickmypit.schemas import ApiResponse, ok

router = APIRouter(prefix="/api/addresses", tags=["Addresses"])


@router.get("/", response_model=ApiResponse[list[AddressResponse]])
async def get_addresses(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    addresses = await list_addresses(db, user.id)
    return ok([AddressResponse.model_validate(a) for a in addresses], "Addresses retrieved successfully")


@router.get("/default", response_model=ApiResponse[AddressResponse])
async def get_default(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """The caller's default address, 404 when none is flagged."""
    address = await require_default_address(db, user.id)
    return ok(AddressResponse.model_validate(address), "Default address retrieved successfully")


@router.get("/{address_id}", response_model=ApiResponse[AddressResponse])
async def get_one(
    address_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    address = await get_address(db, user.id, address_id)
    return ok(AddressResponse.model_validate(address), "Address retrieved successfully")


@router.post("/", response_model=ApiResponse[AddressResponse], status_code=201)
async def create(
    body: AddressCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    address = await create_address(db, user.id, body)
    await db.commit()
    return ok(AddressResponse.model_validate(address), "Address created successfully")


@router.put("/{address_id}/default", response_model=ApiResponse[AddressResponse])
async def make_default(
    address_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    address = await set_default_address(db, user.id, address_id)
    await db.commit()
    return ok(AddressResponse.model_validate(address), "Default address updated successfully")


@router.put("/{address_id}", response_model=ApiResponse[AddressResponse])
async def update(
    address_id: int,
    body: AddressUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    address = await update_address(db, user.id, address_id, body)
    await db.commit()
    return ok(AddressResponse.model_validate(address), "Address updated successfully")


@router.delete("/{address_id}", response_model=ApiResponse[None])
async def delete(
    address_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await delete_address(db, user.id, address_id)
    await db.commit()
    return ok(None, "Address deleted successfully")
