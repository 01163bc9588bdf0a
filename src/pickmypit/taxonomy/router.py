"""Taxonomy routers: /api/species/* and /api/breeds/*."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pickmypit.auth.dependencies import Principal, require_admin_role
from pickmypit.database import get_session
from pickmypit.pagination import MAX_LIMIT, parse_positive_int
from pickmypit.schemas import ApiResponse, ok, paginated
from pickmypit.taxonomy.schemas import (
    BreedCreateRequest,
    BreedResponse,
    BreedSummary,
    BreedUpdateRequest,
    SpeciesCreateRequest,
    SpeciesHierarchyItem,
    SpeciesResponse,
    SpeciesUpdateRequest,
)
from pickmypit.taxonomy.service import (
    create_breed,
    create_species,
    delete_breed,
    delete_species,
    get_breed,
    get_breed_by_name,
    get_species,
    get_species_by_name,
    list_breeds,
    list_breeds_for_species,
    list_species,
    species_hierarchy,
    update_breed,
    update_species,
)

species_router = APIRouter(prefix="/api/species", tags=["Species"])
breeds_router = APIRouter(prefix="/api/breeds", tags=["Breeds"])


def _flag(request: Request, name: str) -> bool:
    return (request.query_params.get(name) or "").strip().lower() == "true"


def _optional_int(request: Request, name: str) -> int | None:
    raw = (request.query_params.get(name) or "").strip()
    return int(raw) if raw.isdigit() else None


# ---------------------------------------------------------------------------
# Species
# ---------------------------------------------------------------------------


@species_router.get("/", response_model=ApiResponse[list[SpeciesResponse]])
async def get_all_species(request: Request, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """All species; ``?active=true`` keeps active ones only."""
    species = await list_species(db, active_only=_flag(request, "active"))
    return ok([SpeciesResponse.model_validate(s) for s in species], "Species retrieved successfully")


@species_router.get("/active", response_model=ApiResponse[list[SpeciesResponse]])
async def get_active_species(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    species = await list_species(db, active_only=True)
    return ok([SpeciesResponse.model_validate(s) for s in species], "Active species retrieved successfully")


@species_router.get("/hierarchy", response_model=ApiResponse[list[SpeciesHierarchyItem]])
async def get_species_hierarchy(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Active species with their active breeds nested."""
    items = [
        SpeciesHierarchyItem(
            **SpeciesResponse.model_validate(species).model_dump(),
            breeds=[BreedSummary.model_validate(b) for b in breeds],
        )
        for species, breeds in await species_hierarchy(db)
    ]
    return ok(items, "Species hierarchy retrieved successfully")


@species_router.get("/name/{name}", response_model=ApiResponse[SpeciesResponse])
async def get_by_name(name: str, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    species = await get_species_by_name(db, name)
    return ok(SpeciesResponse.model_validate(species), "Species retrieved successfully")


@species_router.get("/{species_id}", response_model=ApiResponse[SpeciesResponse])
async def get_by_id(species_id: int, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    species = await get_species(db, species_id)
    return ok(SpeciesResponse.model_validate(species), "Species retrieved successfully")


@species_router.post("/", response_model=ApiResponse[SpeciesResponse], status_code=201)
async def create(
    body: SpeciesCreateRequest,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    species = await create_species(db, body)
    await db.commit()
    return ok(SpeciesResponse.model_validate(species), "Species created successfully")


@species_router.put("/{species_id}", response_model=ApiResponse[SpeciesResponse])
async def update(
    species_id: int,
    body: SpeciesUpdateRequest,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    species = await update_species(db, species_id, body)
    await db.commit()
    return ok(SpeciesResponse.model_validate(species), "Species updated successfully")


@species_router.delete("/{species_id}", response_model=ApiResponse[None])
async def delete(
    species_id: int,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await delete_species(db, species_id)
    await db.commit()
    return ok(None, "Species deleted successfully")


# ---------------------------------------------------------------------------
# Breeds
# ---------------------------------------------------------------------------


@breeds_router.get("/", response_model=ApiResponse[list[BreedResponse]])
async def get_all_breeds(request: Request, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Paginated breeds; filter with ``species_id`` and ``active=true``."""
    page = parse_positive_int(request.query_params.get("page"), 1)
    limit = parse_positive_int(request.query_params.get("limit"), 20, MAX_LIMIT)
    breeds, total = await list_breeds(
        db,
        page,
        limit,
        species_id=_optional_int(request, "species_id"),
        active_only=_flag(request, "active"),
    )
    items = [BreedResponse.model_validate(b) for b in breeds]
    return paginated(items, total, page, limit, "Breeds retrieved successfully")


@breeds_router.get("/species/{species_id}", response_model=ApiResponse[list[BreedResponse]])
async def get_breeds_by_species(
    species_id: int,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    breeds = await list_breeds_for_species(db, species_id, active_only=_flag(request, "active"))
    return ok([BreedResponse.model_validate(b) for b in breeds], "Breeds retrieved successfully")


@breeds_router.get("/name/{name}", response_model=ApiResponse[BreedResponse])
async def get_breed_named(name: str, request: Request, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    breed = await get_breed_by_name(db, name, _optional_int(request, "species_id"))
    return ok(BreedResponse.model_validate(breed), "Breed retrieved successfully")


@breeds_router.get("/{breed_id}", response_model=ApiResponse[BreedResponse])
async def get_breed_by_id(breed_id: int, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    return ok(BreedResponse.model_validate(await get_breed(db, breed_id)), "Breed retrieved successfully")


@breeds_router.post("/", response_model=ApiResponse[BreedResponse], status_code=201)
async def create_breed_endpoint(
    body: BreedCreateRequest,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    breed = await create_breed(db, body)
    await db.commit()
    return ok(BreedResponse.model_validate(breed), "Breed created successfully")


@breeds_router.put("/{breed_id}", response_model=ApiResponse[BreedResponse])
async def update_breed_endpoint(
    breed_id: int,
    body: BreedUpdateRequest,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    breed = await update_breed(db, breed_id, body)
    await db.commit()
    return ok(BreedResponse.model_validate(breed), "Breed updated successfully")


@breeds_router.delete("/{breed_id}", response_model=ApiResponse[None])
async def delete_breed_endpoint(
    breed_id: int,
    _: Principal = Depends(require_admin_role),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await delete_breed(db, breed_id)
    await db.commit()
    return ok(None, "Breed deleted successfully")
