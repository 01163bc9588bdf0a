"""Species and breed reference data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from pickmypit.db.models import Breed, Species
from pickmypit.exceptions import ConflictError, NotFoundError, ValidationError
from pickmypit.pagination import paginate

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from pickmypit.taxonomy.schemas import (
        BreedCreateRequest,
        BreedUpdateRequest,
        SpeciesCreateRequest,
        SpeciesUpdateRequest,
    )

logger = structlog.get_logger()

SPECIES_ORDER = (Species.popularity.desc(), Species.display_name.asc(), Species.id.asc())
BREED_ORDER = (Breed.popularity.desc(), Breed.name.asc(), Breed.id.asc())


async def _flush_unique(db: AsyncSession, message: str) -> None:
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError(message) from e


# ---------------------------------------------------------------------------
# Species
# ---------------------------------------------------------------------------


async def list_species(db: AsyncSession, *, active_only: bool = False) -> list[Species]:
    query = select(Species)
    if active_only:
        query = query.where(Species.active.is_(True))
    result = await db.execute(query.order_by(*SPECIES_ORDER))
    return list(result.scalars().all())


async def get_species(db: AsyncSession, species_id: int) -> Species:
    species = await db.get(Species, species_id)
    if species is None:
        raise NotFoundError("Species not found")
    return species


async def get_species_by_name(db: AsyncSession, name: str) -> Species:
    result = await db.execute(select(Species).where(Species.name == name.strip().lower()))
    species = result.scalar_one_or_none()
    if species is None:
        raise NotFoundError("Species not found")
    return species


async def species_hierarchy(db: AsyncSession) -> list[tuple[Species, list[Breed]]]:
    """Active species, each with its active breeds."""
    species = await list_species(db, active_only=True)
    if not species:
        return []
    result = await db.execute(
        select(Breed)
        .where(Breed.active.is_(True), Breed.species_id.in_([s.id for s in species]))
        .order_by(*BREED_ORDER)
    )
    by_species: dict[int, list[Breed]] = {s.id: [] for s in species}
    for breed in result.scalars().all():
        by_species[breed.species_id].append(breed)
    return [(s, by_species[s.id]) for s in species]


async def create_species(db: AsyncSession, body: SpeciesCreateRequest) -> Species:
    existing = await db.execute(select(Species.id).where(Species.name == body.name))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Species with this name already exists")

    species = Species(**body.model_dump())
    db.add(species)
    await _flush_unique(db, "Species with this name already exists")
    logger.info("species_created", species_id=species.id, name=species.name)
    return species


async def update_species(db: AsyncSession, species_id: int, body: SpeciesUpdateRequest) -> Species:
    species = await get_species(db, species_id)
    changes: dict[str, Any] = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(species, field, value)
    await _flush_unique(db, "Species with this name already exists")
    if "display_name" in changes:
        await db.execute(
            update(Breed)
            .where(Breed.species_id == species.id)
            .values(species_name=species.display_name)
            .execution_options(synchronize_session=False)
        )
    logger.info("species_updated", species_id=species.id, fields=sorted(changes))
    return species


async def delete_species(db: AsyncSession, species_id: int) -> None:
    """Delete a species and, through the foreign key, its breeds."""
    species = await get_species(db, species_id)
    await db.delete(species)
    await db.flush()
    logger.info("species_deleted", species_id=species_id)


# ---------------------------------------------------------------------------
# Breeds
# ---------------------------------------------------------------------------


def _breed_query() -> Any:  # noqa: ANN401
    return select(Breed).options(selectinload(Breed.species)).execution_options(populate_existing=True)


async def list_breeds(
    db: AsyncSession,
    page: int,
    limit: int,
    *,
    species_id: int | None = None,
    active_only: bool = False,
) -> tuple[list[Breed], int]:
    query = _breed_query()
    if species_id is not None:
        query = query.where(Breed.species_id == species_id)
    if active_only:
        query = query.where(Breed.active.is_(True))
    return await paginate(db, query.order_by(*BREED_ORDER), page, limit)


async def list_breeds_for_species(db: AsyncSession, species_id: int, *, active_only: bool = False) -> list[Breed]:
    query = _breed_query().where(Breed.species_id == species_id)
    if active_only:
        query = query.where(Breed.active.is_(True))
    result = await db.execute(query.order_by(*BREED_ORDER))
    return list(result.scalars().all())


async def get_breed(db: AsyncSession, breed_id: int) -> Breed:
    result = await db.execute(_breed_query().where(Breed.id == breed_id))
    breed = result.scalar_one_or_none()
    if breed is None:
        raise NotFoundError("Breed not found")
    return breed


async def get_breed_by_name(db: AsyncSession, name: str, species_id: int | None = None) -> Breed:
    """Look a breed up by name, optionally within one species."""
    query = _breed_query().where(Breed.name == name.strip().lower())
    if species_id is not None:
        query = query.where(Breed.species_id == species_id)
    result = await db.execute(query.order_by(*BREED_ORDER).limit(1))
    breed = result.scalar_one_or_none()
    if breed is None:
        raise NotFoundError("Breed not found")
    return breed


async def _require_species_for_breed(db: AsyncSession, species_id: int) -> Species:
    species = await db.get(Species, species_id)
    if species is None:
        raise ValidationError(
            "Invalid species ID",
            errors=[{"field": "species_id", "message": "Species does not exist"}],
        )
    return species


async def _ensure_unique_breed(db: AsyncSession, species_id: int, name: str, exclude_id: int | None = None) -> None:
    query = select(Breed.id).where(Breed.species_id == species_id, Breed.name == name)
    if exclude_id is not None:
        query = query.where(Breed.id != exclude_id)
    if (await db.execute(query)).scalar_one_or_none() is not None:
        raise ConflictError("Breed already exists for this species")


async def create_breed(db: AsyncSession, body: BreedCreateRequest) -> Breed:
    """Create a breed; ``species_name`` is copied from the species display name."""
    species = await _require_species_for_breed(db, body.species_id)
    await _ensure_unique_breed(db, species.id, body.name)

    breed = Breed(species_name=species.display_name, **body.model_dump())
    db.add(breed)
    await _flush_unique(db, "Breed already exists for this species")
    logger.info("breed_created", breed_id=breed.id, species_id=species.id, name=breed.name)
    return await get_breed(db, breed.id)


async def update_breed(db: AsyncSession, breed_id: int, body: BreedUpdateRequest) -> Breed:
    breed = await get_breed(db, breed_id)
    changes: dict[str, Any] = body.model_dump(exclude_unset=True, exclude_none=True)

    if "species_id" in changes and changes["species_id"] != breed.species_id:
        species = await _require_species_for_breed(db, changes["species_id"])
        breed.species_name = species.display_name
    target_species = changes.get("species_id", breed.species_id)
    target_name = changes.get("name", breed.name)
    if "species_id" in changes or "name" in changes:
        await _ensure_unique_breed(db, target_species, target_name, exclude_id=breed.id)

    for field, value in changes.items():
        setattr(breed, field, value)
    await _flush_unique(db, "Breed already exists for this species")
    logger.info("breed_updated", breed_id=breed.id, fields=sorted(changes))
    return await get_breed(db, breed.id)


async def delete_breed(db: AsyncSession, breed_id: int) -> None:
    breed = await get_breed(db, breed_id)
    await db.delete(breed)
    await db.flush()
    logger.info("breed_deleted", breed_id=breed_id)
