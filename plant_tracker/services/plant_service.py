"""
Office Plant Tracker Backend — Plant Service (Plant Catalog Store)
==================================================================

What:  CRUD, search and filtering over the `plants` table.
Why:   Keeps every rule about plant records (unique ids, existing locations,
       allowed statuses) in one place, independent of HTTP concerns.
Who:   Called by the plant routes, QueryService and ImportService.

Create vs. upsert:
    ┌────────────┬──────────────────────────┬──────────────────────────────┐
    │            │ create() (POST)          │ upsert() (CSV import)        │
    ├────────────┼──────────────────────────┼──────────────────────────────┤
    │ id exists  │ ConflictError → 409      │ record replaced entirely     │
    │ location   │ must exist → 400         │ resolved by the materializer │
    │ status     │ from payload             │ always Healthy, notes reset  │
    └────────────┴──────────────────────────┴──────────────────────────────┘
"""

import logging
from typing import Collection, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from plant_tracker.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from plant_tracker.models.location import Location
from plant_tracker.models.plant import Plant, PlantStatus
from plant_tracker.schemas.plant import PlantCreate, PlantUpdate

logger = logging.getLogger(__name__)


class PlantService:
    """
    Business logic layer for plant records.

    Error Handling Strategy:
        Client mistakes raise ValidationError / NotFoundError / ConflictError.
        Unexpected query failures are logged and wrapped in DatabaseError so
        driver messages never reach the API response.
    """

    async def find(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        status: Optional[PlantStatus] = None,
        location_id: Optional[int] = None,
        location_ids: Optional[Collection[int]] = None,
    ) -> List[Plant]:
        """
        Plants matching every given criterion, ordered by id.

        Args:
            search: Substring of the plant id or species (SQL LIKE, wildcards escaped)
            status: Exact status
            location_id: Exact location node
            location_ids: Location must be one of these; an empty collection
                          matches nothing
        """
        query = select(Plant)

        if search:
            query = query.where(
                or_(
                    Plant.id.contains(search, autoescape=True),
                    Plant.species.contains(search, autoescape=True),
                )
            )
        if status is not None:
            query = query.where(Plant.status == PlantStatus(status).value)
        if location_id is not None:
            query = query.where(Plant.location_id == location_id)
        if location_ids is not None:
            query = query.where(Plant.location_id.in_(list(location_ids)))

        try:
            result = await db.execute(query.order_by(Plant.id))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing plants: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve plants. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_all(self, db: AsyncSession) -> List[Plant]:
        return await self.find(db)

    async def get_by_id(self, db: AsyncSession, plant_id: str) -> Optional[Plant]:
        return await db.get(Plant, plant_id)

    async def search(self, db: AsyncSession, text: str) -> List[Plant]:
        return await self.find(db, search=text)

    async def filter(
        self,
        db: AsyncSession,
        status: Optional[PlantStatus] = None,
        location_id: Optional[int] = None,
    ) -> List[Plant]:
        return await self.find(db, status=status, location_id=location_id)

    async def _check_location(self, db: AsyncSession, location_id: Optional[int]) -> None:
        if location_id is None:
            return
        if await db.get(Location, location_id) is None:
            raise ValidationError(
                message=f"Location with ID '{location_id}' does not exist",
                field="locationId",
            )

    async def create(self, db: AsyncSession, data: PlantCreate) -> Plant:
        """
        Insert a new plant.

        Raises:
            ConflictError: A plant with this id already exists (→ 409)
            ValidationError: locationId refers to no location (→ 400)
        """
        if await self.get_by_id(db, data.id) is not None:
            raise ConflictError(
                message=f"Plant with ID '{data.id}' already exists",
                context={"plant_id": data.id},
            )
        await self._check_location(db, data.location_id)

        plant = Plant(
            id=data.id,
            species=data.species,
            location_id=data.location_id,
            status=data.status.value,
            notes=data.notes,
        )
        db.add(plant)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError(
                message=f"Plant with ID '{data.id}' already exists",
                context={"plant_id": data.id},
            )
        logger.info("Plant created: %s (%s)", plant.id, plant.species)
        return plant

    async def upsert(
        self,
        db: AsyncSession,
        plant_id: str,
        species: str,
        location_id: Optional[int],
        status: PlantStatus = PlantStatus.HEALTHY,
        notes: Optional[str] = None,
    ) -> Plant:
        """Insert or fully replace the plant with this id."""
        plant = await self.get_by_id(db, plant_id)
        if plant is None:
            plant = Plant(id=plant_id)
            db.add(plant)
        plant.species = species
        plant.location_id = location_id
        plant.status = PlantStatus(status).value
        plant.notes = notes
        await db.flush()
        return plant

    async def update(self, db: AsyncSession, plant_id: str, data: PlantUpdate) -> Plant:
        """
        Apply a partial update.

        Only fields present in the request body are touched. `notes` and
        `locationId` may be set to null; `species` and `status` may not.

        Raises:
            NotFoundError: No plant with this id (→ 404)
            ValidationError: A present field has an invalid value (→ 400)
        """
        plant = await self.get_by_id(db, plant_id)
        if plant is None:
            raise NotFoundError(resource="plant", resource_id=plant_id)

        fields = data.model_fields_set

        if "species" in fields:
            if data.species is None:
                raise ValidationError(message="Species must not be empty", field="species")
            plant.species = data.species

        if "status" in fields:
            if data.status is None:
                raise ValidationError(message="Status must not be null", field="status")
            plant.status = data.status.value

        if "notes" in fields:
            plant.notes = data.notes

        if "location_id" in fields:
            await self._check_location(db, data.location_id)
            plant.location_id = data.location_id

        await db.flush()
        logger.info("Plant updated: %s (fields: %s)", plant_id, ", ".join(sorted(fields)) or "none")
        return plant

    async def delete(self, db: AsyncSession, plant_id: str) -> bool:
        """Delete a plant; False when it did not exist."""
        plant = await self.get_by_id(db, plant_id)
        if plant is None:
            return False
        await db.delete(plant)
        await db.flush()
        logger.info("Plant deleted: %s", plant_id)
        return True

    async def count(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count(Plant.id)))
        return result.scalar() or 0

    async def count_by_status(self, db: AsyncSession) -> Dict[str, int]:
        """Status → number of plants; every status is listed, zero included."""
        result = await db.execute(
            select(Plant.status, func.count(Plant.id)).group_by(Plant.status)
        )
        counts = {status.value: 0 for status in PlantStatus}
        for status, count in result.all():
            counts[status] = count
        return counts


# ── Singleton Instance ────────────────────────────────────────────────────
plant_service = PlantService()
