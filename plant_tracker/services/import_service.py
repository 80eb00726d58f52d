"""
Office Plant Tracker Backend — Import Service (Hierarchy Materializer)
======================================================================

What:  Turns a batch of flat spreadsheet rows into location nodes plus
       plant records linked to them.
Why:   The spreadsheet describes where each plant stands with up to five
       positional columns. Rows repeat the same prefixes ("Floor 3",
       "Kitchen", ...) many times; the tree must contain each prefix once.
How:   A path cache maps every known full path to its node id. Each row
       walks its segments, reusing cached nodes and inserting missing ones,
       then upserts its plant onto the deepest node.
Who:   Called by POST /api/import-csv with rows from CsvService.

Materialization example:
    Pietro │ Strefa_glowna │ Lokalizacja_szczegolowa
    ───────┼───────────────┼────────────────────────
    F1     │ ZoneA         │ SubA        → creates F1, F1 > ZoneA, F1 > ZoneA > SubA
    F1     │ ZoneA         │ SubB        → reuses two, creates F1 > ZoneA > SubB

    Result: 4 nodes, not 6.

Failure policy:
    - Rows without a plant id or species only contribute locations.
    - Each plant upsert runs in its own SAVEPOINT. In tolerant mode (default)
      a failed upsert is rolled back to that savepoint, logged, reported in
      `errors` and the batch continues. In strict mode the first failure
      raises DatabaseError and the request transaction is rolled back.
    - A failed location insert always aborts the batch: later rows may
      depend on that node.
"""

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from plant_tracker.config import settings
from plant_tracker.exceptions import DatabaseError
from plant_tracker.models.location import PATH_SEPARATOR
from plant_tracker.schemas.imports import ImportResult, ImportRow, ImportRowError
from plant_tracker.services.location_service import LocationService, location_service
from plant_tracker.services.plant_service import PlantService, plant_service

logger = logging.getLogger(__name__)


class ImportService:
    """Drives the location and plant stores for one CSV batch."""

    def __init__(
        self,
        locations: LocationService = location_service,
        plants: PlantService = plant_service,
    ):
        self.locations = locations
        self.plants = plants

    async def materialize(
        self,
        db: AsyncSession,
        rows: Iterable[ImportRow],
        strict: Optional[bool] = None,
    ) -> ImportResult:
        """
        Materialize locations and upsert plants for every row, in order.

        Args:
            db: Session of the current request; the whole batch shares its transaction
            rows: Parsed spreadsheet rows
            strict: Override IMPORT_STRICT_MODE for this batch

        Returns:
            ImportResult with importedRecords, createdLocations and row errors

        Raises:
            DatabaseError: A location insert failed, or a plant upsert failed
                           in strict mode
        """
        if strict is None:
            strict = settings.import_strict_mode

        # Seeded from the database so a re-import reuses existing nodes
        path_cache = await self.locations.load_path_cache(db)
        result = ImportResult()

        for row in rows:
            location_id = await self._resolve_location(db, row, path_cache, result)

            if not row.has_plant:
                continue

            try:
                async with db.begin_nested():
                    await self.plants.upsert(
                        db,
                        plant_id=row.plant_id,
                        species=row.species,
                        location_id=location_id,
                    )
            except SQLAlchemyError as e:
                if strict:
                    logger.error(
                        "Import aborted at row %d (plant %s): %s",
                        row.row_number, row.plant_id, str(e), exc_info=True,
                    )
                    raise DatabaseError(
                        message=f"Import failed at row {row.row_number}. No data was saved.",
                        context={"row": row.row_number, "plant_id": row.plant_id},
                    )
                logger.warning(
                    "Skipping row %d (plant %s): %s", row.row_number, row.plant_id, str(e)
                )
                result.errors.append(ImportRowError(
                    row=row.row_number,
                    plant_id=row.plant_id,
                    message=f"Could not save plant: {type(e).__name__}",
                ))
                continue

            result.imported_records += 1

        logger.info(
            "Import finished: %d plants, %d new locations, %d failed rows",
            result.imported_records, result.created_locations, len(result.errors),
        )
        return result

    async def _resolve_location(
        self,
        db: AsyncSession,
        row: ImportRow,
        path_cache: Dict[str, int],
        result: ImportResult,
    ) -> Optional[int]:
        """Id of the deepest node on the row's path, creating missing nodes."""
        parent_id: Optional[int] = None
        path = ""

        for level, name in row.location_segments():
            path = path + PATH_SEPARATOR + name if path else name
            node_id = path_cache.get(path)

            if node_id is None:
                try:
                    node = await self.locations.insert_node(db, name, level, parent_id)
                except SQLAlchemyError as e:
                    logger.error(
                        "Could not create location '%s' (row %d): %s",
                        path, row.row_number, str(e), exc_info=True,
                    )
                    raise DatabaseError(
                        message=f"Could not create location '{path}'. No data was saved.",
                        context={"row": row.row_number, "path": path},
                    )
                node_id = node.id
                path_cache[path] = node_id
                result.created_locations += 1
                logger.debug("Location created: %s (id=%d, level=%d)", path, node_id, level)

            parent_id = node_id

        return parent_id


# ── Singleton Instance ────────────────────────────────────────────────────
import_service = ImportService()
