"""
Office Plant Tracker Backend — CSV Import Route Handler
=======================================================

What:  Handles POST /api/import-csv, the bulk spreadsheet upload.
How:   Reads the multipart `csvFile` field, parses it with CsvService and
       hands the rows to ImportService. The whole batch runs in the request
       transaction opened by get_db_session().
Who:   Called by the frontend import dialog.

Request Flow:
    1. Client sends multipart/form-data with a 'csvFile' field
    2. CsvService: extension → size → UTF-8 → rows (400 on any problem)
    3. ImportService: locations + plant upserts
    4. 200 with counts; `errors` only present when some rows failed
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from plant_tracker.database import get_db_session
from plant_tracker.schemas.common import ErrorResponse
from plant_tracker.schemas.imports import ImportResponse
from plant_tracker.services.csv_service import csv_service
from plant_tracker.services.import_service import import_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Import"])


@router.post(
    "/import-csv",
    response_model=ImportResponse,
    response_model_exclude_none=True,
    responses={
        400: {"description": "Invalid file or unparseable CSV", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Import aborted, nothing saved", "model": ErrorResponse},
    },
    summary="Import plants and locations from CSV",
    description=(
        "Upload a UTF-8 CSV export (max 5MB) with columns ID_Rosliny, Roslina and "
        "up to five location columns (Pietro, Strefa_glowna, Lokalizacja_szczegolowa, "
        "Rodzaj_donicy, Lokalizacja_precyzyjna). Locations are created once per "
        "distinct path; plants with an existing id are replaced."
    ),
)
async def import_csv(
    csv_file: UploadFile = File(..., alias="csvFile", description="CSV file"),
    strict: Optional[bool] = Query(
        default=None,
        description="Abort on the first failed row (defaults to IMPORT_STRICT_MODE)",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> ImportResponse:
    try:
        content = await csv_file.read()
        logger.info(
            "Received import request: filename=%s, size=%d bytes",
            csv_file.filename or "unknown",
            len(content),
        )
        rows = csv_service.parse(csv_file.filename, content, csv_file.size)
    finally:
        await csv_file.close()

    result = await import_service.materialize(db, rows, strict=strict)

    message = "Data imported successfully"
    if result.errors:
        message = f"Data imported with {len(result.errors)} failed rows"

    return ImportResponse(
        message=message,
        imported_records=result.imported_records,
        created_locations=result.created_locations,
        errors=result.errors or None,
    )
