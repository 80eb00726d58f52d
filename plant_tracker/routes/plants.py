"""
Office Plant Tracker Backend — Plant Route Handlers
===================================================

What:  CRUD endpoints for plants plus the statistics summary.
Why:   The plant list, detail panel and edit dialog of the UI.
How:   Extracts query/body data, delegates to PlantService and QueryService.
Who:   Called by the frontend plant table and edit forms.

Endpoints:
    GET    /api/plants           filtered list with locations
    GET    /api/plants/{id}      one plant with its location
    POST   /api/plants           create (409 on duplicate id)
    PATCH  /api/plants/{id}      partial update
    DELETE /api/plants/{id}      delete (204 / 404)
    GET    /api/statistics       totals and status breakdown
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from plant_tracker.database import get_db_session
from plant_tracker.exceptions import NotFoundError
from plant_tracker.schemas.common import ErrorResponse
from plant_tracker.schemas.plant import (
    PlantCreate,
    PlantUpdate,
    PlantWithLocation,
    StatisticsResponse,
    parse_status,
)
from plant_tracker.services.plant_service import plant_service
from plant_tracker.services.query_service import query_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Plants"])


@router.get(
    "/plants",
    response_model=List[PlantWithLocation],
    responses={
        400: {"description": "Invalid filter value", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List plants",
    description=(
        "Returns plants with their location and full path. All given filters "
        "are combined with AND. `search` matches the plant id or species."
    ),
)
async def list_plants(
    search: Optional[str] = Query(default=None, description="Substring of id or species"),
    status: Optional[str] = Query(default=None, description="Healthy, UnderObservation, ..."),
    location_id: Optional[int] = Query(default=None, alias="locationId"),
    zone_id: Optional[int] = Query(default=None, alias="zoneId", description="Alias of locationId"),
    floor: Optional[str] = Query(default=None),
    main_zone: Optional[str] = Query(default=None, alias="mainZone"),
    sub_zone: Optional[str] = Query(default=None, alias="subZone"),
    db: AsyncSession = Depends(get_db_session),
) -> List[PlantWithLocation]:
    return await query_service.plants_with_location(
        db,
        search=search or None,
        status=parse_status(status),
        location_id=location_id if location_id is not None else zone_id,
        floor=floor or None,
        main_zone=main_zone or None,
        sub_zone=sub_zone or None,
    )


@router.get(
    "/plants/{plant_id}",
    response_model=PlantWithLocation,
    responses={
        404: {"description": "Plant not found", "model": ErrorResponse},
    },
    summary="Get a single plant",
)
async def get_plant(
    plant_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> PlantWithLocation:
    return await query_service.plant_with_location(db, plant_id)


@router.post(
    "/plants",
    status_code=201,
    response_model=PlantWithLocation,
    responses={
        400: {"description": "Invalid payload or unknown location", "model": ErrorResponse},
        409: {"description": "Plant id already exists", "model": ErrorResponse},
    },
    summary="Create a plant",
    description="Creates a plant record. `zoneId` is accepted as an alias of `locationId`.",
)
async def create_plant(
    payload: PlantCreate,
    db: AsyncSession = Depends(get_db_session),
) -> PlantWithLocation:
    plant = await plant_service.create(db, payload)
    return await query_service.plant_with_location(db, plant.id)


@router.patch(
    "/plants/{plant_id}",
    response_model=PlantWithLocation,
    responses={
        400: {"description": "Invalid field value", "model": ErrorResponse},
        404: {"description": "Plant not found", "model": ErrorResponse},
    },
    summary="Update a plant",
    description=(
        "Applies only the fields present in the body. `notes` and `locationId` "
        "may be set to null."
    ),
)
async def update_plant(
    plant_id: str,
    payload: PlantUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> PlantWithLocation:
    await plant_service.update(db, plant_id, payload)
    return await query_service.plant_with_location(db, plant_id)


@router.delete(
    "/plants/{plant_id}",
    status_code=204,
    response_class=Response,
    responses={
        404: {"description": "Plant not found", "model": ErrorResponse},
    },
    summary="Delete a plant",
)
async def delete_plant(
    plant_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    if not await plant_service.delete(db, plant_id):
        raise NotFoundError(resource="plant", resource_id=plant_id)
    return Response(status_code=204)


@router.get(
    "/statistics",
    response_model=StatisticsResponse,
    summary="Plant and location totals",
)
async def get_statistics(db: AsyncSession = Depends(get_db_session)) -> StatisticsResponse:
    return await query_service.statistics(db)
