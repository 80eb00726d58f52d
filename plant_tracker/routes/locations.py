"""
Office Plant Tracker Backend — Location Route Handlers
======================================================

What:  Read endpoints over the location tree and explicit node creation.
Who:   Called by the frontend filter dropdowns and location manager.

Endpoints:
    GET  /api/locations             flattened nodes (same as /api/zones)
    GET  /api/zones                 flattened nodes with ancestry columns
    GET  /api/locations/hierarchy   nested forest
    POST /api/locations             create one node
    GET  /api/floors                distinct floor names
    GET  /api/main-zones            distinct main zone names (by floor)
    GET  /api/sub-zones             distinct sub-zone names (by floor, main zone)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from plant_tracker.database import get_db_session
from plant_tracker.exceptions import ValidationError
from plant_tracker.schemas.common import ErrorResponse
from plant_tracker.schemas.location import (
    LocationCreate,
    LocationResponse,
    LocationTree,
    ZoneResponse,
)
from plant_tracker.services.location_service import location_service, to_response
from plant_tracker.services.query_service import query_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Locations"])


def _parse_parent_id(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(
            message=f"parentId must be an integer or 'null', got '{value}'",
            field="parentId",
        )


@router.get(
    "/locations",
    response_model=List[ZoneResponse],
    responses={400: {"description": "Invalid filter value", "model": ErrorResponse}},
    summary="List location nodes",
    description=(
        "Every node with its full path and the name of each rank in its ancestry. "
        "`parentId=null` returns only the roots."
    ),
)
@router.get(
    "/zones",
    response_model=List[ZoneResponse],
    responses={400: {"description": "Invalid filter value", "model": ErrorResponse}},
    summary="List zones (alias of /api/locations)",
)
async def list_locations(
    level: Optional[int] = Query(default=None, ge=1, le=5),
    floor: Optional[str] = Query(default=None),
    main_zone: Optional[str] = Query(default=None, alias="mainZone"),
    sub_zone: Optional[str] = Query(default=None, alias="subZone"),
    parent_id: Optional[str] = Query(default=None, alias="parentId"),
    db: AsyncSession = Depends(get_db_session),
) -> List[ZoneResponse]:
    roots_only = parent_id is not None and parent_id.lower() == "null"
    parent = None
    if parent_id is not None and not roots_only:
        parent = _parse_parent_id(parent_id)

    return await query_service.zones(
        db,
        level=level,
        floor=floor or None,
        main_zone=main_zone or None,
        sub_zone=sub_zone or None,
        parent_id=parent,
        roots_only=roots_only,
    )


@router.get(
    "/locations/hierarchy",
    response_model=List[LocationTree],
    summary="Location tree",
    description="All nodes nested under their parents, each with its full path.",
)
async def get_hierarchy(db: AsyncSession = Depends(get_db_session)) -> List[LocationTree]:
    return await location_service.get_hierarchy(db)


@router.post(
    "/locations",
    status_code=201,
    response_model=LocationResponse,
    responses={
        400: {"description": "Invalid name, level or parent", "model": ErrorResponse},
        409: {"description": "Sibling with the same name exists", "model": ErrorResponse},
    },
    summary="Create a location node",
)
async def create_location(
    payload: LocationCreate,
    db: AsyncSession = Depends(get_db_session),
) -> LocationResponse:
    node = await location_service.create(db, payload.name, payload.level, payload.parent_id)
    return to_response(node, await location_service.full_path(db, node))


@router.get("/floors", response_model=List[str], summary="Distinct floor names")
async def list_floors(db: AsyncSession = Depends(get_db_session)) -> List[str]:
    return await query_service.floors(db)


@router.get("/main-zones", response_model=List[str], summary="Distinct main zone names")
async def list_main_zones(
    floor: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> List[str]:
    return await query_service.main_zones(db, floor=floor or None)


@router.get("/sub-zones", response_model=List[str], summary="Distinct sub-zone names")
async def list_sub_zones(
    floor: Optional[str] = Query(default=None),
    main_zone: Optional[str] = Query(default=None, alias="mainZone"),
    db: AsyncSession = Depends(get_db_session),
) -> List[str]:
    return await query_service.sub_zones(db, floor=floor or None, main_zone=main_zone or None)
