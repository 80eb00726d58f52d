"""
Office Plant Tracker Backend — Query Service (read-only views)
==============================================================

What:  Derived, read-only views combining plants and the location tree.
Why:   The UI lists plants with their full location path and filters them by
       floor / main zone / sub-zone. None of that is stored; it is derived
       from the adjacency list on every call.
How:   Loads all location nodes once per call, derives paths with
       compute_paths(), then filters or joins in memory. Plants are still
       filtered in SQL (search, status, location ids).
Who:   Called by the plant and location routes.

Ancestry filters:
    A plant matches floor="F1" when the level-1 ancestor of its location is
    named "F1". The same applies to mainZone (level 2) and subZone (level 3).
    Unassigned plants never match an ancestry filter.
"""

from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from plant_tracker.exceptions import NotFoundError
from plant_tracker.models.location import Location
from plant_tracker.models.plant import Plant, PlantStatus
from plant_tracker.schemas.location import ZoneResponse
from plant_tracker.schemas.plant import PlantWithLocation, StatisticsResponse
from plant_tracker.services.location_service import (
    LocationService,
    NodePath,
    compute_paths,
    location_service,
    to_response,
)
from plant_tracker.services.plant_service import PlantService, plant_service

FLOOR_LEVEL, MAIN_ZONE_LEVEL, SUB_ZONE_LEVEL, AREA_TYPE_LEVEL, PRECISE_SPOT_LEVEL = 1, 2, 3, 4, 5


def _matches(
    path: NodePath,
    floor: Optional[str],
    main_zone: Optional[str],
    sub_zone: Optional[str],
) -> bool:
    wanted = {FLOOR_LEVEL: floor, MAIN_ZONE_LEVEL: main_zone, SUB_ZONE_LEVEL: sub_zone}
    return all(
        path.segments.get(level) == name
        for level, name in wanted.items()
        if name
    )


def _with_location(
    plant: Plant,
    node: Optional[Location],
    full_path: Optional[str],
) -> PlantWithLocation:
    return PlantWithLocation(
        id=plant.id,
        species=plant.species,
        location_id=plant.location_id,
        status=plant.status,
        notes=plant.notes,
        location=to_response(node, full_path) if node is not None else None,
    )


class QueryService:
    """Read-only façade over LocationService and PlantService."""

    def __init__(
        self,
        locations: LocationService = location_service,
        plants: PlantService = plant_service,
    ):
        self.locations = locations
        self.plants = plants

    async def plants_with_location(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        status: Optional[PlantStatus] = None,
        location_id: Optional[int] = None,
        floor: Optional[str] = None,
        main_zone: Optional[str] = None,
        sub_zone: Optional[str] = None,
    ) -> List[PlantWithLocation]:
        """Plants matching every given filter, each with its location and full path."""
        nodes = await self.locations.get_all(db)
        by_id = {node.id: node for node in nodes}
        paths = compute_paths(nodes)

        location_ids = None
        if floor or main_zone or sub_zone:
            location_ids = {
                node_id for node_id, path in paths.items()
                if _matches(path, floor, main_zone, sub_zone)
            }

        plants = await self.plants.find(
            db,
            search=search,
            status=status,
            location_id=location_id,
            location_ids=location_ids,
        )

        return [
            _with_location(
                plant,
                by_id.get(plant.location_id),
                paths[plant.location_id].full_path if plant.location_id in paths else None,
            )
            for plant in plants
        ]

    async def plant_with_location(self, db: AsyncSession, plant_id: str) -> PlantWithLocation:
        """
        Raises:
            NotFoundError: No plant with this id (→ 404)
        """
        plant = await self.plants.get_by_id(db, plant_id)
        if plant is None:
            raise NotFoundError(resource="plant", resource_id=plant_id)

        node = None
        full_path = None
        if plant.location_id is not None:
            node = await self.locations.get_by_id(db, plant.location_id)
            if node is not None:
                full_path = await self.locations.full_path(db, node)
        return _with_location(plant, node, full_path)

    async def _names_at_level(
        self,
        db: AsyncSession,
        level: int,
        floor: Optional[str] = None,
        main_zone: Optional[str] = None,
    ) -> List[str]:
        nodes = await self.locations.get_all(db)
        paths = compute_paths(nodes)
        names = {
            node.name for node in nodes
            if node.level == level and _matches(paths[node.id], floor, main_zone, None)
        }
        return sorted(names)

    async def floors(self, db: AsyncSession) -> List[str]:
        return await self._names_at_level(db, FLOOR_LEVEL)

    async def main_zones(self, db: AsyncSession, floor: Optional[str] = None) -> List[str]:
        return await self._names_at_level(db, MAIN_ZONE_LEVEL, floor=floor)

    async def sub_zones(
        self,
        db: AsyncSession,
        floor: Optional[str] = None,
        main_zone: Optional[str] = None,
    ) -> List[str]:
        return await self._names_at_level(db, SUB_ZONE_LEVEL, floor=floor, main_zone=main_zone)

    async def zones(
        self,
        db: AsyncSession,
        level: Optional[int] = None,
        floor: Optional[str] = None,
        main_zone: Optional[str] = None,
        sub_zone: Optional[str] = None,
        parent_id: Optional[int] = None,
        roots_only: bool = False,
    ) -> List[ZoneResponse]:
        """
        Every location node flattened with the segment at each rank of its path.

        Args:
            level: Only nodes on this level
            floor / main_zone / sub_zone: Only nodes under these ancestors
            parent_id: Only direct children of this node
            roots_only: Only nodes without a parent (takes precedence over parent_id)
        """
        nodes = await self.locations.get_all(db)
        paths = compute_paths(nodes)
        zones = []

        for node in nodes:
            path = paths[node.id]
            if level is not None and node.level != level:
                continue
            if roots_only and node.parent_id is not None:
                continue
            if not roots_only and parent_id is not None and node.parent_id != parent_id:
                continue
            if not _matches(path, floor, main_zone, sub_zone):
                continue

            zones.append(ZoneResponse(
                id=node.id,
                name=node.name,
                level=node.level,
                parent_id=node.parent_id,
                full_path=path.full_path,
                floor=path.segments.get(FLOOR_LEVEL),
                main_zone=path.segments.get(MAIN_ZONE_LEVEL),
                sub_zone=path.segments.get(SUB_ZONE_LEVEL),
                area_type=path.segments.get(AREA_TYPE_LEVEL),
                specific_location=path.segments.get(PRECISE_SPOT_LEVEL),
            ))

        return zones

    async def statistics(self, db: AsyncSession) -> StatisticsResponse:
        total_locations = (await db.execute(select(func.count(Location.id)))).scalar() or 0
        status_stats: Dict[str, int] = await self.plants.count_by_status(db)
        return StatisticsResponse(
            total_plants=await self.plants.count(db),
            total_locations=total_locations,
            status_stats=status_stats,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
query_service = QueryService()
