"""
Office Plant Tracker Backend — Query Service Tests
==================================================

What:  Tests for the read-only views: plants with paths, zone lists, stats.
How:   Data is loaded through ImportService, as the UI would see it after
       a spreadsheet import.
"""

import pytest

from plant_tracker.exceptions import NotFoundError
from plant_tracker.models.plant import PlantStatus
from plant_tracker.services.import_service import ImportService
from plant_tracker.services.query_service import QueryService


class TestQueryService:

    def setup_method(self):
        self.service = QueryService()
        self.importer = ImportService()

    async def _seed(self, db_session, make_row):
        rows = [
            make_row(1, "P1", "Monstera", "F1", "ZoneA", "Window"),
            make_row(2, "P2", "Ficus", "F1", "ZoneB"),
            make_row(3, "P3", "Aloe", "F2", "ZoneA", "Desk", "Ceramic", "Left"),
            make_row(4, "P4", "Cactus"),
        ]
        await self.importer.materialize(db_session, rows)

    @pytest.mark.asyncio
    async def test_plants_with_location_paths(self, db_session, make_row):
        await self._seed(db_session, make_row)

        plants = {p.id: p for p in await self.service.plants_with_location(db_session)}

        assert plants["P1"].location.full_path == "F1 > ZoneA > Window"
        assert plants["P2"].location.full_path == "F1 > ZoneB"
        assert plants["P3"].location.level == 5
        assert plants["P4"].location is None
        assert plants["P4"].location_id is None

    @pytest.mark.asyncio
    async def test_ancestry_filters(self, db_session, make_row):
        await self._seed(db_session, make_row)

        by_floor = await self.service.plants_with_location(db_session, floor="F1")
        assert [p.id for p in by_floor] == ["P1", "P2"]

        by_zone = await self.service.plants_with_location(db_session, main_zone="ZoneA")
        assert [p.id for p in by_zone] == ["P1", "P3"]

        combined = await self.service.plants_with_location(
            db_session, floor="F2", main_zone="ZoneA", sub_zone="Desk", search="Aloe",
            status=PlantStatus.HEALTHY,
        )
        assert [p.id for p in combined] == ["P3"]

        assert await self.service.plants_with_location(db_session, floor="F9") == []

    @pytest.mark.asyncio
    async def test_single_plant(self, db_session, make_row):
        await self._seed(db_session, make_row)

        plant = await self.service.plant_with_location(db_session, "P3")
        assert plant.location.full_path == "F2 > ZoneA > Desk > Ceramic > Left"

        with pytest.raises(NotFoundError):
            await self.service.plant_with_location(db_session, "missing")

    @pytest.mark.asyncio
    async def test_distinct_name_lists(self, db_session, make_row):
        await self._seed(db_session, make_row)

        assert await self.service.floors(db_session) == ["F1", "F2"]
        assert await self.service.main_zones(db_session) == ["ZoneA", "ZoneB"]
        assert await self.service.main_zones(db_session, floor="F2") == ["ZoneA"]
        assert await self.service.sub_zones(db_session) == ["Desk", "Window"]
        assert await self.service.sub_zones(db_session, floor="F1", main_zone="ZoneA") == ["Window"]

    @pytest.mark.asyncio
    async def test_zones_flattened(self, db_session, make_row):
        await self._seed(db_session, make_row)

        zones = await self.service.zones(db_session)
        left = next(zone for zone in zones if zone.name == "Left")
        assert left.floor == "F2"
        assert left.main_zone == "ZoneA"
        assert left.sub_zone == "Desk"
        assert left.area_type == "Ceramic"
        assert left.specific_location == "Left"

        zone_b = next(zone for zone in zones if zone.name == "ZoneB")
        assert zone_b.sub_zone is None

        roots = await self.service.zones(db_session, roots_only=True)
        assert [zone.name for zone in roots] == ["F1", "F2"]

        level_two = await self.service.zones(db_session, level=2, floor="F1")
        assert [zone.full_path for zone in level_two] == ["F1 > ZoneA", "F1 > ZoneB"]

        children = await self.service.zones(db_session, parent_id=roots[0].id)
        assert [zone.name for zone in children] == ["ZoneA", "ZoneB"]

    @pytest.mark.asyncio
    async def test_statistics(self, db_session, make_row):
        await self._seed(db_session, make_row)

        stats = await self.service.statistics(db_session)

        assert stats.total_plants == 4
        assert stats.total_locations == 9
        assert stats.status_stats["Healthy"] == 4
