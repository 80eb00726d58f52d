"""
Office Plant Tracker Backend — Location Service Tests
=====================================================

What:  Tests for the location tree store.
How:   Pure path derivation on plain Location objects; everything else on a
       real in-memory SQLite database (db_session fixture).

What we test:
    ✅ compute_paths() joins ancestry names and maps levels to names
    ✅ create() validation: name, level, parent, level order, sibling names
    ✅ get_children / get_by_level / get_hierarchy
    ✅ Deleting a node cascades to its subtree and unassigns its plants
"""

import pytest
from sqlalchemy import delete, func, select

from plant_tracker.exceptions import ConflictError, ValidationError
from plant_tracker.models.location import Location
from plant_tracker.models.plant import Plant
from plant_tracker.services.location_service import LocationService, compute_paths


class TestComputePaths:

    def test_paths_and_segments(self):
        nodes = [
            Location(id=1, name="F1", level=1, parent_id=None),
            Location(id=2, name="ZoneA", level=2, parent_id=1),
            Location(id=3, name="Window", level=3, parent_id=2),
        ]

        paths = compute_paths(nodes)

        assert paths[3].full_path == "F1 > ZoneA > Window"
        assert paths[3].segments == {1: "F1", 2: "ZoneA", 3: "Window"}
        assert paths[1].full_path == "F1"

    def test_child_listed_before_parent(self):
        nodes = [
            Location(id=5, name="Shelf", level=5, parent_id=4),
            Location(id=4, name="F2", level=1, parent_id=None),
        ]
        assert compute_paths(nodes)[5].full_path == "F2 > Shelf"

    def test_level_gap_keeps_rank(self):
        nodes = [
            Location(id=1, name="F1", level=1, parent_id=None),
            Location(id=2, name="Window", level=3, parent_id=1),
        ]
        assert compute_paths(nodes)[2].segments == {1: "F1", 3: "Window"}


class TestCreate:

    def setup_method(self):
        self.service = LocationService()

    @pytest.mark.asyncio
    async def test_create_root_and_child(self, db_session):
        floor = await self.service.create(db_session, "Floor 3", 1)
        kitchen = await self.service.create(db_session, " Kitchen ", 2, floor.id)

        assert kitchen.parent_id == floor.id
        assert kitchen.name == "Kitchen"
        assert await self.service.full_path(db_session, kitchen) == "Floor 3 > Kitchen"

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(db_session, "   ", 1)
        assert exc_info.value.field == "name"

    @pytest.mark.asyncio
    async def test_level_out_of_range_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.create(db_session, "Roof", 6)

    @pytest.mark.asyncio
    async def test_unknown_parent_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(db_session, "Kitchen", 2, parent_id=999)
        assert exc_info.value.field == "parentId"

    @pytest.mark.asyncio
    async def test_level_must_exceed_parent_level(self, db_session):
        zone = await self.service.create(db_session, "ZoneA", 2)
        with pytest.raises(ValidationError, match="greater"):
            await self.service.create(db_session, "F1", 1, parent_id=zone.id)

    @pytest.mark.asyncio
    async def test_duplicate_sibling_conflicts(self, db_session):
        floor = await self.service.create(db_session, "F1", 1)
        await self.service.create(db_session, "ZoneA", 2, floor.id)
        with pytest.raises(ConflictError):
            await self.service.create(db_session, "ZoneA", 2, floor.id)

    @pytest.mark.asyncio
    async def test_duplicate_root_conflicts(self, db_session):
        await self.service.create(db_session, "F1", 1)
        with pytest.raises(ConflictError):
            await self.service.create(db_session, "F1", 1)

    @pytest.mark.asyncio
    async def test_same_name_under_different_parents(self, db_session):
        f1 = await self.service.create(db_session, "F1", 1)
        f2 = await self.service.create(db_session, "F2", 1)
        a = await self.service.create(db_session, "Kitchen", 2, f1.id)
        b = await self.service.create(db_session, "Kitchen", 2, f2.id)
        assert a.id != b.id


class TestReads:

    def setup_method(self):
        self.service = LocationService()

    @pytest.mark.asyncio
    async def test_children_levels_and_hierarchy(self, db_session):
        f1 = await self.service.insert_node(db_session, "F1", 1, None)
        f2 = await self.service.insert_node(db_session, "F2", 1, None)
        zone = await self.service.insert_node(db_session, "ZoneA", 2, f1.id)
        await self.service.insert_node(db_session, "Window", 3, zone.id)

        roots = await self.service.get_children(db_session, None)
        assert [node.name for node in roots] == ["F1", "F2"]
        assert [n.name for n in await self.service.get_children(db_session, f1.id)] == ["ZoneA"]
        assert [n.name for n in await self.service.get_by_level(db_session, 3)] == ["Window"]
        assert await self.service.get_by_id(db_session, f2.id) is f2

        forest = await self.service.get_hierarchy(db_session)
        assert [tree.name for tree in forest] == ["F1", "F2"]
        window = forest[0].children[0].children[0]
        assert window.full_path == "F1 > ZoneA > Window"
        assert forest[1].children == []

    @pytest.mark.asyncio
    async def test_path_cache(self, db_session):
        f1 = await self.service.insert_node(db_session, "F1", 1, None)
        zone = await self.service.insert_node(db_session, "ZoneA", 2, f1.id)

        cache = await self.service.load_path_cache(db_session)

        assert cache == {"F1": f1.id, "F1 > ZoneA": zone.id}


class TestCascade:

    def setup_method(self):
        self.service = LocationService()

    @pytest.mark.asyncio
    async def test_deleting_node_removes_subtree_and_unassigns_plants(self, db_session):
        f1 = await self.service.insert_node(db_session, "F1", 1, None)
        zone = await self.service.insert_node(db_session, "ZoneA", 2, f1.id)
        spot = await self.service.insert_node(db_session, "Window", 3, zone.id)
        other = await self.service.insert_node(db_session, "F2", 1, None)
        plant = Plant(id="P1", species="Monstera", location_id=spot.id)
        db_session.add(plant)
        await db_session.flush()

        await db_session.execute(delete(Location).where(Location.id == f1.id))

        remaining = (await db_session.execute(select(func.count(Location.id)))).scalar()
        assert remaining == 1
        assert (await db_session.get(Location, other.id)) is not None

        await db_session.refresh(plant)
        assert plant.location_id is None
