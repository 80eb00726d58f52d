"""
Office Plant Tracker Backend — Plant Service Tests
==================================================

What:  Tests for the plant catalog store.
How:   Real SQL on in-memory SQLite; a mock session for database failures.

What we test:
    ✅ create(): duplicate id → ConflictError, unknown location → ValidationError
    ✅ update(): only fields present in the payload change; null rules
    ✅ delete(): True/False signal
    ✅ find(): search + status + location conjunction, LIKE wildcards escaped
    ✅ count_by_status() and legacy status labels
    ✅ Query failures are wrapped in DatabaseError
"""

import pytest
from sqlalchemy.exc import OperationalError

from plant_tracker.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from plant_tracker.models.plant import PlantStatus
from plant_tracker.schemas.plant import PlantCreate, PlantUpdate
from plant_tracker.services.location_service import LocationService
from plant_tracker.services.plant_service import PlantService


class TestPlantStatus:

    @pytest.mark.parametrize("label, expected", [
        ("Healthy", PlantStatus.HEALTHY),
        ("Zdrowa", PlantStatus.HEALTHY),
        ("do obserwacji", PlantStatus.UNDER_OBSERVATION),
        ("W trakcie leczenia", PlantStatus.UNDER_TREATMENT),
        (" Do usunięcia ", PlantStatus.MARKED_FOR_REMOVAL),
    ])
    def test_canonical_and_legacy_labels(self, label, expected):
        assert PlantStatus(label) is expected

    def test_unknown_label(self):
        with pytest.raises(ValueError):
            PlantStatus("Wilted")

    def test_create_payload_accepts_legacy_label_and_zone_alias(self):
        payload = PlantCreate.model_validate(
            {"id": "P1", "species": "Monstera", "status": "Zdrowa", "zoneId": 4}
        )
        assert payload.status is PlantStatus.HEALTHY
        assert payload.location_id == 4


class TestCreate:

    def setup_method(self):
        self.service = PlantService()
        self.locations = LocationService()

    @pytest.mark.asyncio
    async def test_create_with_location(self, db_session):
        node = await self.locations.insert_node(db_session, "F1", 1, None)

        plant = await self.service.create(
            db_session,
            PlantCreate(id="P1", species="Monstera", location_id=node.id, notes="by the window"),
        )

        assert plant.status == "Healthy"
        assert plant.location_id == node.id
        assert (await self.service.get_by_id(db_session, "P1")).notes == "by the window"

    @pytest.mark.asyncio
    async def test_duplicate_id_conflicts(self, db_session):
        await self.service.create(db_session, PlantCreate(id="P1", species="Monstera"))
        with pytest.raises(ConflictError):
            await self.service.create(db_session, PlantCreate(id="P1", species="Ficus"))

    @pytest.mark.asyncio
    async def test_unknown_location_rejected(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.create(
                db_session, PlantCreate(id="P1", species="Monstera", location_id=42)
            )
        assert exc_info.value.field == "locationId"


class TestUpdate:

    def setup_method(self):
        self.service = PlantService()

    async def _seed(self, db_session):
        return await self.service.create(
            db_session,
            PlantCreate(id="P1", species="Monstera", notes="water weekly"),
        )

    @pytest.mark.asyncio
    async def test_only_present_fields_change(self, db_session):
        await self._seed(db_session)

        plant = await self.service.update(
            db_session, "P1", PlantUpdate.model_validate({"status": "UnderTreatment"})
        )

        assert plant.status == "UnderTreatment"
        assert plant.species == "Monstera"
        assert plant.notes == "water weekly"

    @pytest.mark.asyncio
    async def test_explicit_null_clears_notes(self, db_session):
        await self._seed(db_session)
        plant = await self.service.update(db_session, "P1", PlantUpdate.model_validate({"notes": None}))
        assert plant.notes is None

    @pytest.mark.asyncio
    async def test_null_species_rejected(self, db_session):
        await self._seed(db_session)
        with pytest.raises(ValidationError):
            await self.service.update(db_session, "P1", PlantUpdate.model_validate({"species": None}))

    @pytest.mark.asyncio
    async def test_unknown_location_rejected(self, db_session):
        await self._seed(db_session)
        with pytest.raises(ValidationError):
            await self.service.update(
                db_session, "P1", PlantUpdate.model_validate({"locationId": 77})
            )

    @pytest.mark.asyncio
    async def test_missing_plant(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.update(db_session, "nope", PlantUpdate())


class TestDelete:

    def setup_method(self):
        self.service = PlantService()

    @pytest.mark.asyncio
    async def test_delete_existing_then_missing(self, db_session):
        await self.service.create(db_session, PlantCreate(id="P1", species="Monstera"))

        assert await self.service.delete(db_session, "P1") is True
        assert await self.service.get_by_id(db_session, "P1") is None
        assert await self.service.delete(db_session, "P1") is False


class TestFind:

    def setup_method(self):
        self.service = PlantService()
        self.locations = LocationService()

    @pytest.mark.asyncio
    async def test_conjunctive_filters(self, db_session):
        f1 = await self.locations.insert_node(db_session, "F1", 1, None)
        f2 = await self.locations.insert_node(db_session, "F2", 1, None)
        for plant_id, species, location, status in [
            ("P1", "Ficus benjamina", f1.id, PlantStatus.HEALTHY),
            ("P2", "Ficus lyrata", f1.id, PlantStatus.UNDER_TREATMENT),
            ("P3", "Ficus elastica", f2.id, PlantStatus.HEALTHY),
            ("P4", "Monstera", f1.id, PlantStatus.HEALTHY),
        ]:
            await self.service.create(
                db_session,
                PlantCreate(id=plant_id, species=species, location_id=location, status=status),
            )

        found = await self.service.find(
            db_session, search="Ficus", status=PlantStatus.HEALTHY, location_id=f1.id
        )
        assert [plant.id for plant in found] == ["P1"]

        assert [p.id for p in await self.service.search(db_session, "P4")] == ["P4"]
        assert len(await self.service.filter(db_session, location_id=f1.id)) == 3
        assert await self.service.find(db_session, location_ids=set()) == []
        assert len(await self.service.get_all(db_session)) == 4

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, db_session):
        await self.service.create(db_session, PlantCreate(id="P1", species="Monstera"))
        await self.service.create(db_session, PlantCreate(id="P_2", species="Aloe 100%"))

        assert [p.id for p in await self.service.search(db_session, "%")] == ["P_2"]
        assert [p.id for p in await self.service.search(db_session, "_")] == ["P_2"]

    @pytest.mark.asyncio
    async def test_count_by_status_lists_every_status(self, db_session):
        await self.service.create(db_session, PlantCreate(id="P1", species="Monstera"))
        await self.service.create(
            db_session,
            PlantCreate(id="P2", species="Ficus", status=PlantStatus.MARKED_FOR_REMOVAL),
        )

        counts = await self.service.count_by_status(db_session)

        assert counts == {
            "Healthy": 1,
            "UnderObservation": 0,
            "UnderTreatment": 0,
            "MarkedForRemoval": 1,
        }
        assert await self.service.count(db_session) == 2

    @pytest.mark.asyncio
    async def test_query_failure_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await self.service.find(mock_db_session, search="Ficus")
