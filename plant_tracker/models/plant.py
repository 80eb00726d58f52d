"""
Office Plant Tracker Backend — Plant SQLAlchemy Model
=====================================================

What:  ORM model representing the `plants` table and the plant status enum.
Who:   Used by PlantService, ImportService and QueryService; read by Alembic.

Table Design Rationale:
    - id is supplied by the spreadsheet (e.g. "P10_R1"), not generated.
      It is the primary key, so a re-import of the same id replaces the row.
    - location_id uses ON DELETE SET NULL: losing a location makes the plant
      "unassigned" instead of deleting the plant.
    - status is stored as its string value; PlantStatus is the single source
      of allowed values.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from plant_tracker.database import Base


class PlantStatus(str, Enum):
    """Health status of a plant."""

    HEALTHY = "Healthy"
    UNDER_OBSERVATION = "UnderObservation"
    UNDER_TREATMENT = "UnderTreatment"
    MARKED_FOR_REMOVAL = "MarkedForRemoval"

    @classmethod
    def _missing_(cls, value):
        # Labels used by the original Polish spreadsheets and UI
        legacy = {
            "zdrowa": cls.HEALTHY,
            "do obserwacji": cls.UNDER_OBSERVATION,
            "w trakcie leczenia": cls.UNDER_TREATMENT,
            "do usunięcia": cls.MARKED_FOR_REMOVAL,
        }
        if isinstance(value, str):
            return legacy.get(value.strip().lower())
        return None


class Plant(Base):
    """A single plant in the office."""

    __tablename__ = "plants"

    id: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
        comment="Identifier from the spreadsheet, e.g. 'P10_R1'",
    )

    species: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    location_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
        comment="Deepest location node; NULL means unassigned",
    )

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=PlantStatus.HEALTHY.value,
        server_default=text(f"'{PlantStatus.HEALTHY.value}'"),
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    __table_args__ = (
        Index("idx_plants_location_id", "location_id"),
        Index("idx_plants_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Plant(id='{self.id}', species='{self.species}', status='{self.status}')>"
