"""
Office Plant Tracker Backend — Location SQLAlchemy Model
========================================================

What:  ORM model representing the `locations` table (the office hierarchy).
Why:   Plants are placed in a tree of named nodes: floor → main zone →
       sub-zone → pot type → precise spot.
Who:   Used by LocationService, ImportService and QueryService; read by Alembic.

Table Design Rationale:
    - Adjacency list (parent_id) rather than a denormalized path column:
      the full path is derived on read, so renaming is never needed and a
      node's identity is (parent_id, name).
    - ON DELETE CASCADE on parent_id: removing a node removes its subtree.
    - Unique (parent_id, name): one node per path. Root nodes have a NULL
      parent and NULLs never collide in a unique index, so root uniqueness is
      checked by LocationService.create() and by the import path cache.
    - level: rank of the CSV column the segment came from (1-5), not the
      depth. A row with a blank main zone attaches its sub-zone (level 3)
      directly under the floor (level 1).
"""

from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from plant_tracker.database import Base

# Rank names in column order; index + 1 is the level
LEVEL_NAMES = ("Floor", "MainZone", "SubZone", "AreaType", "PreciseSpot")
MIN_LEVEL = 1
MAX_LEVEL = len(LEVEL_NAMES)

# Separator used to build display paths and path-cache keys
PATH_SEPARATOR = " > "


class Location(Base):
    """
    One node of the location tree.

    Lifecycle:
        1. Created by CSV import (one per new path prefix) or POST /api/locations
        2. Never updated
        3. Removed only through cascade when an ancestor is deleted
    """

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display label of this path segment, e.g. 'Floor 3'",
    )

    level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1 Floor, 2 MainZone, 3 SubZone, 4 AreaType, 5 PreciseSpot",
    )

    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("locations.id", ondelete="CASCADE"),
        nullable=True,
        comment="Node one level up; NULL for floors",
    )

    __table_args__ = (
        UniqueConstraint("parent_id", "name", name="uq_locations_parent_name"),
        CheckConstraint(f"level BETWEEN {MIN_LEVEL} AND {MAX_LEVEL}", name="ck_locations_level"),
        Index("idx_locations_parent_id", "parent_id"),
        Index("idx_locations_level", "level"),
    )

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name='{self.name}', level={self.level}, parent_id={self.parent_id})>"
