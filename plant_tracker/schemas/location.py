"""
Office Plant Tracker Backend — Location Schemas
===============================================

What:  Request/response models for location nodes.

Shapes:
    LocationResponse  one node with its derived fullPath
    ZoneResponse      a node flattened with the name of each ancestor rank,
                      used by the filter dropdowns (/api/zones, /api/locations)
    LocationTree      a node with nested children (/api/locations/hierarchy)
"""

from typing import List, Optional

from pydantic import Field, field_validator

from plant_tracker.models.location import MAX_LEVEL, MIN_LEVEL
from plant_tracker.schemas.common import ApiModel


class LocationCreate(ApiModel):
    """Body of POST /api/locations."""
    name: str = Field(description="Segment label, e.g. 'Floor 3'")
    level: int = Field(ge=MIN_LEVEL, le=MAX_LEVEL, description="1 Floor … 5 PreciseSpot")
    parent_id: Optional[int] = Field(default=None, description="Parent node; omit for a floor")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class LocationResponse(ApiModel):
    id: int
    name: str
    level: int
    parent_id: Optional[int] = None
    full_path: str = Field(description="Ancestor names joined with ' > '")


class ZoneResponse(LocationResponse):
    """
    What:  Location node plus the segment at each rank of its ancestry.
    Why:   Lets the UI group and filter by floor / main zone / sub-zone without
           walking the tree. Ranks missing from the path are null.
    """
    floor: Optional[str] = None
    main_zone: Optional[str] = None
    sub_zone: Optional[str] = None
    area_type: Optional[str] = None
    specific_location: Optional[str] = None


class LocationTree(LocationResponse):
    children: List["LocationTree"] = Field(default_factory=list)


LocationTree.model_rebuild()
