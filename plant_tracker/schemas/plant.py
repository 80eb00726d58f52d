"""
Office Plant Tracker Backend — Plant Schemas
============================================

What:  Request/response models for plant records.
Why:   Validates create and patch payloads before they reach PlantService and
       defines the plant-with-location composite returned to the UI.

Location field spelling:
    Older clients send `zoneId`, newer ones `locationId`. Both are accepted
    on input; responses always use `locationId`.

Partial updates:
    PlantUpdate has one optional field per attribute. Which fields the client
    actually sent is read from `model_fields_set`, so `{"notes": null}` clears
    the notes while `{}` leaves them untouched.
"""

from typing import Dict, Optional

from pydantic import AliasChoices, Field, field_validator

from plant_tracker.exceptions import ValidationError
from plant_tracker.models.plant import PlantStatus
from plant_tracker.schemas.common import ApiModel
from plant_tracker.schemas.location import LocationResponse

_LOCATION_ALIASES = AliasChoices("locationId", "zoneId", "location_id")


def parse_status(value: Optional[str]) -> Optional[PlantStatus]:
    """Convert a query-string status (canonical or legacy label) to PlantStatus."""
    if value is None or value == "":
        return None
    try:
        return PlantStatus(value)
    except ValueError:
        raise ValidationError(
            message=(
                f"Invalid status '{value}'. "
                f"Allowed: {', '.join(s.value for s in PlantStatus)}"
            ),
            field="status",
        )


def _coerce_status(value):
    # Accepts legacy labels ("Zdrowa", ...) in request bodies as well
    if value is None or isinstance(value, PlantStatus):
        return value
    try:
        return PlantStatus(value)
    except ValueError:
        return value  # let the enum validator produce the field error


def _required_text(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value


class PlantCreate(ApiModel):
    """Body of POST /api/plants."""
    id: str = Field(max_length=100, description="Plant identifier, e.g. 'P10_R1'")
    species: str = Field(max_length=255)
    status: PlantStatus = Field(default=PlantStatus.HEALTHY)
    notes: Optional[str] = None
    location_id: Optional[int] = Field(
        default=None,
        validation_alias=_LOCATION_ALIASES,
        serialization_alias="locationId",
    )

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        return _required_text(v, "id")

    @field_validator("species")
    @classmethod
    def strip_species(cls, v: str) -> str:
        return _required_text(v, "species")

    @field_validator("status", mode="before")
    @classmethod
    def legacy_status(cls, v):
        return _coerce_status(v)


class PlantUpdate(ApiModel):
    """Body of PATCH /api/plants/{id}; every field optional."""
    species: Optional[str] = Field(default=None, max_length=255)
    status: Optional[PlantStatus] = None
    notes: Optional[str] = None
    location_id: Optional[int] = Field(
        default=None,
        validation_alias=_LOCATION_ALIASES,
        serialization_alias="locationId",
    )

    @field_validator("species")
    @classmethod
    def strip_species(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _required_text(v, "species")

    @field_validator("status", mode="before")
    @classmethod
    def legacy_status(cls, v):
        return _coerce_status(v)


class PlantResponse(ApiModel):
    """A stored plant record."""
    id: str
    species: str
    location_id: Optional[int] = None
    status: PlantStatus
    notes: Optional[str] = None


class PlantWithLocation(PlantResponse):
    """Plant record with its location node and full path (null when unassigned)."""
    location: Optional[LocationResponse] = None


class StatisticsResponse(ApiModel):
    total_plants: int
    total_locations: int
    status_stats: Dict[str, int] = Field(description="Number of plants per status")
