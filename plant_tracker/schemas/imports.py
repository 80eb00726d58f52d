"""
Office Plant Tracker Backend — CSV Import Schemas
=================================================

What:  The typed row handed to the materializer and the import result shapes.
Why:   CsvService turns loosely typed spreadsheet rows (dicts of strings keyed
       by whatever headers the file used) into ImportRow once, so the
       materializer never deals with header spelling or blank cells.

Row → segments:
    ┌────────┬───────────────┬─────────────────────────┬───────────────┬────────────────────────┐
    │ Pietro │ Strefa_glowna │ Lokalizacja_szczegolowa │ Rodzaj_donicy │ Lokalizacja_precyzyjna │
    │ level 1│ level 2       │ level 3                 │ level 4       │ level 5                │
    └────────┴───────────────┴─────────────────────────┴───────────────┴────────────────────────┘
    Blank cells are dropped; the remaining segments keep their column level.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from plant_tracker.schemas.common import ApiModel


class ImportRow(BaseModel):
    """One spreadsheet row after header normalization and trimming."""

    row_number: int = Field(description="1-based data row number (header excluded)")
    plant_id: str = ""
    species: str = ""
    floor: str = ""
    main_zone: str = ""
    sub_zone: str = ""
    area_type: str = ""
    precise_spot: str = ""

    def location_segments(self) -> List[Tuple[int, str]]:
        """(level, name) for every non-empty location column, in rank order."""
        columns = (self.floor, self.main_zone, self.sub_zone, self.area_type, self.precise_spot)
        return [(level, name) for level, name in enumerate(columns, start=1) if name]

    @property
    def has_plant(self) -> bool:
        return bool(self.plant_id and self.species)


class ImportRowError(ApiModel):
    """A plant row that could not be stored."""
    row: int
    plant_id: Optional[str] = None
    message: str


class ImportResult(ApiModel):
    """Counts produced by one materialization batch."""
    imported_records: int = 0
    created_locations: int = 0
    errors: List[ImportRowError] = Field(default_factory=list)


class ImportResponse(ApiModel):
    """Response body of POST /api/import-csv."""
    message: str
    imported_records: int
    created_locations: int
    errors: Optional[List[ImportRowError]] = Field(
        default=None,
        description="Present only when some rows failed",
    )
