"""
Office Plant Tracker Backend — CSV Reader Service
=================================================

What:  Validates an uploaded spreadsheet export and turns it into ImportRows.
Why:   The materializer should only ever see clean, typed rows. Everything
       about file format (extension, size, encoding, quoting, header
       spelling) is handled here.
Who:   Called by the POST /api/import-csv route before ImportService.

Pipeline:
    ┌───────────┐   ┌──────────┐   ┌──────────┐   ┌────────────┐   ┌────────────┐
    │ extension │──▶│   size   │──▶│  UTF-8   │──▶│ csv.reader │──▶│ ImportRow  │
    │  (.csv)   │   │ (≤ 5 MB) │   │ (+ BOM)  │   │ + headers  │   │  list      │
    └───────────┘   └──────────┘   └──────────┘   └────────────┘   └────────────┘

Header spelling:
    Exports from different tools label the same column differently:
    "ID Rośliny", "ID_Rośliny" and "ID_Rosliny" all mean the plant id.
    normalize_header() folds diacritics, spaces and case so every variant
    maps to one canonical key.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Dict, List, Optional

from plant_tracker.config import settings
from plant_tracker.exceptions import CsvParseError, ValidationError
from plant_tracker.schemas.imports import ImportRow

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".csv"}

# ── Canonical Column Keys ─────────────────────────────────────────────────
PLANT_ID = "ID_Rosliny"
SPECIES = "Roslina"
FLOOR = "Pietro"
MAIN_ZONE = "Strefa_glowna"
SUB_ZONE = "Lokalizacja_szczegolowa"
AREA_TYPE = "Rodzaj_donicy"
PRECISE_SPOT = "Lokalizacja_precyzyjna"

CANONICAL_HEADERS = (PLANT_ID, SPECIES, FLOOR, MAIN_ZONE, SUB_ZONE, AREA_TYPE, PRECISE_SPOT)
REQUIRED_HEADERS = (PLANT_ID, SPECIES)

_DIACRITICS = str.maketrans("ąćęłńóśźżĄĆĘŁŃÓŚŹŻ", "acelnoszzACELNOSZZ")
_LOOKUP = {key.lower(): key for key in CANONICAL_HEADERS}


def normalize_header(header: str) -> str:
    """
    Map a column header to its canonical key.

    Examples:
        "ID Rośliny"      → "ID_Rosliny"
        "Strefa główna"   → "Strefa_glowna"
        " piętro "        → "Pietro"
        "Comment"         → "Comment"   (unknown headers pass through trimmed)
    """
    stripped = header.strip().lstrip("\ufeff").strip()
    folded = "_".join(stripped.translate(_DIACRITICS).split()).lower()
    return _LOOKUP.get(folded, stripped)


class CsvService:
    """
    Upload validation and CSV parsing.

    Diagnostics:
        Malformed rows are not skipped silently. Every problem is collected
        as {"row": n, "code": ..., "message": ...} and the whole upload is
        rejected with CsvParseError, so a half-read spreadsheet never reaches
        the database.
    """

    def __init__(self, max_size: Optional[int] = None):
        """
        Args:
            max_size: Override the configured MAX_CSV_SIZE (used in tests).
        """
        self.max_size = max_size or settings.max_csv_size

    def validate_extension(self, filename: Optional[str]) -> str:
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=f"File type '{ext or 'none'}' is not supported. Please upload a .csv file.",
                field="csvFile",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject empty uploads and uploads above the size limit.

        Content-Length is checked as well as the actual size; either one
        exceeding the limit is enough to reject.
        """
        max_mb = self.max_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="The uploaded file is empty", field="csvFile")

        if content_length and content_length > self.max_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="csvFile",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="csvFile",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def decode(self, content: bytes) -> str:
        """Decode UTF-8 content; a leading byte order mark is dropped."""
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValidationError(
                message="The CSV file must be UTF-8 encoded",
                field="csvFile",
                context={"position": e.start},
            )

    def read_rows(self, text: str) -> List[ImportRow]:
        """
        Parse CSV text (header row first) into ImportRows.

        Raises:
            ValidationError: No header row, or a required column is missing
            CsvParseError: Row field counts do not match the header, or the
                           csv module rejected the input (e.g. a stray quote)
        """
        reader = csv.reader(io.StringIO(text, newline=""), strict=True)
        diagnostics: List[Dict] = []
        rows: List[ImportRow] = []
        headers: Optional[List[str]] = None
        row_number = 0

        try:
            for record in reader:
                if not any(cell.strip() for cell in record):
                    continue

                if headers is None:
                    headers = [normalize_header(cell) for cell in record]
                    missing = [key for key in REQUIRED_HEADERS if key not in headers]
                    if missing:
                        raise ValidationError(
                            message=f"Missing required columns: {', '.join(missing)}",
                            field="csvFile",
                            context={"missing_columns": missing, "headers": headers},
                        )
                    continue

                row_number += 1
                if len(record) != len(headers):
                    too_many = len(record) > len(headers)
                    diagnostics.append({
                        "row": row_number,
                        "code": "TooManyFields" if too_many else "TooFewFields",
                        "message": (
                            f"Too {'many' if too_many else 'few'} fields: "
                            f"expected {len(headers)} but parsed {len(record)}"
                        ),
                    })
                    continue

                values = {key: cell.strip() for key, cell in zip(headers, record)}
                rows.append(ImportRow(
                    row_number=row_number,
                    plant_id=values.get(PLANT_ID, ""),
                    species=values.get(SPECIES, ""),
                    floor=values.get(FLOOR, ""),
                    main_zone=values.get(MAIN_ZONE, ""),
                    sub_zone=values.get(SUB_ZONE, ""),
                    area_type=values.get(AREA_TYPE, ""),
                    precise_spot=values.get(PRECISE_SPOT, ""),
                ))
        except csv.Error as e:
            diagnostics.append({
                "row": row_number + 1,
                "code": "InvalidFormat",
                "message": str(e),
            })

        if diagnostics:
            logger.warning("CSV rejected with %d parse errors", len(diagnostics))
            raise CsvParseError(diagnostics)

        if headers is None:
            raise ValidationError(message="The CSV file has no header row", field="csvFile")

        return rows

    def parse(
        self,
        filename: Optional[str],
        content: bytes,
        content_length: Optional[int] = None,
    ) -> List[ImportRow]:
        """Validate an upload and return its rows."""
        self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        rows = self.read_rows(self.decode(content))
        logger.info("CSV parsed: %s (%d rows)", filename, len(rows))
        return rows


# ── Singleton Instance ────────────────────────────────────────────────────
csv_service = CsvService()
