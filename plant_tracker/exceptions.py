"""
Office Plant Tracker Backend — Custom Exception Hierarchy
=========================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and middleware; caught by global handlers.

Exception Hierarchy:
    PlantTrackerError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   └── CsvParseError        → 400 Bad Request (with parser diagnostics)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (duplicate plant id / location)
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests
"""

from typing import Any, Dict, List, Optional


class PlantTrackerError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; returned as `details` for client errors,
                  logged only for server errors
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PlantTrackerError):
    """
    Raised when client input fails validation.

    When:    Missing id/species, unknown location id, bad CSV upload, invalid level.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Location with ID '42' does not exist",
            "details": {"field": "locationId"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class CsvParseError(ValidationError):
    """
    Raised when an uploaded CSV file cannot be parsed into rows.

    What:    Malformed rows (too many / too few fields) or a csv module error.
    HTTP:    400 Bad Request, `details.errors` lists each diagnostic as
             {"row": <line>, "code": "TooManyFields", "message": "..."}
    """

    def __init__(
        self,
        diagnostics: List[Dict[str, Any]],
        message: str = "Error while parsing the CSV file",
    ):
        super().__init__(message=message, field="csvFile", context={"errors": diagnostics})
        self.diagnostics = diagnostics


class NotFoundError(PlantTrackerError):
    """
    Raised when a requested resource does not exist.

    When:    GET/PATCH/DELETE /api/plants/{id} with an unknown id.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(PlantTrackerError):
    """
    Raised when a create would duplicate an existing record.

    When:    POST /api/plants with an id that is already taken, or
             POST /api/locations with a name already used under the same parent.
    HTTP:    409 Conflict

    CSV import never raises this: re-importing a plant id replaces the record.
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PlantTrackerError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. Constraint names,
    SQL and driver messages stay in `context` and are only logged.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(PlantTrackerError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
