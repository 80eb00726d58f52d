"""
Office Plant Tracker Backend — Shared Pydantic Schemas
======================================================

What:  Base model for the JSON contract plus error and health responses.
Why:   The frontend speaks camelCase (locationId, fullPath, importedRecords);
       Python code speaks snake_case. ApiModel bridges the two once.
How:   alias_generator produces camelCase aliases used for serialization;
       populate_by_name lets clients send either spelling.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base class for every request/response model of the API."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "plant with ID 'P404' was not found",
            "details": {"resource": "plant", "resource_id": "P404"},
            "request_id": "1f0c2a9e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(ApiModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
