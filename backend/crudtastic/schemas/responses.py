"""
Crudtastic: Pydantic Response Schemas
=====================================

What:  Shapes of the responses that do not come from a table: errors,
       health checks and the startup table counts.
Why:   Table records are dynamic and rendered as plain JSON objects, but
       the fixed envelopes are documented in OpenAPI through these models.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every error response.

    Example:
        {
            "error": "validation_error",
            "message": "Unknown column(s) for 'books': colour",
            "details": {"field": "colour", "table": "books"},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    traceback: Optional[str] = Field(
        default=None,
        description="Stack trace, only when STACK_TRACE_500 is enabled",
    )


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    application: str = Field(description="Configured application name")
    database: str = Field(description="Database connectivity: connected, disconnected")
    resources: Dict[str, str] = Field(
        default_factory=dict,
        description="Mounted tables mapped to their base path",
    )
    uptime_seconds: float = Field(description="Seconds since service started")
