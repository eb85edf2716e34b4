"""
Parcel Delivery Server — Shared Response Schemas
==================================================

What:  Pydantic models for responses shared by every resource router.
How:   Write endpoints return the document-store operation result in the
       camelCase shape the web client reads (insertedId, matchedCount, ...).
"""

from typing import Optional

from pydantic import BaseModel, Field


class InsertResult(BaseModel):
    """Returned by POST endpoints that create one document."""
    acknowledged: bool = Field(description="Whether the write was acknowledged by the server")
    insertedId: str = Field(description="Hex ObjectId of the new document")


class UpdateResult(BaseModel):
    acknowledged: bool
    matchedCount: int = Field(description="Documents matched by the id")
    modifiedCount: int = Field(description="Documents actually changed")


class DeleteResult(BaseModel):
    acknowledged: bool
    deletedCount: int


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
