"""
StreetPaws Backend — Shared Pydantic Schemas
==============================================

What:  Base model, response envelopes, and error/health models used by every
       resource.
Why:   Every endpoint answers with the same envelope:
           success:  {"success": true, "data": ..., "pagination"?: {...}}
           failure:  {"success": false, "error": ..., "message": ..., "requestId": ...}
       Declaring the envelopes once keeps routes and OpenAPI docs consistent.

JSON field names are camelCase on the wire (contactNumber, cheersCount) while
Python attributes stay snake_case; `ApiModel` does the translation and also
accepts snake_case input.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for all API schemas: camelCase aliases, ORM attribute support."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RequestModel(ApiModel):
    """Base for request bodies: trims strings and rejects unknown fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
    )


# ══════════════════════════════════════════════════════════════════════════
# Envelopes
# ══════════════════════════════════════════════════════════════════════════


class Pagination(ApiModel):
    """
    Offset pagination metadata.

    pages is never below 1, so an empty result still reports page 1 of 1.
    """
    page: int = Field(description="Current page (1-based)")
    pages: int = Field(description="Total number of pages")
    total: int = Field(description="Total number of matching records")
    limit: int = Field(description="Page size")


class DataResponse(ApiModel, Generic[T]):
    success: bool = True
    data: T


class PageResponse(ApiModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: Pagination


class EmptyResponse(ApiModel):
    """Returned by deletes and logout: `data` is an empty object."""
    success: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(ApiModel):
    """
    Standardized error body.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        request_id: Correlation ID for tracing this error in server logs
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(ApiModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    realtime_connections: int = Field(description="Open WebSocket connections")
    uptime_seconds: float = Field(description="Seconds since service started")
