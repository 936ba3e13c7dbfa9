"""
RecipeShare Backend — Shared Response Schemas
==============================================

What:  Pydantic models shared by every router: the uniform error body, a
       plain message response, and the health check payload.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "permission_denied",
            "message": "Only the author can edit this recipe.",
            "details": {"recipe_id": "..."},
            "request_id": "550e8400"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """
    Health check response.

    Mirrors the landing page's connection probe: database reachability,
    how many categories it sees, and how long the round trip took.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    categories: Optional[int] = Field(default=None, description="Number of recipe categories")
    latency_ms: Optional[float] = Field(default=None, description="Database probe round trip")
    uptime_seconds: float = Field(description="Seconds since service started")
