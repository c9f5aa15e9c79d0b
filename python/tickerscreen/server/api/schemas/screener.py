"""API schemas for screener endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error payload returned for rejected or failed requests."""

    error: str = Field(..., description="Error summary")
    detail: Optional[str] = Field(default=None, description="Diagnostic detail")


class HealthResponse(BaseModel):
    """Health check payload."""

    status: str = Field(default="ok", description="Service status")
    timestamp: str = Field(..., description="Current UTC time (ISO 8601)")
    provider: str = Field(..., description="Quote provider name")
    provider_configured: bool = Field(
        ..., description="Whether provider credentials are present"
    )
