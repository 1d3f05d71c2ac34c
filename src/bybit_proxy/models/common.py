"""Common data models.

This module contains base models and common response models
used throughout the application.
"""

from pydantic import BaseModel as PydanticBaseModel, Field, ConfigDict


class BaseModel(PydanticBaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Allow population by field name and alias
        populate_by_name=True,
    )


class FrozenModel(BaseModel):
    """Immutable value model, safe to share across concurrent requests."""

    model_config = ConfigDict(frozen=True)


class HealthResponse(BaseModel):
    """Health check response model."""

    ok: bool = Field(default=True, description="Liveness indicator")
    status: str = Field(default="healthy", description="Health status")
    version: str = Field(..., description="Application version")


class ErrorResponse(BaseModel):
    """Error body returned for every failure the proxy itself produces."""

    error: str = Field(..., description="Error message")
