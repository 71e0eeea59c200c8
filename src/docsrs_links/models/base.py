"""
Base models and shared configuration for all model modules.

This module provides the foundation layer with common configurations and the
ErrorResponse model used by the command line JSON output.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Base configuration used by all models to reject unknown fields
strict_config = ConfigDict(extra="forbid")

# Decoded index data is never mutated once built
frozen_config = ConfigDict(extra="forbid", frozen=True)


class ErrorResponse(BaseModel):
    """
    Standard error output format.

    Example:
        ```json
        {
            "error": "path_error",
            "detail": "invalid path 'an hoy': invalid_identifier in segment 'an hoy'",
            "path": "an hoy"
        }
        ```
    """

    error: str = Field(..., description="Error type/category")
    detail: str | None = Field(None, description="Detailed error message")
    path: str | None = Field(None, description="The path that was being looked up")

    model_config = strict_config
