"""Common pydantic schema utilities."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with shared config."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)


class ErrorResponse(BaseSchema):
    """Error body returned by every failing endpoint."""

    error: str
    message: str
