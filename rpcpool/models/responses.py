"""Generic API response envelope and endpoint views for the status service.

All API responses are wrapped in this envelope for consistency:
{ success: bool, data: T | None, error: str | None, meta: dict | None }
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """JSON envelope for all API responses."""

    success: bool
    data: T | None = None
    error: str | None = None
    meta: dict | None = None


class EndpointView(BaseModel):
    """Serialized pool entry; ``latency_ms`` is null while unranked."""

    url: str
    latency_ms: float | None = None
