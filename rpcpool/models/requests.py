"""Pydantic request models for the status service."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DropRequest(BaseModel):
    """Caller-reported failure of an endpoint URL."""

    url: str = Field(..., min_length=1)
