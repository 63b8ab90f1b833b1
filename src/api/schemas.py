"""Pydantic v2 request/response schemas for the catalog search API.

Search responses are the domain :class:`~src.models.discovery.SearchResponse`
serialised by alias, so only the envelope types live here.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any] = Field(default_factory=dict)
    plugin_snapshot_version: int = 0
    cache_sync_errors: int = 0


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
