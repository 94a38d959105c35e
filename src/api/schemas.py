"""Pydantic response schemas for the nowfeed API.

The two query endpoints return a record's public JSON (or ``null``)
directly, so only the envelope-style responses are modelled here.
"""

from __future__ import annotations

from pydantic import BaseModel


class SourceStatus(BaseModel):
    """Policy and live counters for one source's cache."""

    cache_key: str
    freshness_window_seconds: float
    min_poll_interval_seconds: float
    store_ttl_seconds: int | None = None
    touch_on_unchanged: bool = False
    stats: dict[str, int]


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    cache_backend: str
    scheduler_running: bool
    sources: dict[str, SourceStatus]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    message: str | None = None
