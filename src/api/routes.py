"""FastAPI API routes for nowfeed.

Provides the two read-only query endpoints consumed by frontends and a
health check.  Caches are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── ENDPOINT MAP ──────────────────────────────────────────────────────
#
#   /api/v1/reading-list   GET   Current shelf snapshot, or null
#   /api/v1/now-playing    GET   Current / last playback item, or null
#   /api/v1/health         GET   Status plus per-source write counters
#
# The query endpoints take no parameters.  A record is returned as its
# public JSON; "nothing to report" is a literal JSON ``null``; an
# unrecoverable fetch failure becomes a 500 ``{error, message}`` body via
# ErrorHandlingMiddleware.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from src.api.schemas import ErrorResponse, HealthResponse, SourceStatus
from src.services.change_aware_cache import ChangeAwareCache
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


def _get_caches(request: Request) -> dict[str, ChangeAwareCache]:
    return getattr(request.app.state, "caches", {})


CachesDep = Annotated[dict[str, ChangeAwareCache], Depends(_get_caches)]


async def _serve(source: str, caches: dict[str, ChangeAwareCache]) -> JSONResponse:
    cache = caches.get(source)
    if cache is None:
        raise HTTPException(status_code=404, detail=f"Source '{source}' is not configured")
    record = await cache.handle_request()
    return JSONResponse(content=record.to_public() if record is not None else None)


@router.get(
    "/reading-list",
    summary="Book currently being read",
    responses={500: {"model": ErrorResponse}},
)
async def get_reading_list(caches: CachesDep) -> JSONResponse:
    """Return ``{"current": {...}, "previous": {...}}`` or ``null``."""
    return await _serve("reading_list", caches)


@router.get(
    "/now-playing",
    summary="Track or episode currently (or last) playing",
    responses={500: {"model": ErrorResponse}},
)
async def get_now_playing(caches: CachesDep) -> JSONResponse:
    """Return the playback record (``isPlaying`` false when recent) or ``null``."""
    return await _serve("playback", caches)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request, caches: CachesDep) -> HealthResponse:
    """Return application health and per-source cache counters."""
    scheduler = getattr(request.app.state, "scheduler", None)
    scheduler_running = bool(scheduler is not None and scheduler.running)

    sources = {name: SourceStatus(**cache.describe()) for name, cache in caches.items()}
    status = "healthy" if sources else "degraded"

    return HealthResponse(
        status=status,
        version=_VERSION,
        cache_backend=getattr(request.app.state, "cache_backend", "unknown"),
        scheduler_running=scheduler_running,
        sources=sources,
    )
