"""nowfeed FastAPI application entry point.

Wires together source adapters, equality policies, the cache store, the
change-aware caches, and the poll scheduler via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and
configures structured logging.

Nothing here is a process-wide singleton the core depends on: every
cache receives its store, adapter and policy through its constructor,
and routes find the caches on ``app.state``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import SourcePolicy, build_source_policies, load_config
from src.config.settings import Settings
from src.interfaces.cache_store import ICacheStore
from src.interfaces.equality_policy import IEqualityPolicy
from src.interfaces.source_adapter import ISourceAdapter
from src.pipeline.scheduler import PollScheduler
from src.providers.cache_store.memory_store import MemoryCacheStore
from src.providers.cache_store.sqlite_store import SQLiteCacheStore
from src.providers.source.goodreads_provider import GoodreadsShelfAdapter
from src.providers.source.spotify_provider import SpotifyPlaybackAdapter
from src.services.change_aware_cache import ChangeAwareCache
from src.services.equality import PlaybackEqualityPolicy, ShelfEqualityPolicy
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component factories
# ---------------------------------------------------------------------------


def _build_cache_store(app_config: dict) -> ICacheStore:
    """Select the cache store backend named in the ``cache:`` section."""
    cache_config = app_config.get("cache", {})
    backend = cache_config.get("backend", "sqlite")
    if backend == "sqlite":
        return SQLiteCacheStore(db_path=cache_config.get("db_path", "data/cache.db"))
    if backend == "memory":
        return MemoryCacheStore()
    raise ConfigurationError(f"Unknown cache backend: {backend!r}")


def _build_source(
    name: str, app_settings: Settings, http_client: httpx.AsyncClient
) -> tuple[ISourceAdapter, IEqualityPolicy]:
    """Return the adapter and equality policy for one source name."""
    if name == "reading_list":
        adapter: ISourceAdapter = GoodreadsShelfAdapter(
            http_client=http_client,
            user_id=app_settings.goodreads_user_id,
            shelf=app_settings.goodreads_shelf,
        )
        return adapter, ShelfEqualityPolicy()
    if name == "playback":
        adapter = SpotifyPlaybackAdapter(
            http_client=http_client,
            client_id=app_settings.spotify_client_id,
            client_secret=app_settings.spotify_client_secret,
            refresh_token=app_settings.spotify_refresh_token,
        )
        return adapter, PlaybackEqualityPolicy()
    raise ConfigurationError(f"Unknown source: {name!r}")


def _build_caches(
    app_settings: Settings,
    policies: dict[str, SourcePolicy],
    store: ICacheStore,
    http_client: httpx.AsyncClient,
) -> dict[str, ChangeAwareCache]:
    """One change-aware cache per configured source, sharing one store."""
    caches: dict[str, ChangeAwareCache] = {}
    for name in app_settings.get_enabled_sources():
        adapter, policy = _build_source(name, app_settings, http_client)
        source_policy = policies[name]
        caches[name] = ChangeAwareCache(
            name=name,
            cache_key=source_policy.cache_key,
            adapter=adapter,
            policy=policy,
            store=store,
            freshness_window=source_policy.freshness_window_seconds,
            min_poll_interval=source_policy.min_poll_interval_seconds,
            store_ttl=source_policy.store_ttl_seconds,
            touch_on_unchanged=source_policy.touch_on_unchanged,
        )
    return caches


def _build_all(app_settings: Settings, app_config: dict) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    http_client = httpx.AsyncClient(timeout=app_settings.http_timeout_seconds)
    store = _build_cache_store(app_config)
    policies = build_source_policies(app_config)
    caches = _build_caches(app_settings, policies, store, http_client)

    scheduler_config = app_config.get("scheduler", {})
    scheduler: PollScheduler | None = None
    if scheduler_config.get("enabled", True) and caches:
        scheduler = PollScheduler(
            caches=list(caches.values()),
            tick_interval=float(scheduler_config.get("tick_interval_seconds", 60)),
        )

    if not caches:
        _logger.warning(
            "no_sources_configured",
            msg="Set GOODREADS_USER_ID and/or SPOTIFY_* credentials to enable sources.",
        )

    return {
        "http_client": http_client,
        "cache_store": store,
        "cache_backend": store.get_provider_name(),
        "caches": caches,
        "scheduler": scheduler,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise the store and start the scheduler on startup; clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["cache_store"].initialize()

    scheduler: PollScheduler | None = components["scheduler"]
    if scheduler is not None:
        scheduler.start()

    _logger.info(
        "app_startup",
        version="0.1.0",
        environment=settings.app_env,
        cache_backend=components["cache_backend"],
        sources=list(components["caches"]),
    )

    yield

    if scheduler is not None:
        await scheduler.stop()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="Scheduler stopped, HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="nowfeed API",
        version="0.1.0",
        description=(
            "Republishes what is being read and listened to right now, "
            "polled from slow upstream sources through a change-aware cache "
            "that writes its durable store only when something material changes."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
