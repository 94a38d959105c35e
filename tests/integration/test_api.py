"""Integration tests for FastAPI API endpoints using TestClient."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware, configure_cors
from src.api.routes import router as api_router
from src.models.cache import CacheEntry
from src.providers.cache_store.memory_store import MemoryCacheStore
from src.services.change_aware_cache import ChangeAwareCache
from src.services.equality import PlaybackEqualityPolicy, ShelfEqualityPolicy
from src.utils.errors import FetchError
from tests.conftest import CountingStore, FakeClock, StubAdapter, make_shelf, make_track


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _create_test_app(
    shelf_result=None,
    playback_result=None,
    store: MemoryCacheStore | None = None,
    clock: FakeClock | None = None,
) -> tuple[FastAPI, dict[str, StubAdapter]]:
    """Create a FastAPI app wired to stub adapters and an in-memory store."""
    store = store or CountingStore()
    clock = clock or FakeClock()
    adapters = {
        "reading_list": StubAdapter(shelf_result),
        "playback": StubAdapter(playback_result),
    }

    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    configure_cors(app, allowed_origins=["https://site.example"])
    app.include_router(api_router)

    app.state.caches = {
        "reading_list": ChangeAwareCache(
            "reading_list", "books", adapters["reading_list"], ShelfEqualityPolicy(), store,
            freshness_window=3600, min_poll_interval=1800, clock=clock,
        ),
        "playback": ChangeAwareCache(
            "playback", "current_track", adapters["playback"], PlaybackEqualityPolicy(), store,
            freshness_window=30, min_poll_interval=120, store_ttl=300, clock=clock,
        ),
    }
    app.state.cache_backend = store.get_provider_name()
    app.state.scheduler = None
    return app, adapters


# ---------------------------------------------------------------------------
# Query endpoints
# ---------------------------------------------------------------------------


class TestReadingListEndpoint:
    def test_returns_public_shelf_json(self) -> None:
        app, _ = _create_test_app(shelf_result=make_shelf())
        client = TestClient(app)

        resp = client.get("/api/v1/reading-list")

        assert resp.status_code == 200
        body = resp.json()
        assert body["current"]["title"] == "Dune"
        assert body["previous"] is None
        assert "kind" not in body

    def test_second_request_is_served_from_cache(self) -> None:
        app, adapters = _create_test_app(shelf_result=make_shelf())
        client = TestClient(app)

        client.get("/api/v1/reading-list")
        client.get("/api/v1/reading-list")

        assert adapters["reading_list"].calls == 1

    def test_empty_shelf_is_json_null(self) -> None:
        app, _ = _create_test_app(shelf_result=None)
        client = TestClient(app)

        resp = client.get("/api/v1/reading-list")

        assert resp.status_code == 200
        assert resp.json() is None

    def test_failure_with_nothing_cached_is_500(self) -> None:
        app, _ = _create_test_app(
            shelf_result=FetchError("Goodreads RSS returned 503", provider_name="goodreads")
        )
        client = TestClient(app)

        resp = client.get("/api/v1/reading-list")

        assert resp.status_code == 500
        assert resp.json() == {
            "error": "Failed to fetch goodreads data",
            "message": "Goodreads RSS returned 503",
        }

    def test_failure_with_stale_entry_still_serves(self) -> None:
        store = CountingStore()
        clock = FakeClock()
        stale = CacheEntry(record=make_shelf(), observed_at=clock() - 86400, last_poll_at=clock() - 86400)
        asyncio.run(store.put("books", stale))
        app, _ = _create_test_app(
            shelf_result=FetchError("timeout", provider_name="goodreads"),
            store=store,
            clock=clock,
        )
        client = TestClient(app)

        resp = client.get("/api/v1/reading-list")

        assert resp.status_code == 200
        assert resp.json()["current"]["title"] == "Dune"


class TestNowPlayingEndpoint:
    def test_returns_camel_case_record(self) -> None:
        app, _ = _create_test_app(playback_result=make_track(is_playing=False))
        client = TestClient(app)

        resp = client.get("/api/v1/now-playing")

        assert resp.status_code == 200
        body = resp.json()
        assert body["trackId"] == "T1"
        assert body["isPlaying"] is False
        assert body["type"] == "track"

    def test_unconfigured_source_is_404(self) -> None:
        app, _ = _create_test_app()
        del app.state.caches["playback"]
        client = TestClient(app)

        assert client.get("/api/v1/now-playing").status_code == 404

    def test_cors_header_for_allowed_origin(self) -> None:
        app, _ = _create_test_app(playback_result=make_track())
        client = TestClient(app)

        resp = client.get("/api/v1/now-playing", headers={"Origin": "https://site.example"})

        assert resp.headers["access-control-allow-origin"] == "https://site.example"


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    def test_reports_sources_and_counters(self) -> None:
        app, _ = _create_test_app(shelf_result=make_shelf())
        client = TestClient(app)
        client.get("/api/v1/reading-list")

        resp = client.get("/api/v1/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["cache_backend"] == "memory"
        assert body["scheduler_running"] is False
        assert body["sources"]["reading_list"]["stats"]["writes"] == 1
        assert body["sources"]["playback"]["store_ttl_seconds"] == 300

    def test_no_sources_is_degraded(self) -> None:
        app, _ = _create_test_app()
        app.state.caches = {}
        client = TestClient(app)

        assert client.get("/api/v1/health").json()["status"] == "degraded"

    def test_reports_running_scheduler(self) -> None:
        app, _ = _create_test_app()
        scheduler = MagicMock()
        scheduler.running = True
        app.state.scheduler = scheduler
        client = TestClient(app)

        assert client.get("/api/v1/health").json()["scheduler_running"] is True
