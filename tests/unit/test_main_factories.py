"""Unit tests for factory functions in src/main.py.

Covers cache-store selection, per-source adapter/policy wiring, and the
``_build_all`` assembly, without real network calls or credentials.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI

from src.config.loader import build_source_policies
from src.config.settings import Settings
from src.utils.errors import ConfigurationError


def _settings(**overrides) -> Settings:
    """Settings with every credential empty unless overridden."""
    defaults = {
        "goodreads_user_id": "",
        "spotify_client_id": "",
        "spotify_client_secret": "",
        "spotify_refresh_token": "",
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


_ALL_SOURCES = {
    "goodreads_user_id": "42",
    "spotify_client_id": "id",
    "spotify_client_secret": "secret",
    "spotify_refresh_token": "refresh",
}


class TestBuildCacheStore:
    def test_sqlite_backend(self, tmp_path) -> None:
        from src.main import _build_cache_store
        from src.providers.cache_store.sqlite_store import SQLiteCacheStore

        store = _build_cache_store({"cache": {"backend": "sqlite", "db_path": str(tmp_path / "c.db")}})
        assert isinstance(store, SQLiteCacheStore)

    def test_memory_backend(self) -> None:
        from src.main import _build_cache_store
        from src.providers.cache_store.memory_store import MemoryCacheStore

        assert isinstance(_build_cache_store({"cache": {"backend": "memory"}}), MemoryCacheStore)

    def test_unknown_backend(self) -> None:
        from src.main import _build_cache_store

        with pytest.raises(ConfigurationError):
            _build_cache_store({"cache": {"backend": "redis"}})


class TestBuildSource:
    def test_reading_list(self) -> None:
        from src.main import _build_source
        from src.providers.source.goodreads_provider import GoodreadsShelfAdapter
        from src.services.equality import ShelfEqualityPolicy

        adapter, policy = _build_source("reading_list", _settings(**_ALL_SOURCES), MagicMock())
        assert isinstance(adapter, GoodreadsShelfAdapter)
        assert isinstance(policy, ShelfEqualityPolicy)

    def test_playback(self) -> None:
        from src.main import _build_source
        from src.providers.source.spotify_provider import SpotifyPlaybackAdapter
        from src.services.equality import PlaybackEqualityPolicy

        adapter, policy = _build_source("playback", _settings(**_ALL_SOURCES), MagicMock())
        assert isinstance(adapter, SpotifyPlaybackAdapter)
        assert isinstance(policy, PlaybackEqualityPolicy)

    def test_unknown_source(self) -> None:
        from src.main import _build_source

        with pytest.raises(ConfigurationError):
            _build_source("weather", _settings(), MagicMock())


class TestBuildCaches:
    def test_only_configured_sources_get_caches(self) -> None:
        from src.main import _build_caches
        from src.providers.cache_store.memory_store import MemoryCacheStore

        caches = _build_caches(
            _settings(goodreads_user_id="42"),
            build_source_policies({}),
            MemoryCacheStore(),
            MagicMock(),
        )
        assert list(caches) == ["reading_list"]
        assert caches["reading_list"].describe()["cache_key"] == "books"

    def test_policies_flow_into_caches(self) -> None:
        from src.main import _build_caches
        from src.providers.cache_store.memory_store import MemoryCacheStore

        policies = build_source_policies(
            {"sources": {"playback": {"freshness_window_seconds": 10, "touch_on_unchanged": True}}}
        )
        caches = _build_caches(_settings(**_ALL_SOURCES), policies, MemoryCacheStore(), MagicMock())

        info = caches["playback"].describe()
        assert info["freshness_window_seconds"] == 10
        assert info["touch_on_unchanged"] is True
        assert info["store_ttl_seconds"] == 300


class TestBuildAll:
    @pytest.mark.asyncio
    async def test_assembles_components(self) -> None:
        from src.main import _build_all
        from src.pipeline.scheduler import PollScheduler

        components = _build_all(
            _settings(**_ALL_SOURCES),
            {"cache": {"backend": "memory"}, "scheduler": {"enabled": True, "tick_interval_seconds": 5}},
        )
        try:
            assert components["cache_backend"] == "memory"
            assert set(components["caches"]) == {"reading_list", "playback"}
            assert isinstance(components["scheduler"], PollScheduler)
        finally:
            await components["http_client"].aclose()

    @pytest.mark.asyncio
    async def test_scheduler_disabled(self) -> None:
        from src.main import _build_all

        components = _build_all(
            _settings(**_ALL_SOURCES),
            {"cache": {"backend": "memory"}, "scheduler": {"enabled": False}},
        )
        try:
            assert components["scheduler"] is None
        finally:
            await components["http_client"].aclose()

    @pytest.mark.asyncio
    async def test_no_sources_means_no_scheduler(self) -> None:
        from src.main import _build_all

        components = _build_all(_settings(), {"cache": {"backend": "memory"}})
        try:
            assert components["caches"] == {}
            assert components["scheduler"] is None
        finally:
            await components["http_client"].aclose()


class TestCreateApp:
    def test_routes_registered(self) -> None:
        from src.main import create_app

        app = create_app()
        assert isinstance(app, FastAPI)
        paths = set(app.openapi()["paths"])
        assert {"/api/v1/reading-list", "/api/v1/now-playing", "/api/v1/health"} <= paths
