"""Unit tests for the structlog helpers in src/utils/logging.py."""

from __future__ import annotations

import logging

import pytest
import structlog

from src.models.records import Record
from src.services.change_aware_cache import ChangeAwareCache
from src.services.equality import ShelfEqualityPolicy
from src.utils.logging import (
    STORE_WRITE_EVENT,
    configure_logging,
    source_context,
    tag_store_writes,
)
from tests.conftest import StubAdapter, make_shelf


class _ContextRecordingAdapter(StubAdapter):
    """Remembers the structlog context visible while it was fetching."""

    def __init__(self, result) -> None:
        super().__init__(result)
        self.seen_context: dict = {}

    async def fetch_latest(self) -> Record | None:
        self.seen_context = structlog.contextvars.get_contextvars()
        return await super().fetch_latest()


class TestTagStoreWrites:
    def test_write_events_are_tagged(self) -> None:
        event = tag_store_writes(None, "info", {"event": STORE_WRITE_EVENT, "reason": "changed"})
        assert event["audit"] == "store_write"

    def test_other_events_are_untouched(self) -> None:
        event = tag_store_writes(None, "debug", {"event": "unchanged_write_skipped"})
        assert "audit" not in event


class TestSourceContext:
    def test_binds_and_restores(self) -> None:
        with source_context("playback", "current_track"):
            bound = structlog.contextvars.get_contextvars()
        assert bound == {"source": "playback", "cache_key": "current_track"}
        assert "source" not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio
    async def test_adapter_logs_carry_the_polled_source(self, store, clock) -> None:
        adapter = _ContextRecordingAdapter(make_shelf())
        cache = ChangeAwareCache(
            "reading_list", "books", adapter, ShelfEqualityPolicy(), store,
            freshness_window=3600, min_poll_interval=1800, clock=clock,
        )

        await cache.handle_request()

        assert adapter.seen_context == {"source": "reading_list", "cache_key": "books"}
        assert "source" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    def test_http_client_request_lines_are_capped(self) -> None:
        configure_logging(log_level="DEBUG", json_output=True)
        try:
            assert logging.getLogger("httpx").level == logging.WARNING
            assert logging.getLogger().level == logging.DEBUG
        finally:
            configure_logging()
