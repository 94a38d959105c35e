"""Shared pytest fixtures for the nowfeed test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.interfaces.cache_store import ICacheStore
from src.interfaces.source_adapter import ISourceAdapter
from src.models.cache import CacheEntry
from src.models.records import Book, PlaybackRecord, Record, ShelfRecord
from src.providers.cache_store.memory_store import MemoryCacheStore
from src.utils.errors import StoreError

# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def make_shelf(
    title: str = "Dune",
    author: str = "Herbert",
    cover: str = "https://img.example/dune.jpg",
    link: str = "https://www.goodreads.com/review/show/1",
    previous: Book | None = None,
) -> ShelfRecord:
    return ShelfRecord(
        current=Book(title=title, author=author, cover=cover, link=link),
        previous=previous,
    )


def make_track(
    track_id: str = "T1",
    is_playing: bool = True,
    title: str = "Windowlicker",
    album_art: str = "https://img.example/t1.jpg",
) -> PlaybackRecord:
    return PlaybackRecord(
        track_id=track_id,
        is_playing=is_playing,
        title=title,
        artist="Aphex Twin",
        album="Windowlicker",
        album_art=album_art,
        song_url=f"https://open.spotify.com/track/{track_id}",
    )


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubAdapter(ISourceAdapter):
    """Returns ``result`` on every call, or raises it if it is an exception."""

    def __init__(self, result: Record | BaseException | None = None) -> None:
        self.result = result
        self.calls = 0

    async def fetch_latest(self) -> Record | None:
        self.calls += 1
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result

    def get_provider_name(self) -> str:
        return "stub"


class CountingStore(MemoryCacheStore):
    """Memory store that records every put."""

    def __init__(self) -> None:
        super().__init__()
        self.puts: list[tuple[str, CacheEntry, int | None]] = []

    async def put(self, key: str, entry: CacheEntry, ttl: int | None = None) -> None:
        self.puts.append((key, entry, ttl))
        await super().put(key, entry, ttl)

    @property
    def writes(self) -> int:
        return len(self.puts)


class BrokenStore(ICacheStore):
    """Store whose reads and/or writes fail with StoreError."""

    def __init__(
        self,
        entry: CacheEntry | None = None,
        fail_get: bool = False,
        fail_put: bool = True,
    ) -> None:
        self.entry = entry
        self.fail_get = fail_get
        self.fail_put = fail_put
        self.put_attempts = 0

    async def get(self, key: str) -> CacheEntry | None:
        if self.fail_get:
            raise StoreError("backend down", provider_name="broken")
        return self.entry

    async def put(self, key: str, entry: CacheEntry, ttl: int | None = None) -> None:
        self.put_attempts += 1
        if self.fail_put:
            raise StoreError("quota exceeded", provider_name="broken")
        self.entry = entry


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()
