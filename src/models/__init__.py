"""nowfeed domain models - re-exports all public model classes.

The models are organized across two submodules by concern:
    - records.py - Normalized source observations (books, playback items)
    - cache.py   - Stored cache entries and polling results
"""

from __future__ import annotations

from src.models.cache import (
    CacheEntry,
    CacheStats,
    FetchOutcome,
    InvocationKind,
    PollAction,
    PollResult,
    TickOutcome,
)
from src.models.records import Book, PlaybackRecord, Record, ShelfRecord

__all__ = [
    "Book",
    "CacheEntry",
    "CacheStats",
    "FetchOutcome",
    "InvocationKind",
    "PlaybackRecord",
    "PollAction",
    "PollResult",
    "Record",
    "ShelfRecord",
    "TickOutcome",
]
