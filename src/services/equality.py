"""Equality policies for the two record kinds.

Reading-list identity is the current book's title and author: a new cover
scan or review link is cosmetic.  Playback identity is the item id plus
whether it is actively playing: pause/resume on the same track is itself
a change the widget must show.
"""

from __future__ import annotations

from src.interfaces.equality_policy import IEqualityPolicy
from src.models.records import PlaybackRecord, Record, ShelfRecord


class ShelfEqualityPolicy(IEqualityPolicy):
    """Compare shelf snapshots by ``(current.title, current.author)``."""

    def identity(self, record: Record) -> tuple[str, str]:
        if not isinstance(record, ShelfRecord):
            raise TypeError(f"Expected ShelfRecord, got {type(record).__name__}")
        return record.identity_key()


class PlaybackEqualityPolicy(IEqualityPolicy):
    """Compare playback items by ``(track_id, is_playing)``."""

    def identity(self, record: Record) -> tuple[str, bool]:
        if not isinstance(record, PlaybackRecord):
            raise TypeError(f"Expected PlaybackRecord, got {type(record).__name__}")
        return record.identity_key()
