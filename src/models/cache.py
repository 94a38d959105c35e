"""Cache and polling models for the change-aware cache.

Defines the one thing ever written to the cache store (:class:`CacheEntry`),
the explicit three-state fetch result (:class:`FetchOutcome`), and the small
enums and counters the orchestration in
``src/services/change_aware_cache.py`` reports back to its callers.

Timestamps are epoch seconds (``float``) so entries stay trivially
JSON-serializable across store backends.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict

from src.models.records import Record
from src.utils.errors import FetchError


# ---------------------------------------------------------------------------
# CacheEntry - the stored value
# ---------------------------------------------------------------------------

class CacheEntry(BaseModel):
    """A record (or ``None``) plus the two timestamps that drive polling.

    Attributes
    ----------
    record:
        Last known-good observation.  ``None`` only when the source had
        nothing to report the very first time it was polled.
    observed_at:
        When a successful fetch last produced a *materially different*
        record.  Never moves backwards.
    last_poll_at:
        When a successful poll last confirmed this entry.  May advance
        without ``observed_at`` (timestamp touch), and is what the
        scheduler's self-throttle reads.
    """

    model_config = ConfigDict(frozen=True)

    record: Record | None = None
    observed_at: float
    last_poll_at: float

    @property
    def fresh_since(self) -> float:
        """Time of the most recent poll that confirmed the stored record."""
        return max(self.observed_at, self.last_poll_at)

    def age(self, now: float) -> float:
        return now - self.fresh_since

    def touched(self, now: float, record: Record | None = None) -> CacheEntry:
        """Return a copy with ``last_poll_at`` moved to *now*.

        ``observed_at`` is left alone.  When *record* is given it replaces
        the stored record's display fields (the caller guarantees identity
        is unchanged).
        """
        update: dict[str, object] = {"last_poll_at": max(now, self.last_poll_at)}
        if record is not None:
            update["record"] = record
        return self.model_copy(update=update)


# ---------------------------------------------------------------------------
# FetchOutcome - Success(Record) / Success(None) / Failure(FetchError)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FetchOutcome:
    """Result of one adapter call, with "nothing to report" kept distinct
    from "the fetch failed"."""

    record: Record | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, record: Record | None) -> FetchOutcome:
        return cls(record=record)

    @classmethod
    def failure(cls, error: FetchError) -> FetchOutcome:
        return cls(error=error)


# ---------------------------------------------------------------------------
# Orchestration enums
# ---------------------------------------------------------------------------

class InvocationKind(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Which entry point triggered a poll."""

    ON_DEMAND = "ON_DEMAND"     # A client request is waiting on the answer
    SCHEDULED = "SCHEDULED"     # Timer tick, nobody waiting


class PollAction(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """What a single poll decided to do with the store."""

    INITIALIZED = "INITIALIZED"   # No entry existed; first write
    CHANGED = "CHANGED"           # Identity changed; full write
    TOUCHED = "TOUCHED"           # Unchanged or blip; last_poll_at-only write
    RETAINED = "RETAINED"         # Blip (None after good record); nothing written
    UNCHANGED = "UNCHANGED"       # Same identity; nothing written
    FAILED = "FAILED"             # Fetch failed; nothing written


class TickOutcome(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    """Result of one scheduled tick, for logging and tests."""

    THROTTLED = "THROTTLED"
    WRITTEN = "WRITTEN"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class PollResult:
    """Outcome of the shared fetch -> compare -> conditional-write routine."""

    record: Record | None
    action: PollAction
    wrote: bool = False
    write_failed: bool = False
    error: FetchError | None = None


@dataclass
class CacheStats:
    """Per-source counters, exposed on the health endpoint.

    ``writes`` is the number that matters against the store's daily quota.
    """

    fetches: int = 0
    fetch_failures: int = 0
    writes: int = 0
    write_failures: int = 0
    stale_served: int = 0
    throttled_ticks: int = 0
