"""Change-aware polling cache: fetch -> compare -> conditional write -> respond.

One instance serves one source.  It is called from two entry points:

- :meth:`ChangeAwareCache.handle_request` -- a client is waiting.  Fresh
  entries are served without touching the upstream; stale ones trigger a
  fetch, and a failed fetch is masked by serving the stale entry.
- :meth:`ChangeAwareCache.handle_scheduled_tick` -- a timer fired.  The
  tick is self-throttled to ``min_poll_interval`` and never raises.

Both go through :meth:`ChangeAwareCache._poll`, parameterized by
:class:`InvocationKind`, so the two paths share one set of write rules:

    no entry yet                    -> write (INITIALIZED)
    identity changed                -> write (CHANGED)
    None after a good record (blip) -> keep the record; on-demand touches
                                       last_poll_at, scheduled writes nothing
    unchanged                       -> on-demand touches only if the
                                       touch_on_unchanged knob is set,
                                       scheduled never writes
    fetch failed                    -> never writes

The store is injected and holds a single key per source; there is no
locking.  A request racing a tick costs at most one duplicate write.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import asdict
from typing import Any

import structlog

from src.interfaces.cache_store import ICacheStore
from src.interfaces.equality_policy import IEqualityPolicy
from src.interfaces.source_adapter import ISourceAdapter
from src.models.cache import (
    CacheEntry,
    CacheStats,
    FetchOutcome,
    InvocationKind,
    PollAction,
    PollResult,
    TickOutcome,
)
from src.models.records import Record
from src.utils.errors import FetchError, StoreError
from src.utils.logging import STORE_WRITE_EVENT, get_logger, source_context


class ChangeAwareCache:
    """Serve one source's latest record while writing the store rarely.

    Parameters
    ----------
    name:
        Source name used in logs and the health endpoint.
    cache_key:
        The single store key this source owns.
    adapter:
        Upstream source adapter.
    policy:
        Equality policy deciding whether a fetch is a material change.
    store:
        Cache store shared by both entry points.
    freshness_window:
        Seconds an entry may be served on demand without refetching.
    min_poll_interval:
        Minimum seconds between scheduled polls.
    store_ttl:
        Advisory expiry passed to every ``put``; ``None`` for no expiry.
    touch_on_unchanged:
        If set, an on-demand poll that finds no material change writes a
        ``last_poll_at``-only update to extend freshness.  Costs one write
        per freshness window; off by default.
    clock:
        Wall-clock source (epoch seconds); injected in tests.
    """

    def __init__(
        self,
        name: str,
        cache_key: str,
        adapter: ISourceAdapter,
        policy: IEqualityPolicy,
        store: ICacheStore,
        *,
        freshness_window: float,
        min_poll_interval: float,
        store_ttl: int | None = None,
        touch_on_unchanged: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._name = name
        self._cache_key = cache_key
        self._adapter = adapter
        self._policy = policy
        self._store = store
        self._freshness_window = freshness_window
        self._min_poll_interval = min_poll_interval
        self._store_ttl = store_ttl
        self._touch_on_unchanged = touch_on_unchanged
        self._clock = clock
        # In-process memory of the last successful poll.  Needed because an
        # unchanged scheduled poll writes nothing, so the stored
        # last_poll_at alone cannot throttle the next tick.
        self._last_successful_poll: float | None = None
        self.stats = CacheStats()
        self._logger: structlog.BoundLogger = get_logger(__name__).bind(
            source=name, cache_key=cache_key
        )

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # On-demand path
    # ------------------------------------------------------------------

    async def handle_request(self) -> Record | None:
        """Return the source's current record for a waiting client.

        Raises
        ------
        FetchError
            Only when the upstream fetch fails *and* nothing is cached.
        """
        now = self._clock()
        entry = await self._read_entry_for_request()

        if entry is not None:
            age = now - self._fresh_since(entry)
            if age < self._freshness_window:
                self._logger.debug("cache_fresh_hit", age_seconds=round(age, 3))
                return entry.record

        result = await self._poll(InvocationKind.ON_DEMAND, entry, now)
        if result.error is not None:
            if entry is None:
                raise result.error
            self.stats.stale_served += 1
            self._logger.warning(
                "stale_served",
                age_seconds=round(entry.age(now), 3),
                error=str(result.error),
            )
            return entry.record
        return result.record

    async def _read_entry_for_request(self) -> CacheEntry | None:
        # An unreadable store must not take the endpoint down while the
        # upstream still answers; treat it as a cold cache.
        try:
            return await self._store.get(self._cache_key)
        except StoreError as exc:
            self._logger.error("cache_read_failed", error=str(exc))
            return None

    # ------------------------------------------------------------------
    # Scheduled path
    # ------------------------------------------------------------------

    async def handle_scheduled_tick(self) -> TickOutcome:
        """Run one self-throttled background poll.  Never raises."""
        try:
            return await self._scheduled_tick()
        except Exception as exc:  # noqa: BLE001 - a tick must not fault the scheduler
            self._logger.exception("scheduled_tick_failed", error=str(exc))
            return TickOutcome.FAILED

    async def _scheduled_tick(self) -> TickOutcome:
        now = self._clock()
        entry = await self._store.get(self._cache_key)

        last_poll = self._last_poll_time(entry)
        if last_poll is not None and now - last_poll < self._min_poll_interval:
            self.stats.throttled_ticks += 1
            self._logger.debug(
                "scheduled_tick_skipped",
                since_last_poll_seconds=round(now - last_poll, 3),
                min_poll_interval_seconds=self._min_poll_interval,
            )
            return TickOutcome.THROTTLED

        result = await self._poll(InvocationKind.SCHEDULED, entry, now)
        if result.error is not None:
            # Nothing written and the marker left alone: the next tick retries.
            return TickOutcome.FAILED
        if result.write_failed:
            return TickOutcome.FAILED
        if result.wrote:
            return TickOutcome.WRITTEN
        return TickOutcome.SKIPPED

    def _fresh_since(self, entry: CacheEntry) -> float:
        # An unchanged poll writes nothing, so the stored timestamps can lag
        # the last poll that confirmed the stored record.
        if self._last_successful_poll is None:
            return entry.fresh_since
        return max(entry.fresh_since, self._last_successful_poll)

    def _last_poll_time(self, entry: CacheEntry | None) -> float | None:
        times = [entry.last_poll_at] if entry is not None else []
        if self._last_successful_poll is not None:
            times.append(self._last_successful_poll)
        return max(times) if times else None

    # ------------------------------------------------------------------
    # Shared fetch -> compare -> conditional write
    # ------------------------------------------------------------------

    async def _poll(
        self, kind: InvocationKind, entry: CacheEntry | None, now: float
    ) -> PollResult:
        outcome = await self._fetch()
        if not outcome.ok:
            return PollResult(
                record=entry.record if entry is not None else None,
                action=PollAction.FAILED,
                error=outcome.error,
            )

        fresh = outcome.record
        stored = entry.record if entry is not None else None

        if entry is None:
            return await self._write(
                CacheEntry(record=fresh, observed_at=now, last_poll_at=now),
                fresh,
                PollAction.INITIALIZED,
                kind,
                now,
            )

        if fresh is None and stored is not None:
            # Upstreams return empty payloads transiently; never erase a
            # known-good record with one.
            if kind is InvocationKind.ON_DEMAND:
                return await self._write(
                    entry.touched(now), stored, PollAction.TOUCHED, kind, now
                )
            self._mark_polled(now)
            self._logger.info("empty_response_retained", identity=self._identity(stored))
            return PollResult(record=stored, action=PollAction.RETAINED)

        if not self._policy.equal(fresh, stored):
            changed = CacheEntry(
                record=fresh,
                observed_at=max(now, entry.observed_at),
                last_poll_at=max(now, entry.last_poll_at),
            )
            return await self._write(changed, fresh, PollAction.CHANGED, kind, now, previous=stored)

        if kind is InvocationKind.ON_DEMAND and self._touch_on_unchanged:
            return await self._write(
                entry.touched(now, fresh), fresh, PollAction.TOUCHED, kind, now
            )

        self._mark_polled(now)
        self._logger.debug(
            "unchanged_write_skipped",
            invocation=kind.value,
            identity=self._identity(fresh),
        )
        return PollResult(record=fresh, action=PollAction.UNCHANGED)

    async def _fetch(self) -> FetchOutcome:
        self.stats.fetches += 1
        try:
            with source_context(self._name, self._cache_key):
                record = await self._adapter.fetch_latest()
        except FetchError as exc:
            self.stats.fetch_failures += 1
            self._logger.warning(
                "fetch_failed",
                provider=exc.provider_name,
                error_type=type(exc).__name__,
                error=exc.message,
            )
            return FetchOutcome.failure(exc)
        except Exception as exc:  # noqa: BLE001 - adapter bugs count as failed fetches
            self.stats.fetch_failures += 1
            self._logger.exception("fetch_failed_unexpectedly", error=str(exc))
            return FetchOutcome.failure(
                FetchError(
                    message=f"Unexpected adapter failure: {exc}",
                    provider_name=self._adapter.get_provider_name(),
                )
            )
        return FetchOutcome.success(record)

    async def _write(
        self,
        entry: CacheEntry,
        returned: Record | None,
        action: PollAction,
        kind: InvocationKind,
        now: float,
        previous: Record | None = None,
    ) -> PollResult:
        """Single atomic put; a failed write is logged, never raised."""
        try:
            await self._store.put(self._cache_key, entry, ttl=self._store_ttl)
        except StoreError as exc:
            self.stats.write_failures += 1
            self._logger.error(
                "cache_write_failed",
                reason=action.value,
                invocation=kind.value,
                error=str(exc),
            )
            return PollResult(record=returned, action=action, write_failed=True)

        self.stats.writes += 1
        self._mark_polled(now)
        self._logger.info(
            STORE_WRITE_EVENT,
            reason=action.value,
            invocation=kind.value,
            old_identity=self._identity(previous),
            new_identity=self._identity(entry.record),
            ttl=self._store_ttl,
        )
        return PollResult(record=returned, action=action, wrote=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _mark_polled(self, now: float) -> None:
        if self._last_successful_poll is None or now > self._last_successful_poll:
            self._last_successful_poll = now

    def _identity(self, record: Record | None) -> list[Any] | None:
        if record is None:
            return None
        return list(self._policy.identity(record))

    def describe(self) -> dict[str, Any]:
        """Static policy plus live counters, for the health endpoint."""
        return {
            "cache_key": self._cache_key,
            "freshness_window_seconds": self._freshness_window,
            "min_poll_interval_seconds": self._min_poll_interval,
            "store_ttl_seconds": self._store_ttl,
            "touch_on_unchanged": self._touch_on_unchanged,
            "stats": asdict(self.stats),
        }
