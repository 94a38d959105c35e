"""Fixed-cadence trigger for the scheduled polling path.

Runs as a background asyncio task inside the API process, playing the role
a platform cron would: every ``tick_interval`` seconds it calls
:meth:`ChangeAwareCache.handle_scheduled_tick` on each registered cache.

# ─── HOW THE CADENCE CONVERGES ──────────────────────────────────────────
#
# The tick interval is a single coarse number for all sources; each source
# wants its own poll interval (30 min for the shelf, 2 min for playback).
# The scheduler does not try to reconcile them.  It just ticks, and each
# cache's self-throttle turns a tick into a no-op until enough time has
# passed since its last successful poll:
#
#   tick ─→ shelf cache    : THROTTLED, THROTTLED, ..., WRITTEN/SKIPPED
#        ─→ playback cache : THROTTLED, SKIPPED, THROTTLED, WRITTEN, ...
#
# A failed poll does not advance the throttle, so the very next tick retries.
# ─────────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence

import structlog

from src.models.cache import TickOutcome
from src.services.change_aware_cache import ChangeAwareCache
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class PollScheduler:
    """Tick every registered cache on a fixed interval until stopped.

    Parameters
    ----------
    caches:
        Caches to tick, in order.  Ticks run sequentially; a slow upstream
        delays the others by at most one fetch.
    tick_interval:
        Seconds between rounds.  Should be no coarser than the smallest
        ``min_poll_interval`` among the caches.
    """

    def __init__(self, caches: Sequence[ChangeAwareCache], tick_interval: float) -> None:
        if tick_interval <= 0:
            raise ValueError("tick_interval must be > 0")
        self._caches = list(caches)
        self._tick_interval = tick_interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> dict[str, TickOutcome]:
        """Tick each cache once and return the per-source outcomes."""
        outcomes: dict[str, TickOutcome] = {}
        for cache in self._caches:
            outcomes[cache.name] = await cache.handle_scheduled_tick()
        _logger.debug("scheduler_round_complete", outcomes={k: v.value for k, v in outcomes.items()})
        return outcomes

    async def _run_forever(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._tick_interval)

    def start(self) -> None:
        """Start the background loop (idempotent).  Needs a running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run_forever(), name="poll-scheduler")
        _logger.info(
            "scheduler_started",
            tick_interval_seconds=self._tick_interval,
            sources=[cache.name for cache in self._caches],
        )

    async def stop(self) -> None:
        """Cancel the loop and wait for it to wind down."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        _logger.info("scheduler_stopped")
