"""In-memory cache store using cachetools.TLRUCache.

Simple, fast store suitable for development, tests and single-process
deployments that can afford to lose the cache on restart.  Unlike a plain
``TTLCache``, ``TLRUCache`` honours the per-entry ``ttl`` passed to
:meth:`put`, so the playback entry can expire while the reading-list
entry lives forever.

Entries are kept as serialized JSON so this store round-trips exactly
like the durable SQLite backend does.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable

import structlog
from cachetools import TLRUCache
from pydantic import ValidationError

from src.interfaces.cache_store import ICacheStore
from src.models.cache import CacheEntry
from src.utils.errors import StoreError

logger = structlog.get_logger(logger_name=__name__)


def _time_to_use(_key: str, value: tuple[str, int | None], now: float) -> float:
    """Expiry timestamp for a ``(payload, ttl)`` pair; no ttl never expires."""
    _, ttl = value
    if ttl is None:
        return math.inf
    return now + ttl


class MemoryCacheStore(ICacheStore):
    """In-memory store backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of keys before the least-recently-used one is
        evicted.  Two sources need two keys; the default leaves headroom.
    timer:
        Clock used for expiry; injected in tests.
    """

    def __init__(
        self, max_size: int = 64, timer: Callable[[], float] = time.monotonic
    ) -> None:
        self._cache: TLRUCache[str, tuple[str, int | None]] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    async def get(self, key: str) -> CacheEntry | None:
        item = self._cache.get(key)
        if item is None:
            logger.debug("cache_store_miss", key=key)
            return None
        payload, _ = item
        try:
            entry = CacheEntry.model_validate_json(payload)
        except ValidationError as exc:
            raise StoreError(
                message=f"Stored entry for '{key}' is corrupt: {exc}",
                provider_name="memory",
            ) from exc
        logger.debug("cache_store_hit", key=key)
        return entry

    async def put(self, key: str, entry: CacheEntry, ttl: int | None = None) -> None:
        self._cache[key] = (entry.model_dump_json(), ttl)
        logger.debug("cache_store_put", key=key, ttl=ttl)

    def get_provider_name(self) -> str:
        return "memory"
