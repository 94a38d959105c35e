"""SQLite-backed durable cache store.

Persists one JSON-serialized :class:`~src.models.cache.CacheEntry` per
source key to a local SQLite database.  Uses ``aiosqlite`` for async I/O.

Each ``put`` is a single ``INSERT ... ON CONFLICT DO UPDATE`` statement,
which gives the per-key atomic last-writer-wins semantics the
change-aware cache relies on when an on-demand request races a
scheduled tick.  The advisory TTL is stored as an absolute ``expires_at``
and applied lazily on read; expired rows are left in place and simply
overwritten by the next poll.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path

import aiosqlite
import structlog
from pydantic import ValidationError

from src.interfaces.cache_store import ICacheStore
from src.models.cache import CacheEntry
from src.utils.errors import StoreError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/cache.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS cache_entries (
    cache_key   TEXT PRIMARY KEY,
    entry_json  TEXT NOT NULL,
    expires_at  REAL,
    updated_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO cache_entries (cache_key, entry_json, expires_at)
VALUES (?, ?, ?)
ON CONFLICT(cache_key)
DO UPDATE SET entry_json = excluded.entry_json,
              expires_at = excluded.expires_at,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT entry_json, expires_at FROM cache_entries WHERE cache_key = ?;"


class SQLiteCacheStore(ICacheStore):
    """SQLite-backed entry persistence."""

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = Path(db_path)
        self._clock = clock

    async def initialize(self) -> None:
        """Create the entries table if it doesn't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_CREATE_TABLE_SQL)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Could not initialize cache database: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("cache_db_initialized", path=str(self._db_path))

    async def get(self, key: str) -> CacheEntry | None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_SELECT_SQL, (key,))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Cache read failed for '{key}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if row is None:
            return None
        entry_json, expires_at = row
        if expires_at is not None and expires_at <= self._clock():
            logger.debug("cache_store_expired", key=key)
            return None
        try:
            return CacheEntry.model_validate_json(entry_json)
        except ValidationError as exc:
            raise StoreError(
                message=f"Stored entry for '{key}' is corrupt: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def put(self, key: str, entry: CacheEntry, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_UPSERT_SQL, (key, entry.model_dump_json(), expires_at))
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(
                message=f"Cache write failed for '{key}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("cache_store_put", key=key, ttl=ttl)

    def get_provider_name(self) -> str:
        return "sqlite"
