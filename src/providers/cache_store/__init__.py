"""Cache store providers.

MemoryCacheStore is a dict-based store: fast but not shared across
processes and lost on restart.  SQLiteCacheStore is the durable backend
whose writes the change-aware cache works hard to avoid.
"""

from src.providers.cache_store.memory_store import MemoryCacheStore
from src.providers.cache_store.sqlite_store import SQLiteCacheStore

__all__ = ["MemoryCacheStore", "SQLiteCacheStore"]
