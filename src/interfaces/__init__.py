"""Public interface definitions for nowfeed's external collaborators.

Every upstream source and the cache backend are accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters live in ``src/providers/`` and are wired together in
``src/main.py``, so tests can inject fakes without real network or disk.

CONCRETE PROVIDER MAP:
    Interface         →  Concrete implementations
    ─────────────────────────────────────────────────────────────────
    ISourceAdapter    →  GoodreadsShelfAdapter, SpotifyPlaybackAdapter
    ICacheStore       →  MemoryCacheStore, SQLiteCacheStore
    IEqualityPolicy   →  ShelfEqualityPolicy, PlaybackEqualityPolicy
"""

from src.interfaces.cache_store import ICacheStore
from src.interfaces.equality_policy import IEqualityPolicy
from src.interfaces.source_adapter import ISourceAdapter

__all__ = [
    "ICacheStore",
    "IEqualityPolicy",
    "ISourceAdapter",
]
