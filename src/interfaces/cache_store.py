"""Abstract base class for the durable cache store.

Defines the contract for the key-value store that holds one
:class:`~src.models.cache.CacheEntry` per source.  The production store
has a hard daily write quota, which is why every ``put`` is a decision
made by the change-aware cache rather than a side effect of reading.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.cache import CacheEntry


class ICacheStore(ABC):
    """Contract for a single-key-per-source entry store.

    Implementations must make ``put`` a single atomic last-writer-wins
    operation per key.  All operations are async to allow for
    network-backed stores without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry stored under *key*, or ``None`` if absent/expired.

        Raises
        ------
        src.utils.errors.StoreError
            If the backend cannot be read or the stored value is corrupt.
        """

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry, ttl: int | None = None) -> None:
        """Store *entry* under *key*, replacing any previous entry.

        Parameters
        ----------
        key:
            The cache key (one per source).
        entry:
            The entry to store.
        ttl:
            Advisory expiry in seconds.  ``None`` means no expiry.  Expiry
            is never relied on for correctness: an expired entry is simply
            recreated by the next poll.

        Raises
        ------
        src.utils.errors.StoreError
            If the write did not happen.
        """

    async def initialize(self) -> None:
        """Prepare the backend (create tables, open files).  Default: no-op."""

    def get_provider_name(self) -> str:
        return type(self).__name__
