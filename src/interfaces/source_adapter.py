"""Abstract base class for upstream source adapters.

Defines the contract for turning one slow, rate-limited upstream (an RSS
shelf feed, a music-player API) into a normalized record.  Adapters are
the only code that talks to the network; the change-aware cache treats
them as an opaque ``fetch_latest()`` capability.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.records import Record


class ISourceAdapter(ABC):
    """Contract for fetching the latest observation from one source.

    Implementations must be idempotent and free of side effects beyond the
    remote call itself (credential refresh included).
    """

    @abstractmethod
    async def fetch_latest(self) -> Record | None:
        """Fetch and normalize the source's current observation.

        Returns
        -------
        Record or None
            The normalized record, or ``None`` when the source is reachable
            but currently has nothing to report.

        Raises
        ------
        src.utils.errors.FetchError
            On network, HTTP or credential failure.
        src.utils.errors.ParseError
            When the upstream payload is malformed.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for logs and error messages."""
