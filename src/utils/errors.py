"""Custom exception hierarchy for nowfeed.

All application exceptions inherit from :class:`NowFeedError`, which
carries an optional ``provider_name`` so error handlers can identify which
upstream source (e.g. "goodreads", "spotify", "sqlite") caused the failure.

The hierarchy mirrors the three places a poll can go wrong:

    NowFeedError  (base -- catch-all for any nowfeed error)
    +-- FetchError          (network / HTTP / auth failure from a source adapter)
    |   +-- ParseError      (upstream answered, but the payload is malformed)
    +-- StoreError          (cache backend unavailable or corrupt)
    +-- ConfigurationError  (startup / missing config)

``ParseError`` is a ``FetchError``: the caching core only cares
that the fetch did not produce a usable observation, not why.
"""


class NowFeedError(Exception):
    """Base exception for all nowfeed errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[spotify] Token refresh failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Upstream source errors
# ---------------------------------------------------------------------------

class FetchError(NowFeedError):
    """Raised when a source adapter cannot produce an observation.

    Covers transport failures, non-success HTTP statuses and credential
    exchange failures.  The change-aware cache masks this with stale data
    whenever a cached entry exists.
    """

    def __init__(
        self,
        message: str = "Upstream fetch failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ParseError(FetchError):
    """Raised when an upstream payload cannot be parsed (bad XML / JSON)."""

    def __init__(
        self,
        message: str = "Upstream payload is malformed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Cache store errors
# ---------------------------------------------------------------------------

class StoreError(NowFeedError):
    """Raised when the cache store cannot be read from or written to.

    A failed write is never user-visible: callers log it and answer with
    the freshly fetched record instead.
    """

    def __init__(
        self,
        message: str = "Cache store is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(NowFeedError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
