"""Utility modules for nowfeed.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at NowFeedError;
  source adapters raise ``FetchError``/``ParseError`` and cache stores raise
  ``StoreError`` so the caching core can decide between stale-serving and
  surfacing a failure.
- **logging** -- structlog setup (console in development, JSON in
  production), per-poll source context and store-write audit tagging.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    FetchError,
    NowFeedError,
    ParseError,
    StoreError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import (
    configure_logging,
    get_logger,
    source_context,
    tag_store_writes,
)

__all__ = [
    "ConfigurationError",
    "FetchError",
    "NowFeedError",
    "ParseError",
    "StoreError",
    "configure_logging",
    "get_logger",
    "source_context",
    "tag_store_writes",
]
