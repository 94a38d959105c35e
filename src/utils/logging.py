"""Structured logging for nowfeed, built on structlog.

One processor chain feeds either a console renderer (development) or a
JSON renderer (production); ``main.py`` picks one from ``APP_ENV``.  Two
pieces are specific to this service:

- :func:`source_context` binds ``source`` and ``cache_key`` into
  ``structlog.contextvars`` for the duration of a poll, so log lines from
  the adapters (which know nothing about caching) carry the source they
  were polled for.
- :func:`tag_store_writes` marks every ``cache_write`` event with
  ``audit="store_write"``.  The durable store has a daily write quota;
  filtering JSON logs on that field is how write volume is counted.

Standard-library logging (httpx, uvicorn) is routed through the same
formatter.  httpx request lines are capped at WARNING because every poll
would otherwise log one or two of them.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import structlog

STORE_WRITE_EVENT = "cache_write"

_NOISY_LIBRARIES = ("httpx", "httpcore")


def tag_store_writes(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor: tag store-write events for quota auditing."""
    if event_dict.get("event") == STORE_WRITE_EVENT:
        event_dict["audit"] = "store_write"
    return event_dict


@contextmanager
def source_context(source: str, cache_key: str) -> Iterator[None]:
    """Bind the polled source into every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(source=source, cache_key=cache_key):
        yield


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Render JSON lines instead of coloured console output.

    Returns:
        A configured structlog BoundLogger.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        tag_store_writes,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    level = logging.getLevelName(log_level.upper())
    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger named *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
