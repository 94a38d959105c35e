"""Background polling for the nowfeed change-aware caches."""

from src.pipeline.scheduler import PollScheduler

__all__ = [
    "PollScheduler",
]
