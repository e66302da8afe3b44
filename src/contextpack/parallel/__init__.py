"""Bounded concurrency and single-flight deduplication."""

from contextpack.parallel.scheduler import ConcurrencyScheduler, ScheduleResult
from contextpack.parallel.singleflight import SingleFlight

__all__ = [
    "ConcurrencyScheduler",
    "ScheduleResult",
    "SingleFlight",
]
