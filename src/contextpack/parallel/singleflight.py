"""Single-flight deduplication of concurrent async calls.

Concurrent callers asking for the same key share one underlying task.
The shared task is shielded: cancelling one waiter (for example when a
resolve deadline expires) never cancels the work other waiters depend on.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Collapse concurrent calls for the same key onto one task.

    Example:
        flight = SingleFlight()
        # ten concurrent callers, one fetch
        results = await asyncio.gather(*[
            flight.do(spec.key, lambda: fetcher.fetch(spec)) for _ in range(10)
        ])

    The key is released as soon as the task finishes, so a later call
    starts a fresh flight. Must be used from a single event loop.
    """

    def __init__(self) -> None:
        self._flights: dict[str, asyncio.Future[T]] = {}
        self.started = 0
        """Flights actually started."""

        self.shared = 0
        """Calls that joined an existing flight."""

    def __len__(self) -> int:
        return len(self._flights)

    def in_flight(self, key: str) -> bool:
        return key in self._flights

    def _finish(self, key: str, task: asyncio.Future[T]) -> None:
        if self._flights.get(key) is task:
            del self._flights[key]
        # Mark the exception retrieved; waiters re-raise it themselves.
        if not task.cancelled():
            task.exception()

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` once for all concurrent callers of ``key``.

        Returns:
            The shared result. Exceptions from ``fn`` propagate to every waiter.
        """
        task = self._flights.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._flights[key] = task
            task.add_done_callback(lambda t: self._finish(key, t))
            self.started += 1
        else:
            self.shared += 1
            logger.debug("Joining in-flight request for %s", key)
        return await asyncio.shield(task)
