"""Bounded asyncio worker pool with ordered results.

A fixed number of worker tasks drain a shared queue of input indices.
Results land in a slot per input index, so output order equals input order
no matter which item finishes first.

Cancellation:
    cancel event  queued items are dropped (result None), in-flight items finish
    deadline      cancel is set, in-flight items are cancelled, partial results returned
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(slots=True)
class ScheduleResult(Generic[R]):
    """Ordered results of one run_all() call."""

    results: list[R | None]
    """One slot per input item; None when the item never completed."""

    deadline_exceeded: bool = False
    cancelled: bool = False
    """The cancel event was set before every item ran."""

    @property
    def completed(self) -> int:
        return sum(1 for r in self.results if r is not None)

    def __iter__(self) -> Iterator[R | None]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> R | None:
        return self.results[index]


class ConcurrencyScheduler:
    """Run an async worker over items with at most ``concurrency`` in flight.

    Example:
        scheduler = ConcurrencyScheduler(concurrency=5)
        outcome = await scheduler.run_all(specs, fetch_one, deadline=loop.time() + 30)
        for spec, result in zip(specs, outcome):
            ...
    """

    def __init__(self, concurrency: int = 5) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.concurrency = concurrency

    async def run_all(
        self,
        items: Sequence[T],
        worker: Callable[[T], Awaitable[R]],
        *,
        cancel: asyncio.Event | None = None,
        deadline: float | None = None,
    ) -> ScheduleResult[R]:
        """Run ``worker`` over ``items``.

        Args:
            items: Inputs, in the order results should come back.
            worker: Coroutine function called once per item. It should handle
                per-item failures itself; an exception it raises cancels the
                remaining work and propagates.
            cancel: Shared cancellation signal; set by callers (or by this
                scheduler on deadline) to stop scheduling new items.
            deadline: Absolute event-loop time (loop.time()) to stop at.

        Returns:
            ScheduleResult with one slot per item.
        """
        results: list[R | None] = [None] * len(items)
        if not items:
            return ScheduleResult(results)

        loop = asyncio.get_running_loop()
        cancel = cancel if cancel is not None else asyncio.Event()
        queue: asyncio.Queue[int] = asyncio.Queue()
        for index in range(len(items)):
            queue.put_nowait(index)

        async def _drain() -> None:
            while not cancel.is_set():
                try:
                    index = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                results[index] = await worker(items[index])

        tasks = [loop.create_task(_drain()) for _ in range(min(self.concurrency, len(items)))]
        timeout = None if deadline is None else max(0.0, deadline - loop.time())

        try:
            done, pending = await asyncio.wait(
                tasks, timeout=timeout, return_when=asyncio.FIRST_EXCEPTION
            )
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        failed = next(
            (t for t in done if not t.cancelled() and t.exception() is not None), None
        )
        deadline_exceeded = failed is None and bool(pending)

        if pending:
            if deadline_exceeded:
                cancel.set()
                logger.warning(
                    "Deadline reached with %d worker(s) still busy; returning partial results",
                    len(pending),
                )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        if failed is not None:
            raise failed.exception()  # type: ignore[misc]

        return ScheduleResult(
            results,
            deadline_exceeded=deadline_exceeded,
            cancelled=cancel.is_set() and not queue.empty(),
        )
