"""Exponential backoff with jitter for fetch retries.

Example:
    >>> policy = BackoffPolicy(initial=0.5, max_delay=8.0, factor=2.0, jitter=0.25)
    >>> delay = compute_backoff(policy, attempt=3)  # ~2s + jitter
    >>> await sleep_with_backoff(policy, attempt=3)

Formula: base = initial * factor^(attempt-1), then add random jitter.
A server-provided Retry-After replaces the computed delay, still capped.
"""

import asyncio
import random
from dataclasses import dataclass

from contextpack.foundation.types.config import FetchConfig


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Configuration for exponential backoff with jitter.

    Attributes:
        initial: Initial delay in seconds (default 0.5)
        max_delay: Maximum delay cap in seconds (default 8.0)
        factor: Multiplier for each attempt (default 2.0)
        jitter: Random jitter as ratio of base delay (default 0.25)
    """

    initial: float = 0.5
    """Initial delay in seconds."""

    max_delay: float = 8.0
    """Maximum delay cap in seconds."""

    factor: float = 2.0
    """Multiplier for exponential growth."""

    jitter: float = 0.25
    """Random jitter as ratio of base delay (0.0-1.0)."""

    def __post_init__(self) -> None:
        if self.initial < 0:
            raise ValueError("initial must be >= 0")
        if self.max_delay < self.initial:
            raise ValueError("max_delay must be >= initial")
        if self.factor < 1.0:
            raise ValueError("factor must be >= 1.0")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError("jitter must be between 0.0 and 1.0")

    @classmethod
    def from_config(cls, config: FetchConfig) -> "BackoffPolicy":
        return cls(
            initial=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            jitter=config.retry_jitter,
        )


def compute_backoff(
    policy: BackoffPolicy,
    attempt: int,
    retry_after: float | None = None,
) -> float:
    """Compute backoff delay in seconds.

    Args:
        policy: Backoff policy configuration
        attempt: Attempt number that just failed (1-indexed)
        retry_after: Server-requested delay, used instead of the computed one

    Returns:
        Delay in seconds, capped at policy.max_delay
    """
    if retry_after is not None and retry_after >= 0:
        return min(policy.max_delay, retry_after)

    exponent = max(attempt - 1, 0)
    base = policy.initial * (policy.factor ** exponent)
    delay = base + base * policy.jitter * random.random()
    return min(policy.max_delay, delay)


async def sleep_with_backoff(
    policy: BackoffPolicy,
    attempt: int,
    abort_event: asyncio.Event | None = None,
    retry_after: float | None = None,
) -> bool:
    """Sleep with exponential backoff, supporting early abort.

    Returns:
        True if sleep completed normally, False if aborted
    """
    delay = compute_backoff(policy, attempt, retry_after)

    if abort_event:
        try:
            await asyncio.wait_for(abort_event.wait(), timeout=delay)
            return False
        except asyncio.TimeoutError:
            return True
    else:
        await asyncio.sleep(delay)
        return True
