"""ContentFetcher: routes specs to a source and retries transient failures.

Retry classification:

    retryable       httpx.TransportError, 5xx, 429, rate-limited 403
    not retryable   404, 400/422, 401, other 403, SizeLimitExceeded,
                    UnsupportedFileType, local root escape

Each fetch, retries included, is bounded by ``per_fetch_timeout``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx

from contextpack.fetch.backoff import BackoffPolicy, sleep_with_backoff
from contextpack.fetch.github import GitHubContentsSource
from contextpack.fetch.local import LocalSource
from contextpack.fetch.types import ContentSource, FetchResult, FetchStats
from contextpack.foundation.errors import (
    ContextPackError,
    FetchError,
    InvalidPathError,
    RateLimitError,
)
from contextpack.foundation.types.config import ContextPackConfig, FetchConfig
from contextpack.paths.types import PathSpec

logger = logging.getLogger(__name__)


def is_retryable(error: BaseException) -> bool:
    """Whether an error from a source is worth another attempt."""
    if isinstance(error, RateLimitError):
        return True
    if isinstance(error, ContextPackError):
        return False
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= 500 or status == 429
    return isinstance(error, httpx.TransportError)


class ContentFetcher:
    """Fetch a spec from the local filesystem or GitHub with retry/backoff.

    The fetcher does not cache; ContextResolver checks ContentCache first and
    records hits/misses on ``stats``.
    """

    def __init__(
        self,
        *,
        local: ContentSource | None = None,
        remote: ContentSource | None = None,
        config: FetchConfig | None = None,
        policy: BackoffPolicy | None = None,
        stats: FetchStats | None = None,
    ) -> None:
        self.config = config or FetchConfig()
        self.local = local
        self.remote = remote
        self.policy = policy or BackoffPolicy.from_config(self.config)
        self.stats = stats or FetchStats()

    @classmethod
    def from_config(
        cls,
        config: ContextPackConfig,
        root: Path | str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ContentFetcher:
        """Build a fetcher with a LocalSource and a GitHubContentsSource."""
        return cls(
            local=LocalSource(
                root if root is not None else config.resolver.root,
                max_file_bytes=config.fetch.max_file_bytes,
            ),
            remote=GitHubContentsSource.from_config(config.github, config.fetch, transport),
            config=config.fetch,
        )

    def _source_for(self, spec: PathSpec) -> ContentSource:
        source = self.remote if spec.is_remote else self.local
        if source is None:
            kind = "remote" if spec.is_remote else "local"
            raise InvalidPathError(f"No {kind} source configured for {spec.key}", spec=spec.key)
        return source

    async def fetch(
        self,
        spec: PathSpec,
        *,
        max_retries: int | None = None,
        timeout: float | None = None,
        stats: FetchStats | None = None,
        cancel: asyncio.Event | None = None,
    ) -> FetchResult:
        """Fetch one spec.

        Args:
            spec: Parsed specifier.
            max_retries: Per-call override of the configured retry count.
            timeout: Per-call override of the per-fetch timeout.
            stats: Extra counters to record into alongside ``self.stats``.
            cancel: When set, a pending retry backoff ends and the fetch fails.

        Raises:
            NotFoundError, InvalidPathError, SizeLimitExceeded,
            UnsupportedFileType: Non-retryable, raised as-is.
            FetchError: Retries exhausted, timeout, cancellation, or a
                permanent failure.
        """
        source = self._source_for(spec)
        counts = FetchStats()
        attempts = [0]
        retries = self.config.max_retries if max_retries is None else max_retries
        timeout = self.config.per_fetch_timeout if timeout is None else timeout
        try:
            try:
                result = await asyncio.wait_for(
                    self._fetch_with_retry(source, spec, retries, attempts, counts, cancel),
                    timeout=timeout,
                )
            except asyncio.TimeoutError as e:
                counts.errors += 1
                logger.error("Fetch of %s timed out after %.1fs", spec.key, timeout)
                raise FetchError(
                    f"Timed out fetching {spec.key} after {timeout:.1f}s",
                    spec=spec.key,
                    cause=e,
                    attempts=attempts[0],
                ) from e

            counts.record_source(source.name)
            if not result.is_directory:
                counts.files_loaded += 1
                counts.bytes_loaded += result.size
            return result
        finally:
            self.stats.merge(counts)
            if stats is not None and stats is not self.stats:
                stats.merge(counts)

    async def _fetch_with_retry(
        self,
        source: ContentSource,
        spec: PathSpec,
        max_retries: int,
        attempts: list[int],
        stats: FetchStats,
        cancel: asyncio.Event | None,
    ) -> FetchResult:
        max_attempts = max_retries + 1
        last_error: BaseException | None = None

        for attempt in range(1, max_attempts + 1):
            attempts[0] = attempt
            if source.name != "local":
                stats.api_calls += 1
            logger.debug("Fetch attempt %d/%d for %s", attempt, max_attempts, spec.key)
            try:
                return await source.fetch(spec)
            except Exception as e:
                if not is_retryable(e):
                    stats.errors += 1
                    raise
                last_error = e

            if attempt == max_attempts:
                break

            retry_after = last_error.retry_after if isinstance(last_error, RateLimitError) else None
            stats.retries += 1
            logger.info(
                "Retrying %s after %s (attempt %d/%d)",
                spec.key,
                type(last_error).__name__,
                attempt + 1,
                max_attempts,
            )
            if not await sleep_with_backoff(
                self.policy, attempt, abort_event=cancel, retry_after=retry_after
            ):
                stats.errors += 1
                logger.info("Retry of %s cancelled during backoff", spec.key)
                raise FetchError(
                    f"Cancelled while retrying {spec.key}: {last_error}",
                    spec=spec.key,
                    cause=last_error,
                    attempts=attempt,
                ) from last_error

        stats.errors += 1
        logger.error(
            "Giving up on %s after %d attempt(s): %s", spec.key, max_attempts, last_error
        )
        raise FetchError(
            f"Failed to fetch {spec.key} after {max_attempts} attempt(s): {last_error}",
            spec=spec.key,
            cause=last_error,
            attempts=max_attempts,
        ) from last_error

    async def stat(self, spec: PathSpec) -> int | None:
        """Known size without fetching content, or None."""
        return await self._source_for(spec).stat(spec)

    async def close(self) -> None:
        for source in (self.local, self.remote):
            if source is not None:
                await source.close()

    async def __aenter__(self) -> ContentFetcher:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
