"""Tests for ContentFetcher routing, retry classification and timeouts."""

import asyncio

import httpx
import pytest

from contextpack.fetch import (
    BackoffPolicy,
    ContentFetcher,
    FetchResult,
    FetchStats,
    is_retryable,
)
from contextpack.foundation.errors import (
    FetchError,
    InvalidPathError,
    NotFoundError,
    RateLimitError,
    SizeLimitExceeded,
)
from contextpack.foundation.types.config import FetchConfig
from contextpack.paths import PathSpec, parse_path_spec

NO_BACKOFF = BackoffPolicy(initial=0.0, max_delay=0.0, jitter=0.0)


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.github.com/repos/o/r/contents/a")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"{status}", request=request, response=response)


class ScriptedSource:
    """Raises the scripted errors in order, then returns content."""

    def __init__(self, script: list[BaseException], *, name: str = "github", delay: float = 0.0):
        self.name = name
        self.script = list(script)
        self.delay = delay
        self.calls = 0

    async def fetch(self, spec: PathSpec) -> FetchResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.script:
            raise self.script.pop(0)
        return FetchResult.file(spec, b"ok")

    async def stat(self, spec: PathSpec) -> int | None:
        return None

    async def close(self) -> None:
        return None


REMOTE = parse_path_spec("o/r:a.txt")


class TestIsRetryable:
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("refused"),
            httpx.ReadTimeout("slow"),
            RateLimitError("limited"),
            _status_error(500),
            _status_error(503),
            _status_error(429),
        ],
    )
    def test_retryable(self, error: BaseException) -> None:
        assert is_retryable(error)

    @pytest.mark.parametrize(
        "error",
        [
            NotFoundError("gone"),
            InvalidPathError("bad"),
            FetchError("denied"),
            SizeLimitExceeded("big"),
            _status_error(404),
            ValueError("other"),
        ],
    )
    def test_not_retryable(self, error: BaseException) -> None:
        assert not is_retryable(error)


class TestRetry:
    @pytest.mark.asyncio
    async def test_recovers_after_transient_errors(self) -> None:
        source = ScriptedSource([httpx.ConnectError("refused"), _status_error(502)])
        fetcher = ContentFetcher(remote=source, policy=NO_BACKOFF)

        result = await fetcher.fetch(REMOTE)

        assert result.content == b"ok"
        assert source.calls == 3
        assert fetcher.stats.retries == 2
        assert fetcher.stats.api_calls == 3
        assert fetcher.stats.files_loaded == 1
        assert fetcher.stats.by_source == {"github": 1}

    @pytest.mark.asyncio
    async def test_exhaustion_raises_fetch_error(self) -> None:
        source = ScriptedSource([httpx.ConnectError("refused")] * 5)
        fetcher = ContentFetcher(remote=source, policy=NO_BACKOFF)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch(REMOTE, max_retries=2)

        assert source.calls == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert fetcher.stats.errors == 1

    @pytest.mark.asyncio
    async def test_rate_limit_exhaustion_wrapped(self) -> None:
        source = ScriptedSource([RateLimitError("limited", retry_after=30.0)] * 3)
        fetcher = ContentFetcher(remote=source, policy=NO_BACKOFF)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch(REMOTE, max_retries=1)
        assert isinstance(exc_info.value.cause, RateLimitError)
        assert source.calls == 2

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self) -> None:
        source = ScriptedSource([NotFoundError("gone")])
        fetcher = ContentFetcher(remote=source, policy=NO_BACKOFF)

        with pytest.raises(NotFoundError):
            await fetcher.fetch(REMOTE)
        assert source.calls == 1
        assert fetcher.stats.retries == 0

    @pytest.mark.asyncio
    async def test_zero_retries(self) -> None:
        source = ScriptedSource([_status_error(500)])
        fetcher = ContentFetcher(
            remote=source, config=FetchConfig(max_retries=0), policy=NO_BACKOFF
        )
        with pytest.raises(FetchError):
            await fetcher.fetch(REMOTE)
        assert source.calls == 1


class TestTimeout:
    @pytest.mark.asyncio
    async def test_timeout_covers_all_retries(self) -> None:
        source = ScriptedSource([], delay=1.0)
        fetcher = ContentFetcher(remote=source, policy=NO_BACKOFF)

        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch(REMOTE, timeout=0.05)
        assert isinstance(exc_info.value.cause, asyncio.TimeoutError)
        assert exc_info.value.attempts == 1


class TestRouting:
    @pytest.mark.asyncio
    async def test_local_and_remote_sources(self) -> None:
        local = ScriptedSource([], name="local")
        remote = ScriptedSource([])
        fetcher = ContentFetcher(local=local, remote=remote, policy=NO_BACKOFF)

        await fetcher.fetch(parse_path_spec("README.md"))
        await fetcher.fetch(REMOTE)

        assert (local.calls, remote.calls) == (1, 1)
        assert fetcher.stats.api_calls == 1

    @pytest.mark.asyncio
    async def test_missing_source(self) -> None:
        fetcher = ContentFetcher(local=ScriptedSource([], name="local"))
        with pytest.raises(InvalidPathError, match="No remote source"):
            await fetcher.fetch(REMOTE)


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_ends_backoff(self) -> None:
        source = ScriptedSource([httpx.ConnectError("refused")] * 5)
        slow = BackoffPolicy(initial=30.0, max_delay=30.0, jitter=0.0)
        fetcher = ContentFetcher(remote=source, policy=slow)
        cancel = asyncio.Event()

        asyncio.get_running_loop().call_later(0.05, cancel.set)
        with pytest.raises(FetchError, match="Cancelled") as exc_info:
            await fetcher.fetch(REMOTE, max_retries=3, timeout=10.0, cancel=cancel)

        assert source.calls == 1
        assert exc_info.value.attempts == 1
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert fetcher.stats.errors == 1

    @pytest.mark.asyncio
    async def test_unset_cancel_does_not_interrupt(self) -> None:
        source = ScriptedSource([httpx.ConnectError("refused")])
        fetcher = ContentFetcher(remote=source, policy=NO_BACKOFF)

        result = await fetcher.fetch(REMOTE, cancel=asyncio.Event())

        assert result.content == b"ok"
        assert source.calls == 2


class TestCallStats:
    @pytest.mark.asyncio
    async def test_counts_go_to_both(self) -> None:
        source = ScriptedSource([_status_error(502)])
        fetcher = ContentFetcher(remote=source, policy=NO_BACKOFF)
        first, second = FetchStats(), FetchStats()

        await fetcher.fetch(REMOTE, stats=first)
        await fetcher.fetch(REMOTE, stats=second)

        assert (first.api_calls, first.retries, first.files_loaded) == (2, 1, 1)
        assert (second.api_calls, second.retries, second.files_loaded) == (1, 0, 1)
        assert fetcher.stats.api_calls == 3
        assert fetcher.stats.by_source == {"github": 2}

    @pytest.mark.asyncio
    async def test_failures_counted_per_call(self) -> None:
        source = ScriptedSource([NotFoundError("gone")])
        fetcher = ContentFetcher(remote=source, policy=NO_BACKOFF)
        stats = FetchStats()

        with pytest.raises(NotFoundError):
            await fetcher.fetch(REMOTE, stats=stats)

        assert stats.errors == 1
        assert fetcher.stats.errors == 1
