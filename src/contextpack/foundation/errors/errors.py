"""Error taxonomy for context resolution.

Every error carries an ErrorCode so callers and the size report can
classify failures without string matching:

- InvalidPathError: malformed or unsafe specifier, never retried
- NotFoundError: missing local or remote target, recorded per item
- RateLimitError: retried with backoff, surfaces as FetchError once exhausted
- FetchError: retries exhausted or a non-retryable transport failure
- SizeLimitExceeded: item too large to fetch or admit
- UnsupportedFileType: content kind that never enters a bundle
- DeadlineExceeded: resolve deadline hit, reported as a status
"""

from enum import Enum


class ErrorCode(Enum):
    """Stable error codes reported in SizeReport.errors."""

    INVALID_PATH = "invalid_path"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    FETCH_FAILED = "fetch_failed"
    SIZE_LIMIT = "size_limit"
    UNSUPPORTED_TYPE = "unsupported_type"
    DEADLINE = "deadline_exceeded"
    CONFIG = "config"


RECOVERY_HINTS: dict[ErrorCode, str] = {
    ErrorCode.INVALID_PATH: "Use [owner/repo:]path[@ref] without '..', absolute roots or control characters.",
    ErrorCode.NOT_FOUND: "Check the path and ref exist; remote refs default to the repository's default branch.",
    ErrorCode.RATE_LIMITED: "Set GITHUB_TOKEN for a higher rate limit or lower concurrency.",
    ErrorCode.FETCH_FAILED: "Transient network failure; retry later or raise fetch.max_retries.",
    ErrorCode.SIZE_LIMIT: "Raise the budget limits or reference a smaller file.",
    ErrorCode.UNSUPPORTED_TYPE: "Binary, symlink and submodule targets are never loaded into context.",
    ErrorCode.DEADLINE: "Raise the resolve deadline or reduce the number of specs.",
    ErrorCode.CONFIG: "Check .contextpack/config.yaml and CONTEXTPACK_* environment variables.",
}


class ContextPackError(Exception):
    """Base exception for all context resolution errors."""

    code: ErrorCode = ErrorCode.FETCH_FAILED

    def __init__(self, message: str, *, spec: str | None = None) -> None:
        self.spec = spec
        super().__init__(message)

    @property
    def hint(self) -> str:
        """Recovery hint for this error's code."""
        return RECOVERY_HINTS.get(self.code, "")


class InvalidPathError(ContextPackError, ValueError):
    """Raised when a path specifier is malformed or unsafe."""

    code = ErrorCode.INVALID_PATH


class NotFoundError(ContextPackError):
    """Raised when a local or remote target does not exist."""

    code = ErrorCode.NOT_FOUND


class RateLimitError(ContextPackError):
    """Raised when the remote API reports rate limiting."""

    code = ErrorCode.RATE_LIMITED

    def __init__(
        self,
        message: str,
        *,
        spec: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, spec=spec)


class FetchError(ContextPackError):
    """Raised when a fetch fails after retries or fails permanently."""

    code = ErrorCode.FETCH_FAILED

    def __init__(
        self,
        message: str,
        *,
        spec: str | None = None,
        cause: BaseException | None = None,
        attempts: int = 1,
    ) -> None:
        self.cause = cause
        self.attempts = attempts
        super().__init__(message, spec=spec)


class SizeLimitExceeded(ContextPackError):
    """Raised when an item is larger than a configured limit."""

    code = ErrorCode.SIZE_LIMIT

    def __init__(self, message: str, *, spec: str | None = None, size: int = 0, limit: int = 0) -> None:
        self.size = size
        self.limit = limit
        super().__init__(message, spec=spec)


class UnsupportedFileType(ContextPackError):
    """Raised when a target's kind can never be loaded into context."""

    code = ErrorCode.UNSUPPORTED_TYPE


class DeadlineExceeded(ContextPackError):
    """Raised when the overall resolve deadline passes."""

    code = ErrorCode.DEADLINE


class ConfigError(ContextPackError):
    """Raised when configuration cannot be loaded or is invalid."""

    code = ErrorCode.CONFIG
