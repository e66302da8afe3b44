"""Error system for contextpack."""

from contextpack.foundation.errors.errors import (
    RECOVERY_HINTS,
    ConfigError,
    ContextPackError,
    DeadlineExceeded,
    ErrorCode,
    FetchError,
    InvalidPathError,
    NotFoundError,
    RateLimitError,
    SizeLimitExceeded,
    UnsupportedFileType,
)

__all__ = [
    "ErrorCode",
    "RECOVERY_HINTS",
    "ContextPackError",
    "ConfigError",
    "DeadlineExceeded",
    "FetchError",
    "InvalidPathError",
    "NotFoundError",
    "RateLimitError",
    "SizeLimitExceeded",
    "UnsupportedFileType",
]
