"""Foundation - config, errors, logging and generic helpers.

Nothing here imports from other contextpack packages; everything else
imports from here.
"""

from contextpack.foundation.config import (
    ContextPackConfig,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from contextpack.foundation.errors import (
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
from contextpack.foundation.logging import configure_logging
from contextpack.foundation.utils import format_bytes, format_ratio

__all__ = [
    # === Config ===
    "ContextPackConfig",
    "get_config",
    "load_config",
    "reset_config",
    "save_default_config",
    # === Errors ===
    "ErrorCode",
    "ConfigError",
    "ContextPackError",
    "DeadlineExceeded",
    "FetchError",
    "InvalidPathError",
    "NotFoundError",
    "RateLimitError",
    "SizeLimitExceeded",
    "UnsupportedFileType",
    # === Logging ===
    "configure_logging",
    # === Utils ===
    "format_bytes",
    "format_ratio",
]
