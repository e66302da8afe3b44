"""Foundation utilities - generic helpers with zero dependencies."""

from contextpack.foundation.utils.formatting import format_bytes, format_ratio

__all__ = [
    "format_bytes",
    "format_ratio",
]
