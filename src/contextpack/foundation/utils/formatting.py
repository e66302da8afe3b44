"""Human-readable formatting helpers."""

_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_bytes(num_bytes: int | float) -> str:
    """Format a byte count with binary units.

    Example:
        >>> format_bytes(0)
        '0 B'
        >>> format_bytes(1536)
        '1.5 KB'
    """
    if num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_UNITS[unit]}"


def format_ratio(value: float, limit: float) -> str:
    """Format value/limit as a percentage string, '0.0%' when limit is 0."""
    if limit <= 0:
        return "0.0%"
    return f"{value / limit * 100:.1f}%"
