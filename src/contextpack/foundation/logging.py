"""Logging configuration for contextpack.

Library code only ever calls ``logging.getLogger(__name__)``; handlers are
installed by the CLI (or an embedding application) through configure_logging.

Priority for level resolution (highest to lowest):
    1. Explicit `level` parameter
    2. CONTEXTPACK_LOG_LEVEL env var (DEBUG, INFO, WARNING, ...)
    3. CONTEXTPACK_DEBUG=true env var
    4. `debug=True` parameter (--debug flag)
    5. Config file: debug: true in .contextpack/config.yaml
    6. WARNING (default)

Usage:
    from contextpack.foundation.logging import configure_logging
    configure_logging(debug=args.debug)
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"

# Transport libraries log every request at DEBUG
_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "hpack",
    "asyncio",
)

_config_debug_checked = False
_config_debug_value = False

_MAX_LOG_SESSIONS = 10


def _get_log_directory() -> Path:
    """Return .contextpack/logs/, preferring an existing .contextpack dir."""
    for base in (Path.cwd(), Path.home()):
        state_dir = base / ".contextpack"
        if state_dir.exists():
            log_dir = state_dir / "logs"
            log_dir.mkdir(exist_ok=True)
            return log_dir

    log_dir = Path.cwd() / ".contextpack" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _cleanup_old_logs(log_dir: Path, max_sessions: int = _MAX_LOG_SESSIONS) -> None:
    """Keep only the newest `max_sessions` session logs."""
    if not log_dir.exists():
        return

    log_files = sorted(
        log_dir.glob("session_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for old_log in log_files[max_sessions:]:
        try:
            old_log.unlink()
        except OSError as e:
            sys.stderr.write(f"Warning: could not remove old log {old_log}: {e}\n")


def _check_config_debug() -> bool:
    """Read `debug:` from the config file without importing the config system.

    The config loader imports this module indirectly, so the debug key is
    scanned line by line instead of going through yaml.
    """
    global _config_debug_checked, _config_debug_value

    if _config_debug_checked:
        return _config_debug_value
    _config_debug_checked = True

    for config_path in (
        Path(".contextpack/config.yaml"),
        Path.home() / ".contextpack" / "config.yaml",
    ):
        if not config_path.exists():
            continue
        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError:
            continue
        for line in content.splitlines():
            stripped = line.strip()
            if stripped.startswith("debug:"):
                value = stripped.split(":", 1)[1].strip().lower()
                _config_debug_value = value in ("true", "yes", "1")
                return _config_debug_value
        return False

    return False


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: object = None,
    persist: bool = False,
) -> int:
    """Install console (and optionally file) handlers on the root logger.

    Args:
        debug: Enable DEBUG level with the detailed format
        level: Explicit level override (int or name)
        stream: Console stream (default: stderr)
        persist: Also write a session log under .contextpack/logs/

    Returns:
        The resolved console log level.
    """
    resolved_level: int
    if level is not None:
        resolved_level = _parse_level(level)
    elif env_level := os.environ.get("CONTEXTPACK_LOG_LEVEL"):
        resolved_level = _parse_level(env_level)
    elif os.environ.get("CONTEXTPACK_DEBUG", "").lower() in ("true", "1", "yes"):
        resolved_level = logging.DEBUG
    elif debug or _check_config_debug():
        resolved_level = logging.DEBUG
    else:
        resolved_level = logging.WARNING

    console_format = _DEBUG_FORMAT if resolved_level <= logging.DEBUG else _DEFAULT_FORMAT

    root_logger = logging.getLogger()
    # The file handler captures DEBUG, so the root must let it through
    root_logger.setLevel(logging.DEBUG if persist else resolved_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    if persist:
        try:
            log_dir = _get_log_directory()
            _cleanup_old_logs(log_dir)
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            file_handler = logging.FileHandler(
                log_dir / f"session_{timestamp}.log", mode="w", encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(_DEBUG_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            sys.stderr.write(f"Warning: Could not enable persistent logging: {e}\n")

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, debug=%s, persist=%s",
        logging.getLevelName(resolved_level),
        debug,
        persist,
    )
    return resolved_level


def _parse_level(level: int | str) -> int:
    """Parse a log level from an int or a level name."""
    if isinstance(level, int):
        return level
    numeric = getattr(logging, level.upper(), None)
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return logging.WARNING
