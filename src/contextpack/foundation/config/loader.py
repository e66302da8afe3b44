"""contextpack configuration management.

Loads configuration from .contextpack/config.yaml with defaults taken from
the dataclasses in contextpack.foundation.types.config. Every setting can be
overridden with an environment variable named CONTEXTPACK_<SECTION>_<KEY>,
e.g. CONTEXTPACK_FETCH_MAX_RETRIES=4 or CONTEXTPACK_BUDGET_MODE=strict.

Config locations (first found wins):
1. Explicit path passed to load_config()
2. .contextpack/config.yaml (project-local)
3. ~/.contextpack/config.yaml (user-global)
4. Built-in defaults

Thread Safety:
    get_config() uses double-checked locking so concurrent first calls load
    the file once.
"""

import logging
import os
import threading
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from contextpack.foundation.errors import ConfigError
from contextpack.foundation.types.config import (
    BudgetConfig,
    CacheConfig,
    ContextPackConfig,
    FetchConfig,
    GitHubConfig,
    ResolverConfig,
)

logger = logging.getLogger(__name__)

_ENV_PREFIX = "CONTEXTPACK_"

_SECTIONS: dict[str, type] = {
    "fetch": FetchConfig,
    "cache": CacheConfig,
    "budget": BudgetConfig,
    "resolver": ResolverConfig,
    "github": GitHubConfig,
}

# Fields that hold sequences; YAML lists and comma-separated env values become tuples
_TUPLE_FIELDS = {"include_patterns", "exclude_patterns"}

_config: ContextPackConfig | None = None
_config_lock = threading.Lock()


def _defaults() -> dict[str, Any]:
    """Default config as a plain dict, derived from the dataclasses."""
    return asdict(ContextPackConfig())


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str, key: str) -> Any:
    """Coerce an environment string to bool/int/float/None/tuple."""
    if key in _TUPLE_FIELDS:
        return [part for part in (p.strip() for p in value.split(",")) if part]
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null", ""):
        return None
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply CONTEXTPACK_<SECTION>_<KEY> overrides.

    Section names never contain underscores, so the first segment after the
    prefix selects the section and the rest is the field name.

    Examples:
        CONTEXTPACK_FETCH_PER_FETCH_TIMEOUT=5
        CONTEXTPACK_RESOLVER_EXCLUDE_PATTERNS=node_modules,\\.lock$
        CONTEXTPACK_DEBUG=true
    """
    env = os.environ if environ is None else environ

    for name, value in env.items():
        if not name.startswith(_ENV_PREFIX):
            continue
        path = name[len(_ENV_PREFIX):].lower()

        if path == "debug":
            config_dict["debug"] = _coerce(value, "debug")
            continue

        section, _, key = path.partition("_")
        section_type = _SECTIONS.get(section)
        if section_type is None or not key:
            continue
        if key not in {f.name for f in fields(section_type)}:
            logger.debug("Ignoring unknown config override %s", name)
            continue

        config_dict.setdefault(section, {})[key] = _coerce(value, key)

    return config_dict


def _build_section(section_type: type, data: dict[str, Any]) -> Any:
    known = {f.name for f in fields(section_type)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown {section_type.__name__} keys: {', '.join(sorted(unknown))}")
    values = {
        key: tuple(value) if key in _TUPLE_FIELDS and value is not None else value
        for key, value in data.items()
    }
    return section_type(**values)


def _dict_to_config(data: dict) -> ContextPackConfig:
    """Convert a merged dict into a ContextPackConfig."""
    sections = {
        name: _build_section(section_type, data.get(name) or {})
        for name, section_type in _SECTIONS.items()
    }
    mode = sections["budget"].mode
    if mode not in ("strict", "progressive"):
        raise ConfigError(f"budget.mode must be 'strict' or 'progressive', got {mode!r}")
    return ContextPackConfig(**sections, debug=bool(data.get("debug", False)))


def load_config(path: str | Path | None = None) -> ContextPackConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (CONTEXTPACK_*)
    2. Explicit path if provided
    3. .contextpack/config.yaml
    4. ~/.contextpack/config.yaml
    5. Built-in defaults

    Raises:
        ConfigError: If the selected file is not valid YAML or has unknown keys.
    """
    global _config

    config_dict = _defaults()

    config_paths: list[Path] = []
    if path:
        config_paths.append(Path(path))
    config_paths.extend([
        Path(".contextpack/config.yaml"),
        Path.home() / ".contextpack" / "config.yaml",
    ])

    for config_path in config_paths:
        if not config_path.exists():
            continue
        try:
            with open(config_path, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        logger.debug("Loaded config from %s", config_path)
        _deep_update(config_dict, file_config)
        break

    config_dict = _apply_env_overrides(config_dict)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> ContextPackConfig:
    """Get the current configuration, loading it on first use."""
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None


def save_default_config(path: str | Path = ".contextpack/config.yaml") -> Path:
    """Write a commented default configuration file.

    Returns:
        Path to the written file.
    """
    config_content = '''# contextpack configuration
#
# Defaults live in contextpack/foundation/types/config.py; edit the values
# you want to override. Any key can also be set with an environment variable:
# CONTEXTPACK_<SECTION>_<KEY>, e.g. CONTEXTPACK_BUDGET_MODE=strict

# Fetching (local filesystem and GitHub contents API)
fetch:
  # Extra attempts on network errors, 5xx and rate limits
  max_retries: 2
  # Backoff starts here (seconds) and doubles per attempt, with jitter
  retry_base_delay: 0.5
  retry_max_delay: 8.0
  retry_jitter: 0.25
  # Per-fetch timeout including retries (seconds)
  per_fetch_timeout: 10.0
  # Files known to be larger than this are never downloaded (bytes)
  max_file_bytes: 10485760

# Content cache
cache:
  # Entry lifetime in seconds (24h)
  ttl_seconds: 86400
  # Background sweep interval in seconds (0 = no sweeper)
  sweep_interval: 300.0
  # Optional entry bound (null = unbounded)
  max_entries: null

# Budget for one resolve call
budget:
  max_files: 100
  max_total_bytes: 52428800
  max_tokens: 200000
  # strict: abort on the first hard-limit breach
  # progressive: admit the crossing item, then stop admitting
  mode: progressive
  warn_ratio: 0.8
  bytes_per_token: 4.0
  max_images: 20
  # Per-file caps by type (bytes)
  max_text_file_bytes: 1048576
  max_image_file_bytes: 5242880
  max_pdf_file_bytes: 10485760
  # Skip .env, *.pem, *secret* and similar files (admitted with a warning otherwise)
  skip_sensitive: false

# Scheduling and directory traversal
resolver:
  concurrency: 5
  max_depth: 3
  max_files_per_directory: 20
  include_patterns: []
  exclude_patterns: []
  fail_fast: false
  # Overall deadline in seconds (null = none)
  deadline: null
  # Base directory for local paths
  root: "."

# GitHub contents API
github:
  api_base: "https://api.github.com"
  # Environment variable holding the access token
  token_env: GITHUB_TOKEN
  api_version: "2022-11-28"
  connect_timeout: 5.0

debug: false
'''

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config_content, encoding="utf-8")
    return path
