"""Configuration management for contextpack."""

from contextpack.foundation.config.loader import (
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from contextpack.foundation.types.config import ContextPackConfig

__all__ = [
    "ContextPackConfig",
    "get_config",
    "load_config",
    "reset_config",
    "save_default_config",
]
