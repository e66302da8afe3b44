"""Shared type definitions."""

from contextpack.foundation.types.config import (
    MiB,
    BudgetConfig,
    CacheConfig,
    ContextPackConfig,
    FetchConfig,
    GitHubConfig,
    ResolverConfig,
)

__all__ = [
    "MiB",
    "BudgetConfig",
    "CacheConfig",
    "ContextPackConfig",
    "FetchConfig",
    "GitHubConfig",
    "ResolverConfig",
]
