"""Configuration type definitions - single source of truth for config defaults."""

from dataclasses import dataclass, field
from typing import Literal

MiB = 1024 * 1024


@dataclass(frozen=True, slots=True)
class FetchConfig:
    """Retry, timeout and size settings for ContentFetcher."""

    max_retries: int = 2
    """Additional attempts after the first on transient failures."""

    retry_base_delay: float = 0.5
    """Initial backoff delay in seconds (doubles each attempt)."""

    retry_max_delay: float = 8.0
    """Cap on a single backoff delay, also caps Retry-After."""

    retry_jitter: float = 0.25
    """Random jitter as a ratio of the base delay (0.0-1.0)."""

    per_fetch_timeout: float = 10.0
    """Timeout for one fetch, including all retries, in seconds."""

    max_file_bytes: int = 10 * MiB
    """Files known to be larger than this are rejected before download."""


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """ContentCache settings."""

    ttl_seconds: float = 24 * 60 * 60
    """Default entry lifetime (24h)."""

    sweep_interval: float = 300.0
    """Seconds between background sweeps of a resolver-owned cache; 0 disables."""

    max_entries: int | None = None
    """Optional bound; oldest entries are evicted first when exceeded."""


@dataclass(frozen=True, slots=True)
class BudgetConfig:
    """Default budget limits for one resolve call."""

    max_files: int = 100
    max_total_bytes: int = 50 * MiB
    max_tokens: int = 200_000
    mode: Literal["strict", "progressive"] = "progressive"

    warn_ratio: float = 0.8
    """Fraction of a hard limit that moves the budget into WARNING."""

    bytes_per_token: float = 4.0
    """Coarse token estimate for text-like content."""

    max_images: int = 20
    """Maximum images per bundle."""

    max_text_file_bytes: int = 1 * MiB
    """Per-file cap for text-like content."""

    max_image_file_bytes: int = 5 * MiB
    """Per-file cap for images."""

    max_pdf_file_bytes: int = 10 * MiB
    """Per-file cap for PDFs."""

    skip_sensitive: bool = False
    """Skip files flagged sensitive (.env, *.pem, *secret*...) instead of warning."""


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    """Scheduling and traversal settings for ContextResolver."""

    concurrency: int = 5
    """Worker pool width."""

    max_depth: int = 3
    """Directory recursion depth (top-level specs are depth 0)."""

    max_files_per_directory: int = 20
    """Directory listings larger than this are sampled by type."""

    include_patterns: tuple[str, ...] = ()
    """Regexes a directory file entry must match (any) to be loaded."""

    exclude_patterns: tuple[str, ...] = ()
    """Regexes that drop a directory entry when matched."""

    fail_fast: bool = False
    """Raise on the first invalid specifier instead of recording it."""

    deadline: float | None = None
    """Overall resolve deadline in seconds (None = no deadline)."""

    root: str = "."
    """Base directory for local specifiers."""


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    """GitHub contents API settings."""

    api_base: str = "https://api.github.com"
    token_env: str = "GITHUB_TOKEN"
    api_version: str = "2022-11-28"
    connect_timeout: float = 5.0


@dataclass(frozen=True, slots=True)
class ContextPackConfig:
    """Root configuration for contextpack."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    budget: BudgetConfig = field(default_factory=BudgetConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    debug: bool = False
    """Enable debug logging by default."""
