"""Content fetching: local filesystem and GitHub contents API."""

from contextpack.fetch.backoff import BackoffPolicy, compute_backoff, sleep_with_backoff
from contextpack.fetch.fetcher import ContentFetcher, is_retryable
from contextpack.fetch.github import GitHubContentsSource
from contextpack.fetch.listing import compile_patterns, filter_entries, sample_by_type, select_children
from contextpack.fetch.local import LocalSource
from contextpack.fetch.types import ContentSource, DirectoryEntry, FetchResult, FetchStats

__all__ = [
    "BackoffPolicy",
    "ContentFetcher",
    "ContentSource",
    "DirectoryEntry",
    "FetchResult",
    "FetchStats",
    "GitHubContentsSource",
    "LocalSource",
    "compile_patterns",
    "compute_backoff",
    "filter_entries",
    "is_retryable",
    "sample_by_type",
    "select_children",
    "sleep_with_backoff",
]
