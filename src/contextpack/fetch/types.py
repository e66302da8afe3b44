"""Fetch result types and the source protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from contextpack.paths.types import PathSpec

EntryKind = Literal["file", "dir", "symlink", "submodule"]


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """One child of a listed directory."""

    spec: PathSpec
    """Spec for the child, inheriting owner/repo/ref from the directory."""

    kind: EntryKind
    size: int = 0
    sha: str | None = None

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def is_file(self) -> bool:
        return self.kind == "file"

    @property
    def is_dir(self) -> bool:
        return self.kind == "dir"


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of fetching one spec: file content or a directory listing."""

    spec: PathSpec
    content: bytes | None = None
    entries: tuple[DirectoryEntry, ...] = ()
    size: int = 0
    sha: str | None = None
    is_directory: bool = False

    @classmethod
    def file(cls, spec: PathSpec, content: bytes, sha: str | None = None) -> FetchResult:
        return cls(spec=spec, content=content, size=len(content), sha=sha)

    @classmethod
    def directory(
        cls, spec: PathSpec, entries: tuple[DirectoryEntry, ...] | list[DirectoryEntry]
    ) -> FetchResult:
        return cls(spec=spec, entries=tuple(entries), is_directory=True)


@dataclass(slots=True)
class FetchStats:
    """Fetch counters, kept for a fetcher's lifetime or for one resolve() call.

    Mutated from the event loop thread only.
    """

    api_calls: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    retries: int = 0
    errors: int = 0
    files_loaded: int = 0
    bytes_loaded: int = 0
    by_source: dict[str, int] = field(default_factory=dict)

    @property
    def cache_efficiency(self) -> float:
        """Share of lookups served from cache, as a percentage."""
        total = self.cache_hits + self.cache_misses
        return self.cache_hits / total * 100 if total > 0 else 0.0

    @property
    def retry_rate(self) -> float:
        """Retries per API call, as a percentage."""
        return self.retries / self.api_calls * 100 if self.api_calls > 0 else 0.0

    def record_source(self, source: str) -> None:
        self.by_source[source] = self.by_source.get(source, 0) + 1

    def merge(self, other: FetchStats) -> None:
        """Add another set of counters into this one."""
        self.api_calls += other.api_calls
        self.cache_hits += other.cache_hits
        self.cache_misses += other.cache_misses
        self.retries += other.retries
        self.errors += other.errors
        self.files_loaded += other.files_loaded
        self.bytes_loaded += other.bytes_loaded
        for source, count in other.by_source.items():
            self.by_source[source] = self.by_source.get(source, 0) + count

    def to_dict(self) -> dict[str, int | float | dict[str, int]]:
        return {
            "api_calls": self.api_calls,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "retries": self.retries,
            "errors": self.errors,
            "files_loaded": self.files_loaded,
            "bytes_loaded": self.bytes_loaded,
            "cache_efficiency": round(self.cache_efficiency, 1),
            "retry_rate": round(self.retry_rate, 1),
            "by_source": dict(self.by_source),
        }


@runtime_checkable
class ContentSource(Protocol):
    """Backend that turns a spec into file bytes or a directory listing."""

    name: str

    async def fetch(self, spec: PathSpec) -> FetchResult:
        """Fetch one spec.

        Raises:
            NotFoundError, InvalidPathError, SizeLimitExceeded,
            UnsupportedFileType, RateLimitError, FetchError, or a transport
            error that the caller may retry.
        """
        ...

    async def stat(self, spec: PathSpec) -> int | None:
        """Size in bytes without reading content, or None when unknown."""
        ...

    async def close(self) -> None: ...
