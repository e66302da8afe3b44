"""PathSpec - parsed path specifier value type."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class PathSpec:
    """A parsed ``[owner/repo:]file_path[@ref]`` specifier.

    Empty owner/repo denotes a local-filesystem reference. Instances are
    created by parse_path_spec() and never mutated; ``key`` is the cache and
    single-flight dedup key.
    """

    owner: str
    """Repository owner, empty for local paths."""

    repo: str
    """Repository name, empty for local paths."""

    file_path: str
    """Path within the repository or below the local root."""

    ref: str = ""
    """Branch, tag or commit SHA; empty means the default branch."""

    @property
    def is_remote(self) -> bool:
        return bool(self.owner and self.repo)

    @property
    def full_name(self) -> str:
        """owner/repo, or empty for local paths."""
        return f"{self.owner}/{self.repo}" if self.is_remote else ""

    @property
    def name(self) -> str:
        """Final path segment (file or directory name)."""
        return self.file_path.rstrip("/").rsplit("/", 1)[-1]

    @property
    def api_path(self) -> str:
        """file_path without a trailing directory slash."""
        return self.file_path.rstrip("/")

    @property
    def key(self) -> str:
        """Canonical string form; equal keys mean equal specs."""
        prefix = f"{self.owner}/{self.repo}:" if self.is_remote else ""
        suffix = f"@{self.ref}" if self.ref else ""
        return f"{prefix}{self.file_path}{suffix}"

    def child(self, name: str) -> PathSpec:
        """Spec for a directory entry named ``name``, keeping owner/repo/ref."""
        base = self.api_path
        return replace(self, file_path=f"{base}/{name}" if base else name)

    def with_path(self, file_path: str) -> PathSpec:
        """Same owner/repo/ref with a different full path."""
        return replace(self, file_path=file_path)

    def __str__(self) -> str:
        return self.key
