"""Local filesystem source rooted at a base directory."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from contextpack.fetch.types import DirectoryEntry, FetchResult
from contextpack.foundation.errors import (
    FetchError,
    InvalidPathError,
    NotFoundError,
    SizeLimitExceeded,
)
from contextpack.foundation.types.config import MiB
from contextpack.paths.types import PathSpec

logger = logging.getLogger(__name__)


class LocalSource:
    """Read files and list directories below ``root``.

    Security: every path is resolved and re-checked against the root, so a
    symlink or a spec that slipped past the parser cannot escape it.
    Blocking I/O runs in a worker thread via asyncio.to_thread.
    """

    name = "local"

    def __init__(self, root: Path | str = ".", *, max_file_bytes: int = 10 * MiB) -> None:
        self.root = Path(root).expanduser().resolve()
        self.max_file_bytes = max_file_bytes

    def _safe_path(self, spec: PathSpec) -> Path:
        """Resolve a spec below root.

        Raises:
            InvalidPathError: If the resolved path leaves root.
        """
        requested = (self.root / spec.api_path).resolve()
        try:
            requested.relative_to(self.root)
        except ValueError as err:
            raise InvalidPathError(
                f"Path escapes root {self.root}: {spec.file_path}", spec=spec.key
            ) from err
        return requested

    def _list(self, spec: PathSpec, path: Path) -> FetchResult:
        entries: list[DirectoryEntry] = []
        for child in sorted(path.iterdir(), key=lambda p: p.name):
            child_spec = spec.child(child.name)
            if child.is_symlink():
                entries.append(DirectoryEntry(spec=child_spec, kind="symlink"))
            elif child.is_dir():
                dir_spec = child_spec.with_path(child_spec.file_path + "/")
                entries.append(DirectoryEntry(spec=dir_spec, kind="dir"))
            elif child.is_file():
                size = child.stat().st_size
                entries.append(DirectoryEntry(spec=child_spec, kind="file", size=size))
        logger.debug("Listed %s: %d entries", spec.key, len(entries))
        return FetchResult.directory(spec, entries)

    def _fetch_sync(self, spec: PathSpec) -> FetchResult:
        path = self._safe_path(spec)
        try:
            if path.is_dir():
                return self._list(spec, path)
            size = path.stat().st_size
            if size > self.max_file_bytes:
                raise SizeLimitExceeded(
                    f"{spec.key} is {size} bytes, above the {self.max_file_bytes} byte file limit",
                    spec=spec.key,
                    size=size,
                    limit=self.max_file_bytes,
                )
            content = path.read_bytes()
        except FileNotFoundError as err:
            raise NotFoundError(f"Local file not found: {spec.file_path}", spec=spec.key) from err
        except OSError as err:
            raise FetchError(
                f"Cannot read {spec.file_path}: {err}", spec=spec.key, cause=err
            ) from err
        return FetchResult.file(spec, content)

    async def fetch(self, spec: PathSpec) -> FetchResult:
        return await asyncio.to_thread(self._fetch_sync, spec)

    def _stat_sync(self, spec: PathSpec) -> int | None:
        path = self._safe_path(spec)
        try:
            return path.stat().st_size if path.is_file() else None
        except OSError:
            return None

    async def stat(self, spec: PathSpec) -> int | None:
        return await asyncio.to_thread(self._stat_sync, spec)

    async def close(self) -> None:
        return None
