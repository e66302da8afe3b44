"""Tests for the local filesystem source."""

import os
from pathlib import Path

import pytest

from contextpack.fetch import LocalSource
from contextpack.foundation.errors import (
    ErrorCode,
    FetchError,
    InvalidPathError,
    NotFoundError,
    SizeLimitExceeded,
)
from contextpack.paths import PathSpec, parse_path_spec


class TestLocalSource:
    @pytest.mark.asyncio
    async def test_reads_file(self, workspace: Path) -> None:
        source = LocalSource(workspace)
        result = await source.fetch(parse_path_spec("README.md"))
        assert not result.is_directory
        assert result.content == (workspace / "README.md").read_bytes()
        assert result.size == len(result.content)

    @pytest.mark.asyncio
    async def test_lists_directory_sorted(self, workspace: Path) -> None:
        source = LocalSource(workspace)
        result = await source.fetch(parse_path_spec("docs/"))
        assert result.is_directory
        assert [e.spec.file_path for e in result.entries] == [
            "docs/.env",
            "docs/api.md",
            "docs/guide.md",
            "docs/nested/",
        ]
        kinds = {e.name: e.kind for e in result.entries}
        assert kinds["nested"] == "dir"
        assert kinds["api.md"] == "file"
        sizes = {e.name: e.size for e in result.entries}
        assert sizes["api.md"] == len("# API\n")

    @pytest.mark.asyncio
    async def test_directory_without_trailing_slash(self, workspace: Path) -> None:
        result = await LocalSource(workspace).fetch(parse_path_spec("docs"))
        assert result.is_directory

    @pytest.mark.asyncio
    async def test_missing_file(self, workspace: Path) -> None:
        with pytest.raises(NotFoundError):
            await LocalSource(workspace).fetch(parse_path_spec("nope.md"))

    @pytest.mark.asyncio
    async def test_size_limit_checked_before_read(self, workspace: Path) -> None:
        source = LocalSource(workspace, max_file_bytes=4)
        with pytest.raises(SizeLimitExceeded) as exc_info:
            await source.fetch(parse_path_spec("README.md"))
        assert exc_info.value.limit == 4
        assert exc_info.value.size > 4

    @pytest.mark.asyncio
    async def test_symlink_escape_rejected(self, workspace: Path, tmp_path: Path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("secret", encoding="utf-8")
        os.symlink(outside, workspace / "link.txt")

        with pytest.raises(InvalidPathError, match="escapes root"):
            await LocalSource(workspace).fetch(parse_path_spec("link.txt"))

    @pytest.mark.asyncio
    async def test_unparsed_traversal_rejected(self, workspace: Path) -> None:
        """The root check holds even for specs built without the parser."""
        spec = PathSpec(owner="", repo="", file_path="../outside.txt")
        with pytest.raises(InvalidPathError):
            await LocalSource(workspace).fetch(spec)

    @pytest.mark.asyncio
    async def test_symlinks_listed_as_symlinks(self, workspace: Path, tmp_path: Path) -> None:
        os.symlink(workspace / "README.md", workspace / "docs" / "readme-link.md")
        result = await LocalSource(workspace).fetch(parse_path_spec("docs/"))
        kinds = {e.name: e.kind for e in result.entries}
        assert kinds["readme-link.md"] == "symlink"

    @pytest.mark.asyncio
    async def test_stat(self, workspace: Path) -> None:
        source = LocalSource(workspace)
        assert await source.stat(parse_path_spec("tool.exe")) == 64
        assert await source.stat(parse_path_spec("missing.exe")) is None
        assert await source.stat(parse_path_spec("docs/")) is None

    @pytest.mark.asyncio
    async def test_os_error_becomes_fetch_error(self, workspace: Path) -> None:
        spec = parse_path_spec("a" * 300 + ".md")
        with pytest.raises(FetchError) as exc_info:
            await LocalSource(workspace).fetch(spec)
        assert exc_info.value.code is ErrorCode.FETCH_FAILED
        assert isinstance(exc_info.value.cause, OSError)
