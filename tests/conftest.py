"""Pytest fixtures for contextpack tests."""

import asyncio
import logging
import os
from pathlib import Path

import pytest

from contextpack.cache import ContentCache
from contextpack.fetch import BackoffPolicy, ContentFetcher, FetchResult
from contextpack.foundation.config import reset_config
from contextpack.foundation.errors import NotFoundError
from contextpack.paths import PathSpec
from contextpack.resolver import ContextResolver, ResolveOptions

# Minimal valid PNG header plus padding
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24

NO_BACKOFF = BackoffPolicy(initial=0.0, max_delay=0.0, jitter=0.0)


class FakeSource:
    """In-memory ContentSource keyed by file_path, with per-file latency."""

    def __init__(
        self,
        files: dict[str, bytes],
        *,
        name: str = "local",
        delays: dict[str, float] | None = None,
    ) -> None:
        self.name = name
        self.files = files
        self.delays = delays or {}
        self.calls: list[str] = []

    async def fetch(self, spec: PathSpec) -> FetchResult:
        self.calls.append(spec.key)
        delay = self.delays.get(spec.file_path, 0.0)
        if delay:
            await asyncio.sleep(delay)
        if spec.file_path not in self.files:
            raise NotFoundError(f"Local file not found: {spec.file_path}", spec=spec.key)
        return FetchResult.file(spec, self.files[spec.file_path])

    async def stat(self, spec: PathSpec) -> int | None:
        content = self.files.get(spec.file_path)
        return len(content) if content is not None else None

    async def close(self) -> None:
        return None


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config, tokens and logging handlers out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    for name in list(os.environ):
        if name.startswith("CONTEXTPACK_"):
            monkeypatch.delenv(name, raising=False)

    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]
    saved_level = root_logger.level
    reset_config()
    yield
    reset_config()
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A small project tree for local resolution.

    workspace/
        README.md
        logo.png
        tool.exe
        docs/
            .env
            api.md
            guide.md
            nested/
                deep.md
    """
    root = tmp_path / "workspace"
    (root / "docs" / "nested").mkdir(parents=True)
    (root / "README.md").write_text("# Project\n\nHello.\n", encoding="utf-8")
    (root / "logo.png").write_bytes(PNG_BYTES)
    (root / "tool.exe").write_bytes(b"MZ\x90\x00" + b"\x00" * 60)
    (root / "docs" / ".env").write_text("API_TOKEN=abc\n", encoding="utf-8")
    (root / "docs" / "api.md").write_text("# API\n", encoding="utf-8")
    (root / "docs" / "guide.md").write_text("# Guide\n", encoding="utf-8")
    (root / "docs" / "nested" / "deep.md").write_text("# Deep\n", encoding="utf-8")
    return root


@pytest.fixture
def make_resolver():
    """Factory for a resolver over a FakeSource.

    Returns (resolver, source).
    """

    def _make(
        files: dict[str, bytes],
        *,
        delays: dict[str, float] | None = None,
        cache: ContentCache | None = None,
        **options,
    ) -> tuple[ContextResolver, FakeSource]:
        source = FakeSource(files, delays=delays)
        fetcher = ContentFetcher(local=source, policy=NO_BACKOFF)
        resolver = ContextResolver(fetcher, cache, options=ResolveOptions(**options))
        return resolver, source

    return _make
