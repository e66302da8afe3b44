"""Tests for configuration loading, env overrides and the global config."""

from pathlib import Path

import pytest

from contextpack.budget import BudgetMode
from contextpack.foundation.config import (
    ContextPackConfig,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)
from contextpack.foundation.errors import ConfigError
from contextpack.resolver import ResolveOptions


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_defaults(self, project_dir: Path) -> None:
        config = load_config()
        assert config == ContextPackConfig()
        assert config.budget.mode == "progressive"
        assert config.resolver.concurrency == 5

    def test_project_file_overrides_defaults(self, project_dir: Path) -> None:
        _write(
            project_dir / ".contextpack" / "config.yaml",
            "budget:\n  max_files: 7\nresolver:\n  exclude_patterns: ['\\.lock$']\n",
        )

        config = load_config()

        assert config.budget.max_files == 7
        assert config.budget.max_tokens == 200_000
        assert config.resolver.exclude_patterns == ("\\.lock$",)

    def test_explicit_path_wins(self, project_dir: Path, tmp_path: Path) -> None:
        _write(project_dir / ".contextpack" / "config.yaml", "fetch:\n  max_retries: 1\n")
        explicit = _write(tmp_path / "other.yaml", "fetch:\n  max_retries: 6\n")

        assert load_config(explicit).fetch.max_retries == 6

    def test_user_file_used_as_fallback(self, project_dir: Path) -> None:
        _write(Path.home() / ".contextpack" / "config.yaml", "cache:\n  ttl_seconds: 60\n")
        assert load_config().cache.ttl_seconds == 60

    def test_invalid_yaml(self, project_dir: Path) -> None:
        _write(project_dir / ".contextpack" / "config.yaml", "budget: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config()

    def test_non_mapping(self, project_dir: Path) -> None:
        _write(project_dir / ".contextpack" / "config.yaml", "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config()

    def test_unknown_key(self, project_dir: Path) -> None:
        _write(project_dir / ".contextpack" / "config.yaml", "budget:\n  max_filez: 3\n")
        with pytest.raises(ConfigError, match="max_filez"):
            load_config()

    def test_bad_mode(self, project_dir: Path) -> None:
        _write(project_dir / ".contextpack" / "config.yaml", "budget:\n  mode: lenient\n")
        with pytest.raises(ConfigError, match="budget.mode"):
            load_config()


class TestEnvOverrides:
    def test_section_keys(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONTEXTPACK_BUDGET_MODE", "strict")
        monkeypatch.setenv("CONTEXTPACK_FETCH_MAX_RETRIES", "4")
        monkeypatch.setenv("CONTEXTPACK_FETCH_PER_FETCH_TIMEOUT", "2.5")
        monkeypatch.setenv("CONTEXTPACK_RESOLVER_DEADLINE", "none")
        monkeypatch.setenv("CONTEXTPACK_DEBUG", "true")

        config = load_config()

        assert config.budget.mode == "strict"
        assert config.fetch.max_retries == 4
        assert config.fetch.per_fetch_timeout == 2.5
        assert config.resolver.deadline is None
        assert config.debug is True

    def test_env_beats_file(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write(project_dir / ".contextpack" / "config.yaml", "resolver:\n  concurrency: 2\n")
        monkeypatch.setenv("CONTEXTPACK_RESOLVER_CONCURRENCY", "9")
        assert load_config().resolver.concurrency == 9

    def test_comma_separated_patterns(
        self, project_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CONTEXTPACK_RESOLVER_EXCLUDE_PATTERNS", "node_modules, \\.lock$ ,")
        config = load_config()
        assert config.resolver.exclude_patterns == ("node_modules", "\\.lock$")

    def test_unknown_override_ignored(
        self, project_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CONTEXTPACK_FETCH_NOPE", "1")
        monkeypatch.setenv("CONTEXTPACK_WHATEVER_KEY", "1")
        assert load_config() == ContextPackConfig()


class TestGlobalConfig:
    def test_cached_until_reset(self, project_dir: Path) -> None:
        first = get_config()
        assert get_config() is first

        reset_config()

        assert get_config() is not first

    def test_load_replaces_global(self, project_dir: Path, tmp_path: Path) -> None:
        path = _write(tmp_path / "c.yaml", "budget:\n  max_images: 3\n")
        load_config(path)
        assert get_config().budget.max_images == 3


class TestSaveDefaultConfig:
    def test_written_file_loads_as_defaults(self, project_dir: Path) -> None:
        path = save_default_config()

        assert path == Path(".contextpack/config.yaml")
        assert path.exists()
        assert load_config() == ContextPackConfig()

    def test_custom_path(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "dir" / "config.yaml"
        assert save_default_config(target) == target
        assert "budget:" in target.read_text(encoding="utf-8")


class TestResolveOptionsFromConfig:
    def test_maps_sections(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONTEXTPACK_BUDGET_MODE", "strict")
        monkeypatch.setenv("CONTEXTPACK_RESOLVER_DEADLINE", "30")
        monkeypatch.setenv("CONTEXTPACK_FETCH_MAX_RETRIES", "0")

        options = ResolveOptions.from_config(load_config())

        assert options.limits.mode is BudgetMode.STRICT
        assert options.deadline == 30
        assert options.max_retries == 0
        assert options.max_depth == 3

    def test_invalid_values_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResolveOptions(concurrency=0)
