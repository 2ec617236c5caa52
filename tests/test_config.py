"""Tests for configuration loading.

This module tests the configuration system including:
- Schema defaults and validation
- Config file discovery and parsing (YAML, TOML, JSON, rc files)
- Environment variable overrides
- Priority merging of defaults, file, environment and CLI arguments
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

import mobsentry.config.loader as loader_module
from mobsentry.config import (
    ConfigSource,
    LogLevel,
    MobsentryConfig,
    OutputFormatConfig,
    find_config_file,
    get_env_overrides,
    load_config,
    read_config_file,
    resolve_config,
    validate_config_file,
)
from mobsentry.config.env import get_config_path_from_env, get_env_var_docs
from mobsentry.config.schema import CacheSettings, OutputSettings, ScanSettings
from mobsentry.core.cache import DEFAULT_CACHE_FILE
from mobsentry.core.engine import DEFAULT_CONCURRENCY
from mobsentry.core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear MOBSENTRY_* variables and user config dirs for every test."""
    for key in list(os.environ):
        if key.startswith("MOBSENTRY_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(loader_module, "USER_CONFIG_DIRS", [])


class TestSchema:
    """Test schema defaults and validation."""

    def test_defaults(self) -> None:
        config = MobsentryConfig.model_validate({})
        assert config.scan.concurrency == DEFAULT_CONCURRENCY
        assert config.scan.exclude == []
        assert config.scan.ignored_rules == []
        assert config.cache.enabled is True
        assert config.cache.file_name == DEFAULT_CACHE_FILE
        assert config.cache.max_age_days == 7
        assert config.output.format == OutputFormatConfig.TABLE
        assert config.log_level == LogLevel.WARNING

    @pytest.mark.parametrize("value,expected", [(4, 4), (0, 1), (-3, 1), ("6", 6), (None, 10)])
    def test_concurrency_clamped(self, value, expected: int) -> None:
        assert ScanSettings(concurrency=value).concurrency == expected

    def test_comma_separated_lists(self) -> None:
        settings = ScanSettings(exclude="legacy/, *.gen.ts", ignored_rules="A,,B")
        assert settings.exclude == ["legacy/", "*.gen.ts"]
        assert settings.ignored_rules == ["A", "B"]

    def test_cache_max_age_ms(self) -> None:
        assert CacheSettings(max_age_days=1).max_age_ms == 86_400_000

    @pytest.mark.parametrize("name", ["", "dir/cache.json", "..\\cache.json"])
    def test_cache_file_name_must_be_plain(self, name: str) -> None:
        with pytest.raises(ValueError):
            CacheSettings(file_name=name)

    def test_negative_max_age_rejected(self) -> None:
        with pytest.raises(ValueError):
            CacheSettings(max_age_days=-1)

    def test_format_case_insensitive(self) -> None:
        assert OutputSettings(format="JSON").format == OutputFormatConfig.JSON

    def test_invalid_format(self) -> None:
        with pytest.raises(ValueError, match="format must be one of"):
            OutputSettings(format="sarif")

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValueError, match="log_level must be one of"):
            MobsentryConfig.model_validate({"log_level": "loud"})


class TestConfigFiles:
    """Test config file loading and discovery."""

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yml"
        path.write_text("scan:\n  concurrency: 4\n  exclude:\n    - legacy/\noutput:\n  format: json\n")

        config = MobsentryConfig.model_validate(read_config_file(path))

        assert config.scan.concurrency == 4
        assert config.scan.exclude == ["legacy/"]
        assert config.output.format == OutputFormatConfig.JSON

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yaml"
        path.write_text("")
        assert read_config_file(path) == {}

    def test_load_toml(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.toml"
        path.write_text('[scan]\nignored_rules = ["HARDCODED_SECRET"]\n\n[cache]\nenabled = false\n')

        config = MobsentryConfig.model_validate(read_config_file(path))

        assert config.scan.ignored_rules == ["HARDCODED_SECRET"]
        assert config.cache.enabled is False

    def test_load_json(self, tmp_path: Path) -> None:
        path = tmp_path / "mobsentry.config.json"
        path.write_text(json.dumps({"cache": {"file_name": "scan.json", "max_age_days": 1}}))

        config = MobsentryConfig.model_validate(read_config_file(path))

        assert config.cache.file_name == "scan.json"
        assert config.cache.max_age_ms == 86_400_000

    @pytest.mark.parametrize(
        "content",
        ['{"scan": {"concurrency": 2}}', "scan:\n  concurrency: 2\n"],
    )
    def test_rc_file_auto_detect(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / ".mobsentryrc"
        path.write_text(content)
        assert read_config_file(path) == {"scan": {"concurrency": 2}}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            read_config_file(tmp_path / "missing.yml")

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not a file"):
            read_config_file(tmp_path)

    @pytest.mark.parametrize(
        "name,content",
        [
            (".mobsentry.yml", "scan: [unclosed"),
            (".mobsentry.yml", "- just\n- a list\n"),
            (".mobsentry.toml", "[scan\n"),
            ("mobsentry.config.json", "{not json"),
            ("mobsentry.config.json", "[1, 2]"),
        ],
    )
    def test_malformed_files(self, tmp_path: Path, name: str, content: str) -> None:
        path = tmp_path / name
        path.write_text(content)
        with pytest.raises(ConfigError):
            read_config_file(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yml"
        path.write_text("output:\n  format: sarif\n")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(config_path=path)

    def test_find_in_start_directory(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yml"
        path.write_text("scan: {}\n")
        assert find_config_file(tmp_path) == path

    def test_find_in_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.toml"
        path.write_text("")
        nested = tmp_path / "app" / "src"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == path

    def test_find_prefers_yaml(self, tmp_path: Path) -> None:
        (tmp_path / ".mobsentry.toml").write_text("")
        (tmp_path / ".mobsentry.yml").write_text("")
        assert find_config_file(tmp_path).name == ".mobsentry.yml"

    def test_find_from_file_path(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yml"
        path.write_text("")
        source = tmp_path / "index.js"
        source.write_text("")
        assert find_config_file(source) == path

    def test_find_in_user_config_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        user_dir = tmp_path / "home"
        user_dir.mkdir()
        path = user_dir / "mobsentry.config.json"
        path.write_text("{}")
        project = tmp_path / "project"
        project.mkdir()
        monkeypatch.setattr(loader_module, "USER_CONFIG_DIRS", [user_dir])

        assert find_config_file(project) == path

    def test_deeply_nested_json(self, tmp_path: Path) -> None:
        path = tmp_path / "mobsentry.config.json"
        path.write_text("[" * 100_000 + "]" * 100_000)
        with pytest.raises(ConfigError, match="Invalid JSON"):
            read_config_file(path)

    def test_validate_config_file(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yml"
        path.write_text("output:\n  format: sarif\ncache:\n  max_age_days: -2\n")

        errors = validate_config_file(path)

        assert len(errors) == 2
        assert any(error.startswith("output.format") for error in errors)
        assert any(error.startswith("cache.max_age_days") for error in errors)

    def test_validate_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yml"
        path.write_text("scan:\n  concurrency: 3\n")
        assert validate_config_file(path) == []

    def test_validate_missing_file(self, tmp_path: Path) -> None:
        errors = validate_config_file(tmp_path / "missing.yml")
        assert len(errors) == 1
        assert "not found" in errors[0]


class TestEnvironment:
    """Test environment variable overrides."""

    def test_no_variables(self) -> None:
        assert get_env_overrides() == {}

    def test_all_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOBSENTRY_CONCURRENCY", "3")
        monkeypatch.setenv("MOBSENTRY_EXCLUDE", "legacy/, vendor/")
        monkeypatch.setenv("MOBSENTRY_IGNORED_RULES", "HARDCODED_SECRET")
        monkeypatch.setenv("MOBSENTRY_CACHE", "off")
        monkeypatch.setenv("MOBSENTRY_OUTPUT_FORMAT", "JSON")
        monkeypatch.setenv("MOBSENTRY_QUIET", "yes")
        monkeypatch.setenv("MOBSENTRY_VERBOSE", "0")
        monkeypatch.setenv("MOBSENTRY_LOG_LEVEL", "DEBUG")

        assert get_env_overrides() == {
            "scan": {
                "concurrency": 3,
                "exclude": ["legacy/", "vendor/"],
                "ignored_rules": ["HARDCODED_SECRET"],
            },
            "cache": {"enabled": False},
            "output": {"format": "json", "quiet": True, "verbose": False},
            "log_level": "debug",
        }

    def test_invalid_number_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOBSENTRY_CONCURRENCY", "many")
        assert get_env_overrides() == {}

    def test_config_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "custom.yml"
        path.write_text("")
        monkeypatch.setenv("MOBSENTRY_CONFIG_PATH", str(path))
        assert get_config_path_from_env() == path

    def test_config_path_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOBSENTRY_CONFIG_PATH", str(tmp_path / "missing.yml"))
        assert get_config_path_from_env() is None

    def test_docs_cover_variables(self) -> None:
        docs = get_env_var_docs()
        assert "MOBSENTRY_CONCURRENCY" in docs
        assert all(name.startswith("MOBSENTRY_") for name in docs)


class TestLoadConfig:
    """Test priority merging across sources."""

    def test_defaults_only(self, tmp_path: Path) -> None:
        resolved = resolve_config(start_path=tmp_path)
        assert resolved.config.scan.concurrency == DEFAULT_CONCURRENCY
        assert resolved.config_file is None
        assert resolved.sources == {}
        assert resolved.source_of("scan.concurrency") == ConfigSource.DEFAULT

    def test_file_discovered_from_start_path(self, tmp_path: Path) -> None:
        (tmp_path / ".mobsentry.yml").write_text("scan:\n  concurrency: 4\n")

        resolved = resolve_config(start_path=tmp_path)

        assert resolved.config.scan.concurrency == 4
        assert resolved.config_file == tmp_path / ".mobsentry.yml"
        assert resolved.source_of("scan.concurrency") == ConfigSource.CONFIG_FILE
        assert resolved.source_of("scan.exclude") == ConfigSource.DEFAULT

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.toml"
        path.write_text("[scan]\nconcurrency = 2\n")
        assert load_config(config_path=path, start_path=tmp_path).scan.concurrency == 2

    def test_env_config_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "custom.yml"
        path.write_text("scan:\n  concurrency: 7\n")
        monkeypatch.setenv("MOBSENTRY_CONFIG_PATH", str(path))
        assert load_config(start_path=tmp_path / "elsewhere").scan.concurrency == 7

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".mobsentry.yml").write_text("scan:\n  concurrency: 4\n")
        monkeypatch.setenv("MOBSENTRY_CONCURRENCY", "6")

        resolved = resolve_config(start_path=tmp_path)

        assert resolved.config.scan.concurrency == 6
        assert resolved.source_of("scan.concurrency") == ConfigSource.ENVIRONMENT

    def test_cli_overrides_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOBSENTRY_CONCURRENCY", "6")

        resolved = resolve_config(cli_args={"concurrency": 2}, start_path=tmp_path)

        assert resolved.config.scan.concurrency == 2
        assert resolved.source_of("scan.concurrency") == ConfigSource.CLI

    def test_use_env_false(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOBSENTRY_CONCURRENCY", "6")
        assert load_config(use_env=False, start_path=tmp_path).scan.concurrency == DEFAULT_CONCURRENCY

    def test_use_file_false(self, tmp_path: Path) -> None:
        (tmp_path / ".mobsentry.yml").write_text("scan:\n  concurrency: 4\n")
        config = load_config(use_file=False, start_path=tmp_path)
        assert config.scan.concurrency == DEFAULT_CONCURRENCY

    def test_no_cache_flag(self, tmp_path: Path) -> None:
        config = load_config(cli_args={"no_cache": True}, start_path=tmp_path)
        assert config.cache.enabled is False

    def test_no_cache_false_keeps_file_value(self, tmp_path: Path) -> None:
        (tmp_path / ".mobsentry.yml").write_text("cache:\n  enabled: false\n")
        config = load_config(cli_args={"no_cache": False}, start_path=tmp_path)
        assert config.cache.enabled is False

    def test_cli_lists(self, tmp_path: Path) -> None:
        (tmp_path / ".mobsentry.yml").write_text("scan:\n  exclude:\n    - legacy/\n")

        config = load_config(
            cli_args={"exclude": [], "ignore": ("HARDCODED_SECRET",), "format": "json"},
            start_path=tmp_path,
        )

        assert config.scan.exclude == ["legacy/"]
        assert config.scan.ignored_rules == ["HARDCODED_SECRET"]
        assert config.output.format == OutputFormatConfig.JSON

    def test_invalid_cli_value(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(cli_args={"format": "sarif"}, start_path=tmp_path)

    def test_invalid_file(self, tmp_path: Path) -> None:
        (tmp_path / ".mobsentry.yml").write_text("scan: [unclosed")
        with pytest.raises(ConfigError):
            load_config(start_path=tmp_path)

    def test_unknown_cli_setting(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown CLI setting"):
            load_config(cli_args={"threads": 4}, start_path=tmp_path)

    def test_load_config_matches_resolved(self, tmp_path: Path) -> None:
        (tmp_path / ".mobsentry.yml").write_text("output:\n  format: json\n")
        config = load_config(start_path=tmp_path)
        assert config == resolve_config(start_path=tmp_path).config
