"""Tests for the mobsentry CLI.

This module tests the command-line interface using Typer's CliRunner,
including version output, exit codes, output formats, cache flags and
the config subcommands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from conftest import GITHUB_TOKEN
from typer.testing import CliRunner

import mobsentry.config.loader as loader_module
from mobsentry import __version__
from mobsentry.cli.main import EXIT_ERROR, EXIT_FINDINGS, EXIT_SUCCESS, app
from mobsentry.core.cache import DEFAULT_CACHE_FILE

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("MOBSENTRY_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(loader_module, "USER_CONFIG_DIRS", [])


@pytest.fixture
def clean_project(tmp_path: Path) -> Path:
    project = tmp_path / "clean"
    (project / "src").mkdir(parents=True)
    (project / "src" / "App.tsx").write_text("export default function App() {\n  return null;\n}\n")
    return project


class TestVersionOutput:
    """Test --version flag outputs version correctly."""

    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
        assert "mobsentry" in result.output

    def test_help_without_command(self) -> None:
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "scan" in result.output


class TestExitCodes:
    """Test exit codes for clean, failing and erroneous scans."""

    def test_clean_project(self, clean_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(clean_project)])
        assert result.exit_code == EXIT_SUCCESS
        assert "Scan Summary" in result.output

    def test_findings(self, rn_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(rn_project)])
        assert result.exit_code == EXIT_FINDINGS

    def test_missing_path(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["scan", str(tmp_path / "missing")])
        assert result.exit_code == EXIT_ERROR

    def test_invalid_format(self, clean_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(clean_project), "--format", "sarif"])
        assert result.exit_code == EXIT_ERROR

    def test_invalid_config_file(self, clean_project: Path) -> None:
        config_file = clean_project / "broken.yml"
        config_file.write_text("scan: [unclosed")

        result = runner.invoke(app, ["scan", str(clean_project), "--config", str(config_file)])

        assert result.exit_code == EXIT_ERROR

    def test_all_rules_ignored(self, rn_project: Path) -> None:
        result = runner.invoke(
            app,
            [
                "scan",
                str(rn_project),
                "-i",
                "HARDCODED_SECRET",
                "-i",
                "ANDROID_CLEARTEXT_TRAFFIC",
                "-i",
                "IOS_ATS_ARBITRARY_LOADS",
            ],
        )
        assert result.exit_code == EXIT_SUCCESS


class TestJsonOutput:
    """Test the JSON output format."""

    def test_json_findings(self, rn_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(rn_project), "--format", "json", "--no-cache"])

        assert result.exit_code == EXIT_FINDINGS
        data = json.loads(result.stdout)
        assert [finding["ruleId"] for finding in data["findings"]] == [
            "HARDCODED_SECRET",
            "ANDROID_CLEARTEXT_TRAFFIC",
            "IOS_ATS_ARBITRARY_LOADS",
        ]
        assert data["scannedFiles"] == 5
        assert "cachedFiles" not in data

    def test_json_cached_second_run(self, rn_project: Path) -> None:
        runner.invoke(app, ["scan", str(rn_project), "-f", "json"])
        result = runner.invoke(app, ["scan", str(rn_project), "-f", "json"])

        data = json.loads(result.stdout)
        assert data["cachedFiles"] == 5
        assert len(data["findings"]) == 3

    def test_exclude_option(self, rn_project: Path) -> None:
        result = runner.invoke(
            app, ["scan", str(rn_project), "-f", "json", "-e", "android/", "-e", "ios/"]
        )

        data = json.loads(result.stdout)
        assert [finding["ruleId"] for finding in data["findings"]] == ["HARDCODED_SECRET"]

    def test_single_file(self, rn_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(rn_project / "src" / "config.ts"), "-f", "json"])

        assert result.exit_code == EXIT_FINDINGS
        data = json.loads(result.stdout)
        assert data["scannedFiles"] == 1
        assert data["findings"][0]["line"] == 3
        assert GITHUB_TOKEN in data["findings"][0]["snippet"]

    def test_format_from_config_file(self, rn_project: Path) -> None:
        (rn_project / ".mobsentry.yml").write_text("output:\n  format: json\n")

        result = runner.invoke(app, ["scan", str(rn_project)])

        assert json.loads(result.stdout)["scannedFiles"] == 5


class TestCacheFlags:
    """Test --no-cache and --clear-cache."""

    def test_cache_file_written(self, rn_project: Path) -> None:
        runner.invoke(app, ["scan", str(rn_project)])
        assert (rn_project / DEFAULT_CACHE_FILE).exists()

    def test_no_cache(self, rn_project: Path) -> None:
        runner.invoke(app, ["scan", str(rn_project), "--no-cache"])
        assert not (rn_project / DEFAULT_CACHE_FILE).exists()

    def test_clear_cache(self, rn_project: Path) -> None:
        runner.invoke(app, ["scan", str(rn_project)])
        result = runner.invoke(app, ["scan", str(rn_project), "-f", "json", "--clear-cache"])

        data = json.loads(result.stdout)
        assert "cachedFiles" not in data
        assert len(data["findings"]) == 3


class TestConsoleOutput:
    """Test table output and verbosity flags."""

    def test_quiet_clean_project_prints_nothing(self, clean_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(clean_project), "--quiet"])
        assert result.exit_code == EXIT_SUCCESS
        assert result.output.strip() == ""

    def test_quiet_still_reports_findings(self, rn_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(rn_project), "-q"])
        assert result.exit_code == EXIT_FINDINGS
        assert "Scan Summary" in result.output

    def test_verbose_prints_settings(self, clean_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(clean_project), "-v", "-j", "3"])
        assert result.exit_code == EXIT_SUCCESS
        assert "Concurrency:" in result.output

    def test_verbose_reports_progress(self, clean_project: Path) -> None:
        result = runner.invoke(app, ["scan", str(clean_project), "--verbose"])
        assert result.exit_code == EXIT_SUCCESS
        assert "Progress:" in result.output


class TestConfigShow:
    """Test the config show command."""

    def test_defaults_as_yaml(self, clean_project: Path) -> None:
        result = runner.invoke(app, ["config", "show", str(clean_project)])

        assert result.exit_code == EXIT_SUCCESS
        assert "No config file found" in result.output
        assert "concurrency: 10" in result.output

    def test_json_includes_file_values(self, clean_project: Path) -> None:
        (clean_project / ".mobsentry.yml").write_text("scan:\n  concurrency: 4\n")

        result = runner.invoke(app, ["config", "show", str(clean_project), "-f", "json"])

        assert result.exit_code == EXIT_SUCCESS
        data = json.loads(result.stdout)
        assert data["scan"]["concurrency"] == 4
        assert data["output"]["format"] == "table"

    def test_explicit_config_file(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.toml"
        path.write_text("[cache]\nenabled = false\n")

        result = runner.invoke(app, ["config", "show", "--config", str(path), "--format", "json"])

        assert json.loads(result.stdout)["cache"]["enabled"] is False

    def test_sources(self, clean_project: Path) -> None:
        (clean_project / ".mobsentry.yml").write_text("scan:\n  concurrency: 4\n")

        result = runner.invoke(app, ["config", "show", str(clean_project), "--sources"])

        assert result.exit_code == EXIT_SUCCESS
        assert "Config file:" in result.output
        assert "Configuration Sources" in result.output
        assert "config_file" in result.output
        assert "Environment Variables" in result.output

    def test_invalid_format(self, clean_project: Path) -> None:
        result = runner.invoke(app, ["config", "show", str(clean_project), "-f", "xml"])
        assert result.exit_code == EXIT_ERROR
        assert "Unsupported format" in result.output

    def test_broken_config_file(self, clean_project: Path) -> None:
        (clean_project / ".mobsentry.yml").write_text("scan: [unclosed")
        result = runner.invoke(app, ["config", "show", str(clean_project)])
        assert result.exit_code == EXIT_ERROR


class TestConfigValidate:
    """Test the config validate command."""

    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yml"
        path.write_text("scan:\n  concurrency: 3\n")

        result = runner.invoke(app, ["config", "validate", str(path)])

        assert result.exit_code == EXIT_SUCCESS
        assert "Configuration is valid" in result.output

    def test_invalid_settings(self, tmp_path: Path) -> None:
        path = tmp_path / ".mobsentry.yml"
        path.write_text("output:\n  format: sarif\n")

        result = runner.invoke(app, ["config", "validate", str(path)])

        assert result.exit_code == EXIT_ERROR
        assert "Validation failed" in result.output
        assert "output.format" in result.output

    def test_discovers_file_from_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "mobsentry.config.json").write_text('{"scan": {"concurrency": 2}}')
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["config", "validate"])

        assert result.exit_code == EXIT_SUCCESS
        assert "Configuration is valid" in result.output

    def test_no_config_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["config", "validate"])

        assert result.exit_code == EXIT_ERROR
        assert "No config file found" in result.output

    def test_config_without_subcommand_shows_help(self) -> None:
        result = runner.invoke(app, ["config"])
        assert "show" in result.output
        assert "validate" in result.output
