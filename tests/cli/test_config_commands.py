"""Tests for config CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from studyhub.cli.main import cli


class TestShow:
    """Tests for config show."""

    def test_show_json(self, cli_runner: CliRunner) -> None:
        """Test the merged configuration prints as JSON."""
        result = cli_runner.invoke(cli, ["-p", "test", "config", "show", "-f", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["store"]["backend"] == "memory"
        assert data["profile"] == "test"

    def test_show_key(self, cli_runner: CliRunner) -> None:
        """Test a single value by dotted path."""
        result = cli_runner.invoke(cli, ["-p", "dev", "config", "show", "-k", "store.endpoint_url"])
        assert result.exit_code == 0
        assert result.output.strip() == "http://localhost:8000"

    def test_show_missing_key(self, cli_runner: CliRunner) -> None:
        """Test unknown keys fail."""
        result = cli_runner.invoke(cli, ["config", "show", "-k", "store.nope"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_config_file_overrides(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test a config file is merged over the profile."""
        config_file = tmp_path / "studyhub.yaml"
        config_file.write_text("store:\n  experiments_table: lab-experiments\n")
        result = cli_runner.invoke(
            cli,
            ["-c", str(config_file), "config", "show", "-k", "store.experiments_table"],
        )
        assert result.output.strip() == "lab-experiments"

    def test_malformed_config_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test unreadable files exit with 1."""
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("store: [unclosed\n")
        result = cli_runner.invoke(cli, ["-c", str(config_file), "config", "show"])
        assert result.exit_code == 1
        assert "Failed to load configuration" in result.output


class TestValidate:
    """Tests for config validate."""

    def test_valid(self, cli_runner: CliRunner) -> None:
        """Test built-in profiles are valid."""
        result = cli_runner.invoke(cli, ["-p", "prod", "config", "validate"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_invalid(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test problems are listed and exit with 1."""
        config_file = tmp_path / "prod.yaml"
        config_file.write_text("identity:\n  local_mode: true\n")
        result = cli_runner.invoke(
            cli, ["-p", "prod", "config", "validate", "--config-file", str(config_file)]
        )
        assert result.exit_code == 1
        assert "identity.local_mode must be disabled" in result.output


class TestExport:
    """Tests for config export."""

    def test_export_stdout(self, cli_runner: CliRunner) -> None:
        """Test only non-default values are printed."""
        result = cli_runner.invoke(cli, ["-p", "test", "config", "export"])
        assert result.exit_code == 0
        assert yaml.safe_load(result.output)["store"] == {"backend": "memory"}

    def test_export_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        """Test writing to a file."""
        output = tmp_path / "out" / "dev.yaml"
        result = cli_runner.invoke(cli, ["-p", "dev", "config", "export", "-o", str(output)])
        assert result.exit_code == 0
        assert yaml.safe_load(output.read_text())["profile"] == "dev"


def test_profiles(cli_runner: CliRunner) -> None:
    """Test every profile is listed."""
    result = cli_runner.invoke(cli, ["config", "profiles"])
    assert result.exit_code == 0
    for name in ("default", "dev", "prod", "test"):
        assert f"• {name}" in result.output
