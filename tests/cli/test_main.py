"""Tests for the root command group."""

from __future__ import annotations

from click.testing import CliRunner

from studyhub import __version__
from studyhub.cli.main import cli


def test_version(cli_runner: CliRunner) -> None:
    """Test --version prints the package version."""
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_lazy_commands(cli_runner: CliRunner) -> None:
    """Test every command group is listed without being imported first."""
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for name in ("config", "experiments", "members", "questionnaires"):
        assert name in result.output


def test_unknown_command(cli_runner: CliRunner) -> None:
    """Test unknown commands are usage errors."""
    result = cli_runner.invoke(cli, ["nope"])
    assert result.exit_code == 2


def test_invalid_profile(cli_runner: CliRunner) -> None:
    """Test profiles are restricted to the built-in ones."""
    result = cli_runner.invoke(cli, ["--profile", "staging", "config", "show"])
    assert result.exit_code == 2
