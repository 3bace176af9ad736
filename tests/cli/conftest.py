"""Test fixtures for CLI tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner
from pytest_mock import MockerFixture

from studyhub.config.logging import LoggingConfig, configure_logging
from studyhub.service import StudyhubServices


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide Click CLI test runner.

    Returns
    -------
    CliRunner
        Click test runner.
    """
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep STUDYHUB_ variables of the host out of CLI runs.

    Logging handlers installed by a command are removed afterwards.
    """
    for key in list(os.environ):
        if key.startswith("STUDYHUB_"):
            monkeypatch.delenv(key)
    yield
    configure_logging(LoggingConfig(console=False))


@pytest.fixture
def cli_services(services: StudyhubServices, mocker: MockerFixture) -> StudyhubServices:
    """Make every command use the shared in-memory services.

    Parameters
    ----------
    services : StudyhubServices
        Stores over the test document store.
    mocker : MockerFixture
        Pytest mocker fixture.

    Returns
    -------
    StudyhubServices
        The same services, for arranging and asserting state.
    """
    mocker.patch.object(StudyhubServices, "from_config", return_value=services)
    return services


@pytest.fixture
def write_data(tmp_path: Path):
    """Provide a helper writing a YAML data file.

    Returns
    -------
    Callable[[str, object], Path]
        Writes the value under the given file name and returns its path.
    """

    def write(name: str, value: object) -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(value))
        return path

    return write
