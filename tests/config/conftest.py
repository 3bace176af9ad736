"""Pytest fixtures for config module tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from studyhub.config.logging import LoggingConfig, configure_logging


@pytest.fixture
def sample_yaml_file(tmp_path: Path) -> Path:
    """Create a sample YAML config file for testing.

    Parameters
    ----------
    tmp_path : Path
        Temporary directory path provided by pytest.

    Returns
    -------
    Path
        Path to the created YAML config file.
    """
    config_file = tmp_path / "studyhub.yaml"
    config_file.write_text(
        """
store:
  experiments_table: lab-experiments
  region: us-east-1
logging:
  level: DEBUG
"""
    )
    return config_file


@pytest.fixture
def malformed_yaml_file(tmp_path: Path) -> Path:
    """Create a YAML file with a syntax error."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("store: [unclosed\n")
    return config_file


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every STUDYHUB_ variable from the environment."""
    for key in list(os.environ):
        if key.startswith("STUDYHUB_"):
            monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture(autouse=True)
def reset_package_logging():
    """Remove handlers a test installed on the package logger."""
    yield
    configure_logging(LoggingConfig(console=False))
