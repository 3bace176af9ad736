"""Tests for configuration serialization."""

from __future__ import annotations

from pathlib import Path

import yaml

from studyhub.config import get_default_config, get_profile, save_yaml, to_yaml
from studyhub.config.loader import load_config
from studyhub.config.serialization import config_to_dict


def test_config_to_dict_drops_defaults() -> None:
    """Test only non-default values are kept."""
    result = config_to_dict(get_profile("test"))
    assert result["store"] == {"backend": "memory"}
    assert result["profile"] == "test"


def test_default_config_serializes_empty() -> None:
    """Test the default configuration has nothing to write."""
    assert config_to_dict(get_default_config()) == {}


def test_include_defaults() -> None:
    """Test every field is written on request."""
    result = config_to_dict(get_default_config(), include_defaults=True)
    assert result["store"]["experiments_table"] == "studyhub-experiments"


def test_to_yaml_is_parseable() -> None:
    """Test YAML output parses back to the same dictionary."""
    config = get_profile("dev")
    assert yaml.safe_load(to_yaml(config)) == config_to_dict(config)


def test_save_yaml_round_trip(tmp_path: Path, monkeypatch) -> None:
    """Test a saved profile loads back equal."""
    for key in ("STUDYHUB_STORE__BACKEND", "STUDYHUB_LOGGING__LEVEL"):
        monkeypatch.delenv(key, raising=False)
    path = tmp_path / "nested" / "studyhub.yaml"
    save_yaml(get_profile("dev"), path)
    assert path.exists()
    loaded = load_config(config_path=path, use_env=False)
    assert loaded == get_profile("dev")
