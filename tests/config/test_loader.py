"""Tests for configuration loading from YAML files."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from studyhub.config.loader import load_config, load_yaml_file, merge_configs


class TestMergeConfigs:
    """Tests for merge_configs function."""

    def test_merge_flat_dicts(self) -> None:
        """Test merging flat dictionaries."""
        assert merge_configs({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}

    def test_merge_nested_dicts(self) -> None:
        """Test deep merge of nested dictionaries."""
        result = merge_configs({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"d": 4, "e": 5}})
        assert result == {"a": 1, "b": {"c": 2, "d": 4, "e": 5}}

    def test_merge_override_replaces_non_dict(self) -> None:
        """Test that non-dict values are replaced entirely."""
        assert merge_configs({"a": {"b": 1}}, {"a": 2}) == {"a": 2}

    def test_merge_does_not_mutate_base(self) -> None:
        """Test the base dictionary is left unchanged."""
        base = {"a": {"b": 1}}
        merge_configs(base, {"a": {"c": 2}})
        assert base == {"a": {"b": 1}}


class TestLoadYamlFile:
    """Tests for load_yaml_file function."""

    def test_load_valid_file(self, sample_yaml_file: Path) -> None:
        """Test loading a valid YAML file."""
        content = load_yaml_file(sample_yaml_file)
        assert content["store"]["experiments_table"] == "lab-experiments"

    def test_load_empty_file(self, tmp_path: Path) -> None:
        """Test an empty file loads as an empty dictionary."""
        empty = tmp_path / "empty.yaml"
        empty.write_text("")
        assert load_yaml_file(empty) == {}

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "missing.yaml")

    def test_load_malformed_file(self, malformed_yaml_file: Path) -> None:
        """Test malformed YAML raises a YAML error."""
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(malformed_yaml_file)


class TestLoadConfig:
    """Tests for load_config precedence."""

    def test_profile_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test a profile without overrides."""
        config = load_config(profile="test")
        assert config.profile == "test"
        assert config.store.backend == "memory"

    def test_file_overrides_profile(
        self, sample_yaml_file: Path, clean_env: pytest.MonkeyPatch
    ) -> None:
        """Test file values override the profile and keep other fields."""
        config = load_config(config_path=sample_yaml_file, profile="dev")
        assert config.store.experiments_table == "lab-experiments"
        assert config.store.region == "us-east-1"
        assert config.store.endpoint_url == "http://localhost:8000"
        assert config.logging.level == "DEBUG"

    def test_env_overrides_file(
        self, sample_yaml_file: Path, clean_env: pytest.MonkeyPatch
    ) -> None:
        """Test environment variables override the file."""
        clean_env.setenv("STUDYHUB_STORE__REGION", "ap-south-1")
        clean_env.setenv("STUDYHUB_STORE__MAX_ATTEMPTS", "1")
        config = load_config(config_path=sample_yaml_file)
        assert config.store.region == "ap-south-1"
        assert config.store.max_attempts == 1

    def test_env_ignored_when_disabled(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test use_env=False skips the environment."""
        clean_env.setenv("STUDYHUB_STORE__BACKEND", "memory")
        assert load_config(use_env=False).store.backend == "dynamodb"

    def test_keyword_overrides_win(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test keyword overrides have the highest precedence."""
        clean_env.setenv("STUDYHUB_LOGGING__LEVEL", "ERROR")
        config = load_config(profile="test", logging__level="INFO")
        assert config.logging.level == "INFO"

    def test_invalid_value_raises(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test invalid values fail pydantic validation."""
        with pytest.raises(ValidationError):
            load_config(store__max_attempts=0)

    def test_unknown_profile(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test unknown profiles are rejected."""
        with pytest.raises(ValueError, match="not found"):
            load_config(profile="staging")
