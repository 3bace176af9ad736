"""Configuration loading from profiles, YAML files, and the environment."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from studyhub.config.config import StudyhubConfig
from studyhub.config.env import load_from_env
from studyhub.config.profiles import get_profile


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two configuration dictionaries.

    Parameters
    ----------
    base : dict[str, Any]
        Base configuration dictionary.
    override : dict[str, Any]
        Override configuration dictionary; its values take precedence.

    Returns
    -------
    dict[str, Any]
        Merged configuration dictionary.

    Examples
    --------
    >>> merge_configs({"a": 1, "b": {"c": 2}}, {"b": {"d": 3}})
    {'a': 1, 'b': {'c': 2, 'd': 3}}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_file(path: Path | str) -> dict[str, Any]:
    """Load a YAML file as a dictionary.

    Parameters
    ----------
    path : Path | str
        Path to YAML file.

    Returns
    -------
    dict[str, Any]
        Parsed YAML content; empty for an empty file.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist.
    yaml.YAMLError
        If the YAML is malformed.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
            return content if content is not None else {}
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def _overrides_to_dict(overrides: dict[str, Any]) -> dict[str, Any]:
    """Expand ``section__field`` keyword overrides into nested dictionaries."""
    result: dict[str, Any] = {}
    for key, value in overrides.items():
        parts = key.split("__")
        current = result
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value
    return result


def load_config(
    config_path: Path | str | None = None,
    profile: str = "default",
    use_env: bool = True,
    **overrides: Any,
) -> StudyhubConfig:
    """Load configuration with optional file, environment, and overrides.

    Precedence (lowest to highest):
    1. Profile defaults
    2. YAML file values
    3. ``STUDYHUB_`` environment variables
    4. Keyword overrides

    Parameters
    ----------
    config_path : Path | str | None
        Path to YAML config file. If None, uses profile defaults.
    profile : str
        Profile to use as base (default, dev, prod, test).
    use_env : bool
        Whether to apply environment variable overrides.
    **overrides : Any
        Direct overrides, nested with ``__`` (e.g. ``store__backend="memory"``).

    Returns
    -------
    StudyhubConfig
        Loaded and merged configuration.

    Raises
    ------
    FileNotFoundError
        If config_path is specified but doesn't exist.
    yaml.YAMLError
        If the YAML file is malformed.
    pydantic.ValidationError
        If the configuration is invalid.

    Examples
    --------
    >>> config = load_config(profile="test", use_env=False)
    >>> config.store.backend
    'memory'
    >>> load_config(profile="test", use_env=False, logging__level="DEBUG").logging.level
    'DEBUG'
    """
    base_config: dict[str, Any] = get_profile(profile).model_dump()

    if config_path is not None:
        base_config = merge_configs(base_config, load_yaml_file(config_path))

    if use_env:
        base_config = merge_configs(base_config, load_from_env())

    if overrides:
        base_config = merge_configs(base_config, _overrides_to_dict(overrides))

    return StudyhubConfig(**base_config)
