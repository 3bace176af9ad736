"""Configuration serialization to YAML."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from studyhub.config.config import StudyhubConfig
from studyhub.config.defaults import get_default_config


def config_to_dict(
    config: StudyhubConfig, include_defaults: bool = False
) -> dict[str, Any]:
    """Convert a configuration to a YAML-ready dictionary.

    Parameters
    ----------
    config : StudyhubConfig
        Configuration to convert.
    include_defaults : bool
        Whether to keep values equal to the defaults.

    Returns
    -------
    dict[str, Any]
        Dictionary with JSON-compatible values.

    Examples
    --------
    >>> from studyhub.config.profiles import get_profile
    >>> config_to_dict(get_profile("test"))["store"]
    {'backend': 'memory'}
    """
    config_dict: dict[str, Any] = config.model_dump(mode="json")
    if include_defaults:
        return config_dict
    default_dict: dict[str, Any] = get_default_config().model_dump(mode="json")
    return _remove_defaults(config_dict, default_dict)


def _remove_defaults(
    config_dict: dict[str, Any], default_dict: dict[str, Any]
) -> dict[str, Any]:
    """Drop values equal to their defaults, recursing into sections."""
    result: dict[str, Any] = {}
    for key, value in config_dict.items():
        if key not in default_dict:
            result[key] = value
        elif isinstance(value, dict) and isinstance(default_dict[key], dict):
            nested_result = _remove_defaults(value, default_dict[key])
            if nested_result:
                result[key] = nested_result
        elif value != default_dict[key]:
            result[key] = value
    return result


def to_yaml(config: StudyhubConfig, include_defaults: bool = False) -> str:
    """Serialize a configuration to a YAML string.

    Parameters
    ----------
    config : StudyhubConfig
        Configuration to serialize.
    include_defaults : bool
        If True, include every field; otherwise only non-default values.

    Returns
    -------
    str
        YAML representation.
    """
    return yaml.dump(
        config_to_dict(config, include_defaults=include_defaults),
        default_flow_style=False,
        sort_keys=True,
        allow_unicode=True,
        indent=2,
    )


def save_yaml(
    config: StudyhubConfig,
    path: Path | str,
    include_defaults: bool = False,
    create_dirs: bool = True,
) -> None:
    """Save a configuration to a YAML file.

    Parameters
    ----------
    config : StudyhubConfig
        Configuration to save.
    path : Path | str
        Destination file.
    include_defaults : bool
        If True, include every field.
    create_dirs : bool
        If True, create missing parent directories.

    Raises
    ------
    FileNotFoundError
        If create_dirs is False and the parent directory doesn't exist.
    """
    path = Path(path)

    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)
    elif not path.parent.exists():
        raise FileNotFoundError(
            f"Parent directory does not exist: {path.parent}. "
            f"Set create_dirs=True to create it automatically."
        )

    path.write_text(to_yaml(config, include_defaults=include_defaults))
