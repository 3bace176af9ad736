"""Environment variable support for configuration.

Variables named ``STUDYHUB_<SECTION>__<FIELD>`` override configuration
values, e.g. ``STUDYHUB_STORE__BACKEND=memory``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

ENV_PREFIX = "STUDYHUB_"


def parse_env_value(value: str) -> Any:
    """Parse an environment variable value to a Python value.

    Handles bool, int, float, Path, comma-separated list, and string.

    Parameters
    ----------
    value : str
        Raw environment variable value.

    Returns
    -------
    Any
        Parsed value.

    Examples
    --------
    >>> parse_env_value("true")
    True
    >>> parse_env_value("8")
    8
    >>> parse_env_value("http://localhost:8000")
    'http://localhost:8000'
    >>> parse_env_value("a,b")
    ['a', 'b']
    """
    lowered = value.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    if value.startswith(("/", "./", "~/", "../")):
        return Path(value).expanduser()

    if "," in value:
        return [item.strip() for item in value.split(",")]

    return value


def env_to_nested_dict(env_vars: dict[str, str], prefix: str) -> dict[str, Any]:
    """Convert flat environment variables to a nested dictionary.

    Parameters
    ----------
    env_vars : dict[str, str]
        Environment variables to convert.
    prefix : str
        Prefix to strip from variable names.

    Returns
    -------
    dict[str, Any]
        Nested configuration dictionary.

    Examples
    --------
    >>> env_to_nested_dict({"STUDYHUB_STORE__REGION": "us-east-1"}, "STUDYHUB_")
    {'store': {'region': 'us-east-1'}}
    """
    result: dict[str, Any] = {}

    for key, value in env_vars.items():
        if not key.startswith(prefix):
            continue

        parts = [part.lower() for part in key[len(prefix) :].split("__")]
        parsed_value = parse_env_value(value)

        current = result
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = parsed_value

    return result


def load_from_env(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Load configuration values from environment variables.

    Parameters
    ----------
    prefix : str
        Environment variable prefix to filter on.

    Returns
    -------
    dict[str, Any]
        Nested configuration dictionary from the environment.
    """
    env_vars = {k: v for k, v in os.environ.items() if k.startswith(prefix)}
    return env_to_nested_dict(env_vars, prefix)
