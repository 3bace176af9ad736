"""Configuration system for the studyhub package.

Examples
--------
>>> from studyhub.config import get_default_config, get_profile
>>> get_default_config().profile
'default'
>>> get_profile("dev").logging.level
'DEBUG'
"""

from __future__ import annotations

from studyhub.config.config import StudyhubConfig
from studyhub.config.defaults import DEFAULT_CONFIG, get_default_config
from studyhub.config.env import load_from_env
from studyhub.config.identity import IdentityConfig
from studyhub.config.loader import load_config, load_yaml_file, merge_configs
from studyhub.config.logging import LoggingConfig, configure_logging
from studyhub.config.profiles import (
    DEV_CONFIG,
    PROD_CONFIG,
    PROFILES,
    TEST_CONFIG,
    get_profile,
    list_profiles,
)
from studyhub.config.serialization import save_yaml, to_yaml
from studyhub.config.store import StoreConfig
from studyhub.config.validation import validate_config

__all__ = [
    # Main config
    "StudyhubConfig",
    # Config sections
    "StoreConfig",
    "IdentityConfig",
    "LoggingConfig",
    # Defaults
    "DEFAULT_CONFIG",
    "get_default_config",
    # Profiles
    "DEV_CONFIG",
    "PROD_CONFIG",
    "TEST_CONFIG",
    "PROFILES",
    "get_profile",
    "list_profiles",
    # Loading
    "load_config",
    "load_yaml_file",
    "merge_configs",
    # Environment
    "load_from_env",
    # Logging
    "configure_logging",
    # Validation
    "validate_config",
    # Serialization
    "to_yaml",
    "save_yaml",
]
