"""Default configuration for the studyhub package."""

from __future__ import annotations

from studyhub.config.config import StudyhubConfig
from studyhub.config.identity import IdentityConfig
from studyhub.config.logging import LoggingConfig
from studyhub.config.store import StoreConfig

DEFAULT_CONFIG = StudyhubConfig(
    profile="default",
    store=StoreConfig(),
    identity=IdentityConfig(),
    logging=LoggingConfig(),
)
"""Default configuration instance.

Examples
--------
>>> DEFAULT_CONFIG.store.backend
'dynamodb'
"""


def get_default_config() -> StudyhubConfig:
    """Get a copy of the default configuration.

    Returns
    -------
    StudyhubConfig
        A deep copy of the default configuration, so callers may modify it
        freely.
    """
    return DEFAULT_CONFIG.model_copy(deep=True)
