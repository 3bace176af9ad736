"""Configuration profiles for the studyhub package.

Pre-configured profiles for local development against DynamoDB Local,
production, and tests running on the in-memory store.
"""

from __future__ import annotations

from studyhub.config.config import StudyhubConfig
from studyhub.config.defaults import DEFAULT_CONFIG
from studyhub.config.identity import IdentityConfig
from studyhub.config.logging import LoggingConfig
from studyhub.config.store import StoreConfig

# development profile: DynamoDB Local, fixed local identity, verbose logging
DEV_CONFIG = StudyhubConfig(
    profile="dev",
    store=StoreConfig(
        backend="dynamodb",
        region="eu-west-2",
        endpoint_url="http://localhost:8000",
        max_attempts=2,  # fail fast against a local emulator
    ),
    identity=IdentityConfig(local_mode=True),
    logging=LoggingConfig(level="DEBUG", console=True),
)
"""Development configuration profile.

Examples
--------
>>> DEV_CONFIG.store.endpoint_url
'http://localhost:8000'
>>> DEV_CONFIG.identity.local_mode
True
"""

# production profile: adaptive retries, plain log lines for collectors
PROD_CONFIG = StudyhubConfig(
    profile="prod",
    store=StoreConfig(
        backend="dynamodb",
        max_attempts=8,
        retry_mode="adaptive",
    ),
    identity=IdentityConfig(local_mode=False),
    logging=LoggingConfig(level="WARNING", console=True, rich=False),
)
"""Production configuration profile.

Examples
--------
>>> PROD_CONFIG.store.retry_mode
'adaptive'
"""

# test profile: in-memory store, local identity, quiet logging
TEST_CONFIG = StudyhubConfig(
    profile="test",
    store=StoreConfig(backend="memory"),
    identity=IdentityConfig(local_mode=True),
    logging=LoggingConfig(level="WARNING", console=False),
)
"""Test configuration profile.

Examples
--------
>>> TEST_CONFIG.store.backend
'memory'
"""

PROFILES: dict[str, StudyhubConfig] = {
    "default": DEFAULT_CONFIG,
    "dev": DEV_CONFIG,
    "prod": PROD_CONFIG,
    "test": TEST_CONFIG,
}


def get_profile(name: str) -> StudyhubConfig:
    """Get a configuration profile by name.

    Parameters
    ----------
    name : str
        Profile name (default, dev, prod, test).

    Returns
    -------
    StudyhubConfig
        A deep copy of the profile configuration.

    Raises
    ------
    ValueError
        If the profile does not exist.

    Examples
    --------
    >>> get_profile("test").store.backend
    'memory'
    """
    if name not in PROFILES:
        available = ", ".join(list_profiles())
        raise ValueError(f"Profile '{name}' not found. Available profiles: {available}")
    return PROFILES[name].model_copy(deep=True)


def list_profiles() -> list[str]:
    """List available profile names.

    Returns
    -------
    list[str]
        Profile names, sorted.
    """
    return sorted(PROFILES)
