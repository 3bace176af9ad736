"""Main configuration model for the studyhub package."""

from __future__ import annotations

from pydantic import BaseModel, Field

from studyhub.config.identity import IdentityConfig
from studyhub.config.logging import LoggingConfig
from studyhub.config.store import StoreConfig


class StudyhubConfig(BaseModel):
    """Main configuration for the studyhub package.

    Parameters
    ----------
    profile : str
        Configuration profile name.
    store : StoreConfig
        Document store configuration.
    identity : IdentityConfig
        Caller identity configuration.
    logging : LoggingConfig
        Logging configuration.

    Examples
    --------
    >>> config = StudyhubConfig()
    >>> config.profile
    'default'
    >>> config.store.experiments_table
    'studyhub-experiments'
    """

    profile: str = Field(default="default", description="Configuration profile")
    store: StoreConfig = Field(
        default_factory=StoreConfig, description="Store configuration"
    )
    identity: IdentityConfig = Field(
        default_factory=IdentityConfig, description="Identity configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
