"""Caller identity configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class IdentityConfig(BaseModel):
    """Configuration for resolving the caller identity.

    In local mode every request is attributed to a fixed identity, which is
    how offline development and tests run without a token issuer.

    Parameters
    ----------
    local_mode : bool
        Use the fixed local identity instead of token claims.
    local_username : str
        Username of the local identity.
    local_is_researcher : bool
        Whether the local identity has the researcher role.

    Examples
    --------
    >>> IdentityConfig().local_username
    'testuser'
    """

    local_mode: bool = Field(default=False, description="Use the local identity")
    local_username: str = Field(default="testuser", description="Local username")
    local_is_researcher: bool = Field(
        default=True, description="Local identity is a researcher"
    )
