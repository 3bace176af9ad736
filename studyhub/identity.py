"""Caller identity and role checks.

The core consumes identity as an opaque capability: a username plus a
researcher flag. Token verification happens upstream; this module only
reads already-verified claims.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from studyhub.errors import ForbiddenError, UnauthenticatedError

if TYPE_CHECKING:
    from studyhub.config.identity import IdentityConfig

RESEARCHER_GROUPS = frozenset({"researcher", "researchers"})
USERNAME_CLAIMS = ("username", "cognito:username")


class CallerIdentity(BaseModel):
    """Who is calling, and whether they may manage experiments.

    Attributes
    ----------
    username : str | None
        Authenticated username; None or blank when unauthenticated.
    is_researcher : bool
        Whether the caller holds the researcher role.

    Examples
    --------
    >>> CallerIdentity(username="alice", is_researcher=True).is_researcher
    True
    """

    username: str | None = Field(default=None, description="Authenticated username")
    is_researcher: bool = Field(default=False, description="Researcher role")


def require_authenticated(identity: CallerIdentity | None) -> str:
    """Return the caller's username.

    Raises
    ------
    UnauthenticatedError
        If there is no identity or its username is blank.
    """
    username = (identity.username or "").strip() if identity is not None else ""
    if not username:
        raise UnauthenticatedError()
    return username


def require_researcher(identity: CallerIdentity | None) -> str:
    """Return the caller's username, requiring the researcher role.

    Raises
    ------
    UnauthenticatedError
        If the caller is not authenticated.
    ForbiddenError
        If the caller is not a researcher.
    """
    username = require_authenticated(identity)
    if identity is None or not identity.is_researcher:
        raise ForbiddenError(
            f"User '{username}' is not a researcher", username=username
        )
    return username


def identity_from_claims(claims: Mapping[str, Any]) -> CallerIdentity:
    """Build an identity from verified token claims.

    The username comes from ``username`` or ``cognito:username``. The caller
    is a researcher when ``cognito:groups`` contains a researcher group or
    ``custom:role`` is "researcher".

    Parameters
    ----------
    claims : Mapping[str, Any]
        Verified claims.

    Returns
    -------
    CallerIdentity
        Identity; ``username`` is None when no username claim is present.

    Examples
    --------
    >>> identity_from_claims(
    ...     {"cognito:username": "bob", "cognito:groups": ["researchers"]}
    ... )
    CallerIdentity(username='bob', is_researcher=True)
    """
    username: str | None = None
    for claim in USERNAME_CLAIMS:
        value = claims.get(claim)
        if isinstance(value, str) and value.strip():
            username = value.strip()
            break

    groups = claims.get("cognito:groups") or []
    if isinstance(groups, str):
        groups = [part.strip() for part in groups.split(",")]
    in_group = any(str(group).lower() in RESEARCHER_GROUPS for group in groups)
    role = str(claims.get("custom:role") or "").lower()
    return CallerIdentity(username=username, is_researcher=in_group or role == "researcher")


def local_identity(config: IdentityConfig) -> CallerIdentity:
    """Return the fixed identity used in local mode."""
    return CallerIdentity(
        username=config.local_username, is_researcher=config.local_is_researcher
    )


def resolve_identity(
    claims: Mapping[str, Any] | None, config: IdentityConfig
) -> CallerIdentity:
    """Resolve the caller identity for one request.

    Parameters
    ----------
    claims : Mapping[str, Any] | None
        Verified token claims, or None when the request carried no token.
    config : IdentityConfig
        Identity configuration.

    Returns
    -------
    CallerIdentity
        The local identity in local mode, otherwise the identity read from
        the claims (anonymous when there are none).
    """
    if config.local_mode:
        return local_identity(config)
    if not claims:
        return CallerIdentity()
    return identity_from_claims(claims)
