"""Tests for caller identity and role checks."""

from __future__ import annotations

import pytest

from studyhub.config.identity import IdentityConfig
from studyhub.errors import ForbiddenError, UnauthenticatedError
from studyhub.identity import (
    CallerIdentity,
    identity_from_claims,
    require_authenticated,
    require_researcher,
    resolve_identity,
)


class TestRequireAuthenticated:
    """Tests for require_authenticated."""

    def test_returns_username(self) -> None:
        """Test the username is returned trimmed."""
        assert require_authenticated(CallerIdentity(username=" bob ")) == "bob"

    @pytest.mark.parametrize("identity", [None, CallerIdentity(), CallerIdentity(username="  ")])
    def test_rejects_missing_username(self, identity: CallerIdentity | None) -> None:
        """Test missing or blank usernames are unauthenticated."""
        with pytest.raises(UnauthenticatedError):
            require_authenticated(identity)


class TestRequireResearcher:
    """Tests for require_researcher."""

    def test_researcher_passes(self, researcher: CallerIdentity) -> None:
        """Test researchers pass."""
        assert require_researcher(researcher) == "alice"

    def test_participant_forbidden(self, participant: CallerIdentity) -> None:
        """Test participants are forbidden."""
        with pytest.raises(ForbiddenError) as exc_info:
            require_researcher(participant)
        assert exc_info.value.username == "bob"

    def test_anonymous_unauthenticated(self, anonymous: CallerIdentity) -> None:
        """Test authentication is checked before the role."""
        with pytest.raises(UnauthenticatedError):
            require_researcher(anonymous)


class TestClaims:
    """Tests for reading verified claims."""

    def test_cognito_groups(self) -> None:
        """Test the researchers group grants the role."""
        identity = identity_from_claims(
            {"cognito:username": "alice", "cognito:groups": ["Researchers"]}
        )
        assert identity == CallerIdentity(username="alice", is_researcher=True)

    def test_comma_separated_groups(self) -> None:
        """Test groups given as one string."""
        identity = identity_from_claims({"username": "a", "cognito:groups": "staff, researcher"})
        assert identity.is_researcher

    def test_custom_role(self) -> None:
        """Test the custom role claim."""
        assert identity_from_claims({"username": "a", "custom:role": "Researcher"}).is_researcher

    def test_participant(self) -> None:
        """Test callers without the role."""
        identity = identity_from_claims({"username": "bob"})
        assert identity.username == "bob"
        assert not identity.is_researcher

    def test_no_username(self) -> None:
        """Test claims without a username give an anonymous identity."""
        assert identity_from_claims({"cognito:groups": ["researchers"]}).username is None


class TestResolveIdentity:
    """Tests for resolve_identity."""

    def test_local_mode(self) -> None:
        """Test local mode ignores claims."""
        config = IdentityConfig(local_mode=True)
        identity = resolve_identity({"username": "mallory"}, config)
        assert identity == CallerIdentity(username="testuser", is_researcher=True)

    def test_no_claims(self) -> None:
        """Test requests without a token are anonymous."""
        assert resolve_identity(None, IdentityConfig()) == CallerIdentity()

    def test_claims(self) -> None:
        """Test claims are read outside local mode."""
        assert resolve_identity({"username": "bob"}, IdentityConfig()).username == "bob"
