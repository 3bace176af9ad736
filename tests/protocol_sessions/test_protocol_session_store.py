"""Tests for ProtocolSessionStore."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from studyhub.errors import ForbiddenError, NotFoundError, ValidationError
from studyhub.experiments.models import CreateExperimentRequest, ExperimentData
from studyhub.protocol_sessions.models import ProtocolSessionData
from studyhub.service import StudyhubServices


@pytest.fixture
def experiment(services: StudyhubServices, researcher):
    """Create experiment E1."""
    return services.experiments.create(
        CreateExperimentRequest(id="E1", data=ExperimentData(name="Study")), researcher
    )


def _daily(**overrides) -> ProtocolSessionData:
    fields = {
        "name": "Daily check-in",
        "cadence": "daily",
        "task_sequence": ["pvt"],
        "window_start_local": "08:00",
        "window_end_local": "11:30",
    }
    return ProtocolSessionData(**{**fields, **overrides})


class TestModel:
    """Tests for ProtocolSessionData validation."""

    def test_window_order(self) -> None:
        """Test windows must start before they end."""
        with pytest.raises(PydanticValidationError):
            _daily(window_start_local="12:00")

    def test_local_time_format(self) -> None:
        """Test HH:MM format."""
        with pytest.raises(PydanticValidationError):
            _daily(window_start_local="8am")


class TestStore:
    """Tests for upsert, list, and delete."""

    def test_upsert_is_idempotent(
        self, services: StudyhubServices, researcher, experiment
    ) -> None:
        """Test repeating an upsert keeps one row and its creation time."""
        first = services.protocol_sessions.upsert("E1", "daily", _daily(), researcher)
        second = services.protocol_sessions.upsert("E1", "DAILY", _daily(), researcher)
        assert first.key == "DAILY"
        assert second.created_at == first.created_at
        assert second.data == first.data
        assert len(services.protocol_sessions.list("E1")) == 1

    def test_list_ordered_by_key(
        self, services: StudyhubServices, researcher, experiment
    ) -> None:
        """Test rows list by key and exclude other experiment rows."""
        services.protocol_sessions.upsert("E1", "WEEKLY", _daily(cadence="weekly"), researcher)
        services.protocol_sessions.upsert("E1", "FIRST", _daily(cadence="once"), researcher)
        assert [p.key for p in services.protocol_sessions.list("E1")] == ["FIRST", "WEEKLY"]

    def test_experiment_required(self, services: StudyhubServices, researcher) -> None:
        """Test protocol sessions need an existing experiment."""
        with pytest.raises(NotFoundError):
            services.protocol_sessions.upsert("E9", "DAILY", _daily(), researcher)

    def test_invalid_key(self, services: StudyhubServices, researcher, experiment) -> None:
        """Test keys follow the researcher key format."""
        with pytest.raises(ValidationError):
            services.protocol_sessions.upsert("E1", "d", _daily(), researcher)

    def test_participant_forbidden(
        self, services: StudyhubServices, participant, experiment
    ) -> None:
        """Test participants cannot edit the protocol."""
        with pytest.raises(ForbiddenError):
            services.protocol_sessions.upsert("E1", "DAILY", _daily(), participant)

    def test_delete(self, services: StudyhubServices, researcher, experiment) -> None:
        """Test deletion."""
        services.protocol_sessions.upsert("E1", "DAILY", _daily(), researcher)
        services.protocol_sessions.delete("E1", "daily", researcher)
        assert services.protocol_sessions.get("E1", "DAILY") is None
        with pytest.raises(NotFoundError):
            services.protocol_sessions.delete("E1", "DAILY", researcher)
