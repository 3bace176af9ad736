"""Tests for ResponseStore."""

from __future__ import annotations

import pytest

from studyhub.errors import ConflictError, ForbiddenError, NotFoundError, UnauthenticatedError
from studyhub.identity import CallerIdentity
from studyhub.responses.models import QuestionAnswer, ResponseData
from studyhub.service import StudyhubServices


def _data(session_id: str = "S1", task_id: str = "MOOD_Q", questionnaire_id: str = "MOOD"):
    return ResponseData(
        experiment_id="E1",
        session_id=session_id,
        task_id=task_id,
        questionnaire_id=questionnaire_id,
        responses=[QuestionAnswer(question_id="q1", answer=4)],
    )


class TestCrud:
    """Tests for recording and modifying responses."""

    def test_create_for_caller(self, services: StudyhubServices, participant) -> None:
        """Test responses belong to the calling participant."""
        record = services.responses.create(_data(), participant, response_id="R1")
        assert record.participant_id == "bob"
        assert record.data.responses[0].answer == 4
        assert services.responses.get("R1") == record

    def test_duplicate(self, services: StudyhubServices, participant) -> None:
        """Test response ids are unique."""
        services.responses.create(_data(), participant, response_id="R1")
        with pytest.raises(ConflictError):
            services.responses.create(_data(), participant, response_id="R1")

    def test_anonymous(self, services: StudyhubServices, anonymous) -> None:
        """Test anonymous callers cannot submit."""
        with pytest.raises(UnauthenticatedError):
            services.responses.create(_data(), anonymous)

    def test_owner_updates(self, services: StudyhubServices, participant) -> None:
        """Test the owner can replace the answers."""
        created = services.responses.create(_data(), participant, response_id="R1")
        updated = services.responses.update("R1", _data(questionnaire_id="PQ"), participant)
        assert updated.data.questionnaire_id == "PQ"
        assert updated.created_at == created.created_at

    def test_other_participant_forbidden(self, services: StudyhubServices, participant) -> None:
        """Test other participants cannot modify a response."""
        services.responses.create(_data(), participant, response_id="R1")
        mallory = CallerIdentity(username="mallory")
        with pytest.raises(ForbiddenError):
            services.responses.update("R1", _data(), mallory)
        with pytest.raises(ForbiddenError):
            services.responses.delete("R1", mallory)

    def test_researcher_deletes(
        self, services: StudyhubServices, participant, researcher
    ) -> None:
        """Test researchers may delete any response."""
        services.responses.create(_data(), participant, response_id="R1")
        services.responses.delete("R1", researcher)
        assert services.responses.get("R1") is None

    def test_missing(self, services: StudyhubServices, participant) -> None:
        """Test modifying an unknown response."""
        with pytest.raises(NotFoundError):
            services.responses.update("R9", _data(), participant)


class TestQueries:
    """Tests for the experiment and participant indexes."""

    @pytest.fixture
    def recorded(self, services: StudyhubServices, participant) -> StudyhubServices:
        """Record responses across sessions and tasks."""
        services.responses.create(_data("S1", "MOOD_Q"), participant, response_id="R1")
        services.responses.create(_data("S1", "PVT", "PQ"), participant, response_id="R2")
        services.responses.create(_data("S2", "MOOD_Q"), participant, response_id="R3")
        services.responses.create(
            _data("S1", "MOOD_Q"), CallerIdentity(username="carol"), response_id="R4"
        )
        return services

    def test_by_experiment_scope(self, recorded: StudyhubServices) -> None:
        """Test narrowing by session and task."""
        responses = recorded.responses
        assert {r.id for r in responses.list_for_experiment("E1")} == {"R1", "R2", "R3", "R4"}
        assert {r.id for r in responses.list_for_experiment("E1", "S1")} == {"R1", "R2", "R4"}
        assert {r.id for r in responses.list_for_experiment("E1", "S1", "PVT")} == {"R2"}

    def test_by_participant(self, recorded: StudyhubServices) -> None:
        """Test filters on the participant index."""
        responses = recorded.responses
        assert {r.id for r in responses.list_for_participant("bob")} == {"R1", "R2", "R3"}
        assert {r.id for r in responses.list_for_participant("bob", questionnaire_id="PQ")} == {
            "R2"
        }
        assert responses.list_for_participant("bob", experiment_id="E2") == []

    def test_list_since(self, services: StudyhubServices, participant, mocker) -> None:
        """Test the strict cursor on the participant index."""
        mocker.patch(
            "studyhub.responses.store.utc_timestamp",
            side_effect=[
                "2026-01-01T00:00:00.000000+00:00",
                "2026-01-02T00:00:00.000000+00:00",
                "2026-01-03T00:00:00.000000+00:00",
            ],
        )
        for response_id in ("R1", "R2", "R3"):
            services.responses.create(_data(), participant, response_id=response_id)
        changed = services.responses.list_since("bob", "2026-01-02T00:00:00.000000+00:00")
        assert [r.id for r in changed] == ["R3"]
