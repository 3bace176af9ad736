"""Pytest fixtures for experiment tests."""

from __future__ import annotations

import pytest

from studyhub.experiments.models import (
    CreateExperimentRequest,
    ExperimentData,
    QuestionnaireConfig,
    SessionType,
)


@pytest.fixture
def experiment_request() -> CreateExperimentRequest:
    """Provide a create request referencing PQ and MOOD.

    Returns
    -------
    CreateExperimentRequest
        Request with a fixed id.
    """
    return CreateExperimentRequest(
        id="sleep-study",
        data=ExperimentData(
            name="Sleep study",
            description="Daily sleep diary",
            session_types={
                "daily": SessionType(name="Daily", questionnaires=["PQ"], tasks=["PVT"])
            },
        ),
        questionnaire_config=QuestionnaireConfig(schedule={"MOOD": "every_session"}),
    )
