"""Root pytest configuration for studyhub tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from studyhub.identity import CallerIdentity
from studyhub.questionnaires.models import (
    CreateQuestionnaireRequest,
    Question,
    QuestionnaireData,
)
from studyhub.service import StudyhubServices
from studyhub.store.memory import MemoryDocumentStore

EXPERIMENTS_TABLE = "experiments"
QUESTIONNAIRES_TABLE = "questionnaires"
RESPONSES_TABLE = "responses"


@pytest.fixture(scope="session")
def tests_dir() -> Path:
    """Get tests directory path.

    Returns
    -------
    Path
        Path to tests directory
    """
    return Path(__file__).parent


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    """Provide an empty in-memory document store.

    Returns
    -------
    MemoryDocumentStore
        Fresh store.
    """
    return MemoryDocumentStore()


@pytest.fixture
def services(memory_store: MemoryDocumentStore) -> StudyhubServices:
    """Wire every entity store over the in-memory document store.

    Parameters
    ----------
    memory_store : MemoryDocumentStore
        Shared document store.

    Returns
    -------
    StudyhubServices
        Stores using the test table names.
    """
    return StudyhubServices.from_store(
        memory_store,
        experiments_table=EXPERIMENTS_TABLE,
        questionnaires_table=QUESTIONNAIRES_TABLE,
        responses_table=RESPONSES_TABLE,
    )


@pytest.fixture
def researcher() -> CallerIdentity:
    """Provide an authenticated researcher identity."""
    return CallerIdentity(username="alice", is_researcher=True)


@pytest.fixture
def participant() -> CallerIdentity:
    """Provide an authenticated participant identity."""
    return CallerIdentity(username="bob", is_researcher=False)


@pytest.fixture
def anonymous() -> CallerIdentity:
    """Provide an identity without a username."""
    return CallerIdentity()


def make_questionnaire(questionnaire_id: str, name: str = "Mood") -> CreateQuestionnaireRequest:
    """Build a minimal valid questionnaire create request."""
    return CreateQuestionnaireRequest(
        id=questionnaire_id,
        data=QuestionnaireData(
            name=name,
            questions=[Question(id="q1", text="How do you feel?", type="text")],
        ),
    )


@pytest.fixture
def create_questionnaires(services: StudyhubServices, researcher: CallerIdentity):
    """Provide a helper that creates questionnaires by id.

    Returns
    -------
    Callable[..., None]
        Creates one questionnaire per id given.
    """

    def create(*questionnaire_ids: str) -> None:
        for questionnaire_id in questionnaire_ids:
            services.questionnaires.create(make_questionnaire(questionnaire_id), researcher)

    return create


@pytest.fixture
def questionnaire_request():
    """Provide the builder of minimal questionnaire create requests.

    Returns
    -------
    Callable[..., CreateQuestionnaireRequest]
        ``make_questionnaire``.
    """
    return make_questionnaire
