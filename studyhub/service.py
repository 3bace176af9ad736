"""Wiring of the per-entity stores over one shared document store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from studyhub.experiments.store import ExperimentStore
from studyhub.memberships.store import MembershipStore
from studyhub.participants import ParticipantView
from studyhub.protocol_sessions.store import ProtocolSessionStore
from studyhub.questionnaires.store import QuestionnaireStore
from studyhub.references import ReferentialValidator
from studyhub.responses.store import ResponseStore
from studyhub.sessions.store import SessionStore
from studyhub.store.factory import create_document_store
from studyhub.tasks.store import TaskStore

if TYPE_CHECKING:
    from studyhub.config.config import StudyhubConfig
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudyhubServices:
    """All stores of one deployment.

    Examples
    --------
    >>> from studyhub.config import get_profile
    >>> services = StudyhubServices.from_config(get_profile("test"))
    >>> services.experiments.list()
    []
    """

    document_store: DocumentStore
    experiments: ExperimentStore
    memberships: MembershipStore
    questionnaires: QuestionnaireStore
    tasks: TaskStore
    protocol_sessions: ProtocolSessionStore
    sessions: SessionStore
    responses: ResponseStore
    participants: ParticipantView

    @classmethod
    def from_store(
        cls,
        document_store: DocumentStore,
        *,
        experiments_table: str,
        questionnaires_table: str,
        responses_table: str,
    ) -> StudyhubServices:
        """Build every store over an existing document store."""
        questionnaires = QuestionnaireStore(document_store, questionnaires_table)
        validator = ReferentialValidator(questionnaires)
        experiments = ExperimentStore(document_store, experiments_table, validator)
        memberships = MembershipStore(document_store, experiments_table)
        tasks = TaskStore(document_store, experiments_table, validator)
        protocol_sessions = ProtocolSessionStore(document_store, experiments_table)
        sessions = SessionStore(document_store, experiments_table)
        return cls(
            document_store=document_store,
            experiments=experiments,
            memberships=memberships,
            questionnaires=questionnaires,
            tasks=tasks,
            protocol_sessions=protocol_sessions,
            sessions=sessions,
            responses=ResponseStore(document_store, responses_table),
            participants=ParticipantView(
                experiments, memberships, sessions, protocol_sessions, tasks
            ),
        )

    @classmethod
    def from_config(cls, config: StudyhubConfig) -> StudyhubServices:
        """Build the document store selected by ``config.store`` and every store."""
        document_store = create_document_store(config.store)
        logger.debug(
            f"Services wired on {config.store.backend} backend "
            f"(profile {config.profile})"
        )
        return cls.from_store(
            document_store,
            experiments_table=config.store.experiments_table,
            questionnaires_table=config.store.questionnaires_table,
            responses_table=config.store.responses_table,
        )
