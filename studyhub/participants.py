"""Participant-facing reads: enrolled experiments and the sync bundle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from studyhub.data.timestamps import utc_timestamp
from studyhub.errors import ForbiddenError, NotFoundError
from studyhub.experiments.models import ExperimentRecord, ExperimentSummary
from studyhub.identity import require_authenticated
from studyhub.protocol_sessions.models import ProtocolSessionRecord
from studyhub.references import collect_questionnaire_ids, dedupe_ids
from studyhub.sessions.models import SessionRecord
from studyhub.store.keys import normalize_key
from studyhub.tasks.models import TaskRecord

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.experiments.store import ExperimentStore
    from studyhub.identity import CallerIdentity
    from studyhub.memberships.store import MembershipStore
    from studyhub.protocol_sessions.store import ProtocolSessionStore
    from studyhub.sessions.store import SessionStore
    from studyhub.tasks.store import TaskStore

logger = logging.getLogger(__name__)


class ExperimentBundle(BaseModel):
    """Everything a participant device needs to run an experiment.

    Attributes
    ----------
    experiment : ExperimentRecord
        The experiment itself.
    sessions : list[SessionRecord]
        Session occurrences, restricted to those changed after ``since``
        when a sync time was given.
    protocol_sessions : list[ProtocolSessionRecord]
        Protocol templates, filtered the same way.
    tasks : list[TaskRecord]
        Tasks referenced by session types or protocol sequences.
    questionnaire_ids : list[str]
        Questionnaires the experiment references.
    sync_timestamp : str
        Read time; pass it back as ``since`` on the next sync.
    """

    experiment: ExperimentRecord
    sessions: list[SessionRecord] = Field(default_factory=list)
    protocol_sessions: list[ProtocolSessionRecord] = Field(default_factory=list)
    tasks: list[TaskRecord] = Field(default_factory=list)
    questionnaire_ids: list[str] = Field(default_factory=list)
    sync_timestamp: str


class ParticipantView:
    """Read-only joins over the per-entity stores."""

    def __init__(
        self,
        experiments: ExperimentStore,
        memberships: MembershipStore,
        sessions: SessionStore,
        protocol_sessions: ProtocolSessionStore,
        tasks: TaskStore,
    ) -> None:
        self.experiments = experiments
        self.memberships = memberships
        self.sessions = sessions
        self.protocol_sessions = protocol_sessions
        self.tasks = tasks

    def my_experiments(
        self, participant_id: str, *, cancel: CancellationToken | None = None
    ) -> list[ExperimentSummary]:
        """List the experiments a participant is enrolled in, with their role.

        Memberships whose experiment no longer exists are skipped.
        """
        summaries: list[ExperimentSummary] = []
        for membership in self.memberships.list_for_participant(
            participant_id, cancel=cancel
        ):
            record = self.experiments.get(membership.experiment_id, cancel=cancel)
            if record is None:
                logger.warning(
                    f"Skipping orphaned membership {membership.experiment_id}/"
                    f"{membership.participant_id}"
                )
                continue
            summaries.append(
                ExperimentSummary(
                    id=record.id,
                    name=record.data.name,
                    description=record.data.description,
                    status=record.status,
                    role=membership.role,
                )
            )
        return summaries

    def bundle(
        self,
        experiment_id: str,
        caller: CallerIdentity,
        since: str | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> ExperimentBundle:
        """Read an experiment with its sessions, protocol sessions, and tasks.

        Parameters
        ----------
        experiment_id : str
            Experiment to read.
        caller : CallerIdentity
            Must be a member of the experiment or a researcher.
        since : str | None
            Previous ``sync_timestamp``; when given, only sessions and
            protocol sessions updated after it are returned.

        Raises
        ------
        NotFoundError
            If the experiment does not exist.
        ForbiddenError
            If the caller is neither a member nor a researcher.
        """
        username = require_authenticated(caller)
        sync_timestamp = utc_timestamp()
        experiment = self.experiments.get(experiment_id, cancel=cancel)
        if experiment is None:
            raise NotFoundError("Experiment", experiment_id)
        if not caller.is_researcher and (
            self.memberships.get(experiment.id, username, cancel=cancel) is None
        ):
            raise ForbiddenError(
                f"User '{username}' is not a member of experiment '{experiment.id}'",
                username=username,
            )

        sessions = self.sessions.list_since(experiment.id, since, cancel=cancel)
        protocols = self.protocol_sessions.list(experiment.id, cancel=cancel)
        if since is not None:
            protocols = [
                p for p in protocols if p.updated_at is not None and p.updated_at > since
            ]

        task_keys = dedupe_ids(
            [
                *(
                    key
                    for session_type in experiment.data.session_types.values()
                    for key in session_type.tasks
                ),
                *(key for protocol in protocols for key in protocol.data.task_sequence),
            ]
        )
        tasks: list[TaskRecord] = []
        for key in task_keys:
            task = self.tasks.get(normalize_key(key), cancel=cancel)
            if task is None:
                logger.warning(f"Experiment {experiment.id} references unknown task {key}")
                continue
            tasks.append(task)

        return ExperimentBundle(
            experiment=experiment,
            sessions=sessions,
            protocol_sessions=protocols,
            tasks=tasks,
            questionnaire_ids=collect_questionnaire_ids(
                experiment.data.session_types, experiment.questionnaire_config.schedule
            ),
            sync_timestamp=sync_timestamp,
        )
