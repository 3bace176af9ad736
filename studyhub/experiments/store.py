"""Experiment store: CRUD, listing, and guarded lifecycle transitions.

Every write is a single conditional store call, so concurrent writers to the
same experiment are serialized by the store: among racing creates,
transitions, updates, or deletes of one key at most one wins, and the others
fail with ``ConflictError`` or ``NotFoundError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studyhub.data.identifiers import generate_id
from studyhub.data.timestamps import utc_timestamp
from studyhub.errors import ConditionFailedError, ConflictError, NotFoundError, ValidationError
from studyhub.experiments.lifecycle import (
    INITIAL_STATUS,
    LEGACY_STATUS_PATH,
    STATUS_PATH,
    allowed_sources,
    require_target,
    resolve_status,
)
from studyhub.experiments.models import (
    CreateExperimentRequest,
    ExperimentData,
    ExperimentRecord,
    ExperimentSummary,
)
from studyhub.identity import require_researcher
from studyhub.references import collect_questionnaire_ids
from studyhub.store.base import Query
from studyhub.store.conditions import (
    AttributeNotExists,
    Condition,
    Equals,
    any_equals,
    exists_item,
    not_exists_item,
)
from studyhub.store.keys import GSI1, ExperimentKeys, require_id

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.identity import CallerIdentity
    from studyhub.references import ReferentialValidator, ValidationReport
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)

ENTITY = "Experiment"
SUMMARY_PROJECTION = ("PK", "status", "data.name", "data.description", "data.Status")


def status_condition(sources: tuple[str, ...]) -> Condition:
    """Condition: the item exists and its resolved status is one of ``sources``.

    The legacy ``data.Status`` only counts when the top-level status is
    absent or empty, matching ``resolve_status`` precedence.
    """
    top_level = any_equals(STATUS_PATH, sources)
    shadowed = AttributeNotExists(STATUS_PATH) | Equals(STATUS_PATH, "")
    legacy = shadowed & any_equals(LEGACY_STATUS_PATH, sources)
    return exists_item() & (top_level | legacy)


def _require_name(data: ExperimentData) -> None:
    if not data.name.strip():
        raise ValidationError("Experiment name is required", field="name")


class ExperimentStore:
    """Persistence and lifecycle for experiments.

    Parameters
    ----------
    store : DocumentStore
        Document store holding the experiments table.
    table : str
        Experiments table name.
    validator : ReferentialValidator
        Checks questionnaire references on create and update.

    Examples
    --------
    >>> from studyhub.store import MemoryDocumentStore
    >>> from studyhub.references import ReferentialValidator, StoreQuestionnaireDirectory
    >>> backend = MemoryDocumentStore()
    >>> validator = ReferentialValidator(
    ...     StoreQuestionnaireDirectory(backend, "questionnaires")
    ... )
    >>> experiments = ExperimentStore(backend, "experiments", validator)
    >>> experiments.list()
    []
    """

    def __init__(
        self, store: DocumentStore, table: str, validator: ReferentialValidator
    ) -> None:
        self.store = store
        self.table = table
        self.validator = validator

    def list(self, *, cancel: CancellationToken | None = None) -> list[ExperimentSummary]:
        """List every experiment, newest first.

        Reads the listing index with a projection; full payloads are never
        fetched.

        Returns
        -------
        list[ExperimentSummary]
            Summaries; empty when there are no experiments.
        """
        items = self.store.query(
            self.table,
            Query(
                partition_value=ExperimentKeys.list_partition,
                index=GSI1,
                forward=False,
                projection=SUMMARY_PROJECTION,
            ),
            cancel=cancel,
        )
        return [ExperimentSummary.from_item(item) for item in items]

    def get(
        self, experiment_id: str, *, cancel: CancellationToken | None = None
    ) -> ExperimentRecord | None:
        """Read one experiment with a strongly consistent read.

        Returns
        -------
        ExperimentRecord | None
            The experiment, or None if the id is blank or unknown.
        """
        if not (experiment_id or "").strip():
            return None
        item = self.store.get_item(
            self.table,
            ExperimentKeys.primary(experiment_id.strip()),
            consistent=True,
            cancel=cancel,
        )
        if item is None:
            logger.debug(f"Experiment {experiment_id} not found")
            return None
        record = ExperimentRecord.from_item(item)
        if record.status_source == "data.Status":
            logger.info(f"Experiment {record.id} status read from legacy data.Status")
        return record

    def _require(
        self, experiment_id: str, *, cancel: CancellationToken | None = None
    ) -> ExperimentRecord:
        record = self.get(experiment_id, cancel=cancel)
        if record is None:
            raise NotFoundError(ENTITY, experiment_id)
        return record

    def create(
        self,
        request: CreateExperimentRequest,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> ExperimentRecord:
        """Create an experiment in Draft status.

        Parameters
        ----------
        request : CreateExperimentRequest
            Id (optional), payload, and questionnaire schedule.
        performed_by : CallerIdentity
            Researcher creating the experiment.
        cancel : CancellationToken | None
            Cancellation signal.

        Returns
        -------
        ExperimentRecord
            The stored experiment.

        Raises
        ------
        UnauthenticatedError
            If the caller has no username.
        ForbiddenError
            If the caller is not a researcher.
        ValidationError
            If the name is blank or any referenced questionnaire is missing;
            the error lists every missing id.
        ConflictError
            If an experiment with this id already exists.
        """
        username = require_researcher(performed_by)
        _require_name(request.data)
        experiment_id = (request.id or "").strip() or generate_id()

        questionnaire_ids = collect_questionnaire_ids(
            request.data.session_types, request.questionnaire_config.schedule
        )
        self.validator.assert_valid(questionnaire_ids, cancel=cancel)

        data = request.data.model_copy(update={"questionnaire_ids": questionnaire_ids})
        now = utc_timestamp()
        item = {
            **ExperimentKeys.primary(experiment_id).as_dict(),
            **ExperimentKeys.all_experiments(now).as_dict(),
            "type": ENTITY,
            STATUS_PATH: INITIAL_STATUS,
            "data": data.to_payload(),
            "questionnaireConfig": request.questionnaire_config.to_payload(),
            "createdBy": username,
            "createdAt": now,
            "updatedBy": username,
            "updatedAt": now,
        }
        try:
            self.store.put_item(
                self.table, item, condition=not_exists_item(), cancel=cancel
            )
        except ConditionFailedError as e:
            raise ConflictError(f"Experiment '{experiment_id}' already exists") from e

        logger.info(f"Experiment {experiment_id} created by {username}")
        return ExperimentRecord.from_item(item)

    def update(
        self,
        experiment_id: str,
        data: ExperimentData,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> ExperimentRecord:
        """Replace an experiment's payload; status is never touched.

        Questionnaire references are revalidated from the session types only.

        Raises
        ------
        ValidationError
            If the id or name is blank or a referenced questionnaire is
            missing.
        NotFoundError
            If the experiment does not exist.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        _require_name(data)

        questionnaire_ids = collect_questionnaire_ids(data.session_types)
        self.validator.assert_valid(questionnaire_ids, cancel=cancel)
        payload = data.model_copy(update={"questionnaire_ids": questionnaire_ids})

        # per-field SET keeps attributes outside the model, such as data.Status
        updates: dict[str, object] = {
            f"data.{name}": value for name, value in payload.to_payload().items()
        }
        updates["updatedBy"] = username
        updates["updatedAt"] = utc_timestamp()
        try:
            item = self.store.update_item(
                self.table,
                ExperimentKeys.primary(experiment_id),
                updates,
                condition=exists_item(),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, experiment_id) from e

        logger.info(f"Experiment {experiment_id} updated by {username}")
        return ExperimentRecord.from_item(item)

    def delete(
        self,
        experiment_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Delete the experiment's root record.

        Memberships, protocol sessions, and sessions are left in place.

        Raises
        ------
        ValidationError
            If the id is blank.
        NotFoundError
            If the experiment does not exist.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        try:
            self.store.delete_item(
                self.table,
                ExperimentKeys.primary(experiment_id),
                condition=exists_item(),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, experiment_id) from e
        logger.info(f"Experiment {experiment_id} deleted by {username}")

    def transition(
        self,
        experiment_id: str,
        target: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> ExperimentRecord:
        """Move an experiment to ``target`` status.

        A single conditional update checks that the current status is one
        of the allowed sources, so exactly one of several concurrent
        transitions from the same status succeeds.

        Parameters
        ----------
        experiment_id : str
            Experiment id.
        target : str
            "Active", "Paused", or "Closed".
        performed_by : CallerIdentity
            Researcher performing the transition.
        cancel : CancellationToken | None
            Cancellation signal.

        Returns
        -------
        ExperimentRecord
            The experiment after the transition.

        Raises
        ------
        ValidationError
            If ``target`` is not a reachable status or the id is blank.
        NotFoundError
            If the experiment does not exist.
        ConflictError
            If the current status does not allow the transition; carries
            the attempted and current status.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        target_status = require_target(target)
        key = ExperimentKeys.primary(experiment_id)
        try:
            item = self.store.update_item(
                self.table,
                key,
                {
                    STATUS_PATH: target_status,
                    "updatedBy": username,
                    "updatedAt": utc_timestamp(),
                },
                condition=status_condition(allowed_sources(target_status)),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            current = self.store.get_item(self.table, key, consistent=True, cancel=cancel)
            if current is None:
                raise NotFoundError(ENTITY, experiment_id) from e
            current_status = resolve_status(current).status or None
            logger.info(
                f"Experiment {experiment_id} transition to {target_status} rejected "
                f"(current status {current_status})"
            )
            raise ConflictError(
                f"Cannot transition experiment '{experiment_id}' to {target_status}",
                attempted_status=target_status,
                current_status=current_status,
            ) from e

        logger.info(f"Experiment {experiment_id} moved to {target_status} by {username}")
        return ExperimentRecord.from_item(item)

    def activate(
        self,
        experiment_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> ExperimentRecord:
        """Transition to Active (from Draft or Paused)."""
        return self.transition(experiment_id, "Active", performed_by, cancel=cancel)

    def pause(
        self,
        experiment_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> ExperimentRecord:
        """Transition to Paused (from Active)."""
        return self.transition(experiment_id, "Paused", performed_by, cancel=cancel)

    def close(
        self,
        experiment_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> ExperimentRecord:
        """Transition to Closed (from Active or Paused)."""
        return self.transition(experiment_id, "Closed", performed_by, cancel=cancel)

    def validate(
        self, experiment_id: str, *, cancel: CancellationToken | None = None
    ) -> ValidationReport:
        """Report missing questionnaire references of a stored experiment.

        Raises
        ------
        NotFoundError
            If the experiment does not exist.
        """
        record = self._require(experiment_id, cancel=cancel)
        return self.validator.report(
            collect_questionnaire_ids(
                record.data.session_types, record.questionnaire_config.schedule
            ),
            cancel=cancel,
        )

    def validate_request(
        self,
        request: CreateExperimentRequest,
        *,
        cancel: CancellationToken | None = None,
    ) -> ValidationReport:
        """Dry-run the reference check of a create request without writing."""
        return self.validator.report(
            collect_questionnaire_ids(
                request.data.session_types, request.questionnaire_config.schedule
            ),
            cancel=cancel,
        )
