"""Session occurrence store.

Each occurrence has its own partition and an index entry in the
experiment's partition of ``GSI1`` for per-experiment listing. Starting and
completing an occurrence are conditional on its current status, so a
session cannot be started twice.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studyhub.data.identifiers import generate_id
from studyhub.data.timestamps import utc_timestamp
from studyhub.errors import (
    ConditionFailedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from studyhub.identity import require_authenticated, require_researcher
from studyhub.sessions.models import CreateSessionRequest, SessionData, SessionRecord
from studyhub.store.base import Query
from studyhub.store.conditions import Equals, exists_item, not_exists_item
from studyhub.store.keys import (
    GSI1,
    ExperimentKeys,
    SessionKeys,
    normalize_key,
    require_id,
)

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.identity import CallerIdentity
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)

ENTITY = "Session"


class SessionStore:
    """Persistence for scheduled session occurrences.

    Parameters
    ----------
    store : DocumentStore
        Document store holding the experiments table.
    table : str
        Experiments table name.
    """

    def __init__(self, store: DocumentStore, table: str) -> None:
        self.store = store
        self.table = table

    def create(
        self,
        experiment_id: str,
        request: CreateSessionRequest,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> SessionRecord:
        """Schedule a session occurrence.

        Raises
        ------
        NotFoundError
            If the experiment does not exist.
        ValidationError
            If the experiment declares session types and ``session_type`` is
            not one of them.
        ConflictError
            If the session id is already used in this experiment.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        experiment = self.store.get_item(
            self.table, ExperimentKeys.primary(experiment_id), cancel=cancel
        )
        if experiment is None:
            raise NotFoundError("Experiment", experiment_id)

        session_types = (experiment.get("data") or {}).get("sessionTypes") or {}
        session_type = request.data.session_type
        if session_types and session_type not in session_types:
            raise ValidationError(
                f"Unknown session type '{session_type}' for experiment "
                f"'{experiment_id}'",
                field="sessionType",
            )
        if request.task_order is not None:
            task_order = request.task_order
        else:
            task_order = (session_types.get(session_type) or {}).get("tasks") or []

        session_id = (request.session_id or "").strip() or generate_id()
        now = utc_timestamp()
        item = {
            **SessionKeys.primary(experiment_id, session_id).as_dict(),
            **SessionKeys.experiment_sessions(experiment_id, session_id).as_dict(),
            "type": ENTITY,
            "experimentId": experiment_id,
            "sessionId": session_id,
            "data": request.data.to_payload(),
            "taskOrder": [normalize_key(key) for key in task_order],
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
            raise ConflictError(
                f"Session '{session_id}' already exists in experiment '{experiment_id}'"
            ) from e
        logger.info(f"Session {experiment_id}/{session_id} created by {username}")
        return SessionRecord.from_item(item)

    def get(
        self,
        experiment_id: str,
        session_id: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> SessionRecord | None:
        """Read one session, or None if unknown."""
        item = self.store.get_item(
            self.table,
            SessionKeys.primary(
                require_id(experiment_id, "experimentId"),
                require_id(session_id, "sessionId"),
            ),
            consistent=True,
            cancel=cancel,
        )
        return SessionRecord.from_item(item) if item is not None else None

    def list(
        self, experiment_id: str, *, cancel: CancellationToken | None = None
    ) -> list[SessionRecord]:
        """List an experiment's sessions ordered by session id."""
        items = self.store.query(
            self.table,
            Query(
                partition_value=ExperimentKeys.partition(
                    require_id(experiment_id, "experimentId")
                ),
                index=GSI1,
                sort_op="begins_with",
                sort_value=SessionKeys.index_prefix,
            ),
            cancel=cancel,
        )
        return [SessionRecord.from_item(item) for item in items]

    def list_since(
        self,
        experiment_id: str,
        since: str | None,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[SessionRecord]:
        """List sessions changed after ``since`` (all sessions when None)."""
        sessions = self.list(experiment_id, cancel=cancel)
        if since is None:
            return sessions
        return [s for s in sessions if s.updated_at is not None and s.updated_at > since]

    def update(
        self,
        experiment_id: str,
        session_id: str,
        data: SessionData,
        performed_by: CallerIdentity,
        *,
        task_order: list[str] | None = None,
        cancel: CancellationToken | None = None,
    ) -> SessionRecord:
        """Replace a session's payload and optionally its task order.

        Raises
        ------
        NotFoundError
            If the session does not exist.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        session_id = require_id(session_id, "sessionId")
        updates: dict[str, object] = {
            "data": data.to_payload(),
            "updatedBy": username,
            "updatedAt": utc_timestamp(),
        }
        if task_order is not None:
            updates["taskOrder"] = [normalize_key(key) for key in task_order]
        try:
            item = self.store.update_item(
                self.table,
                SessionKeys.primary(experiment_id, session_id),
                updates,
                condition=exists_item(),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, f"{experiment_id}/{session_id}") from e
        logger.info(f"Session {experiment_id}/{session_id} updated by {username}")
        return SessionRecord.from_item(item)

    def delete(
        self,
        experiment_id: str,
        session_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Delete a session.

        Raises
        ------
        NotFoundError
            If the session does not exist.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        session_id = require_id(session_id, "sessionId")
        try:
            self.store.delete_item(
                self.table,
                SessionKeys.primary(experiment_id, session_id),
                condition=exists_item(),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, f"{experiment_id}/{session_id}") from e
        logger.info(f"Session {experiment_id}/{session_id} deleted by {username}")

    def start(
        self,
        experiment_id: str,
        session_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> SessionRecord:
        """Mark a scheduled session as in progress.

        Raises
        ------
        NotFoundError
            If the session does not exist.
        ConflictError
            If the session is not scheduled.
        """
        return self._advance(
            experiment_id,
            session_id,
            performed_by,
            source="scheduled",
            target="in_progress",
            timestamp_field="data.startTime",
            cancel=cancel,
        )

    def complete(
        self,
        experiment_id: str,
        session_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> SessionRecord:
        """Mark an in-progress session as completed.

        Raises
        ------
        NotFoundError
            If the session does not exist.
        ConflictError
            If the session is not in progress.
        """
        return self._advance(
            experiment_id,
            session_id,
            performed_by,
            source="in_progress",
            target="completed",
            timestamp_field="data.endTime",
            cancel=cancel,
        )

    def _advance(
        self,
        experiment_id: str,
        session_id: str,
        performed_by: CallerIdentity,
        *,
        source: str,
        target: str,
        timestamp_field: str,
        cancel: CancellationToken | None,
    ) -> SessionRecord:
        username = require_authenticated(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        session_id = require_id(session_id, "sessionId")
        key = SessionKeys.primary(experiment_id, session_id)
        now = utc_timestamp()
        try:
            item = self.store.update_item(
                self.table,
                key,
                {
                    "data.status": target,
                    timestamp_field: now,
                    "updatedBy": username,
                    "updatedAt": now,
                },
                condition=exists_item() & Equals("data.status", source),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            current = self.store.get_item(self.table, key, consistent=True, cancel=cancel)
            if current is None:
                raise NotFoundError(ENTITY, f"{experiment_id}/{session_id}") from e
            raise ConflictError(
                f"Cannot move session '{session_id}' to {target}",
                attempted_status=target,
                current_status=(current.get("data") or {}).get("status"),
            ) from e
        logger.info(f"Session {experiment_id}/{session_id} {target} by {username}")
        return SessionRecord.from_item(item)
