"""Response store.

Responses live in their own table. ``GSI1`` groups them by experiment with
a session/task sort prefix; ``GSI2`` groups them by participant ordered by
last update, which backs incremental sync.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studyhub.data.identifiers import generate_id
from studyhub.data.timestamps import utc_timestamp
from studyhub.errors import (
    ConditionFailedError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from studyhub.identity import require_authenticated
from studyhub.responses.models import ResponseData, ResponseRecord
from studyhub.store.base import Query
from studyhub.store.conditions import exists_item, not_exists_item
from studyhub.store.keys import GSI1, GSI2, ExperimentKeys, ResponseKeys, require_id

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.identity import CallerIdentity
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)

ENTITY = "Response"


class ResponseStore:
    """Persistence for questionnaire responses.

    Parameters
    ----------
    store : DocumentStore
        Document store holding the responses table.
    table : str
        Responses table name.
    """

    def __init__(self, store: DocumentStore, table: str) -> None:
        self.store = store
        self.table = table

    def _item(
        self,
        response_id: str,
        participant_id: str,
        data: ResponseData,
        *,
        created_at: str,
        updated_by: str,
        updated_at: str,
    ) -> dict[str, object]:
        return {
            **ResponseKeys.primary(response_id).as_dict(),
            **ResponseKeys.experiment_responses(
                data.experiment_id, data.session_id, data.task_id, response_id
            ).as_dict(),
            **ResponseKeys.participant_responses(
                participant_id, updated_at, response_id
            ).as_dict(),
            "type": ENTITY,
            "responseId": response_id,
            "participantId": participant_id,
            "data": data.to_payload(),
            "createdAt": created_at,
            "updatedBy": updated_by,
            "updatedAt": updated_at,
        }

    def create(
        self,
        data: ResponseData,
        performed_by: CallerIdentity,
        *,
        response_id: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> ResponseRecord:
        """Record a completed questionnaire for the calling participant.

        Raises
        ------
        UnauthenticatedError
            If the caller is anonymous.
        ConflictError
            If ``response_id`` is already used.
        """
        participant_id = require_authenticated(performed_by)
        response_id = (response_id or "").strip() or generate_id()
        now = utc_timestamp()
        item = self._item(
            response_id,
            participant_id,
            data,
            created_at=now,
            updated_by=participant_id,
            updated_at=now,
        )
        try:
            self.store.put_item(
                self.table, item, condition=not_exists_item(), cancel=cancel
            )
        except ConditionFailedError as e:
            raise ConflictError(f"Response '{response_id}' already exists") from e
        logger.info(
            f"Response {response_id} to {data.questionnaire_id} recorded for "
            f"{participant_id}"
        )
        return ResponseRecord.from_item(item)

    def get(
        self, response_id: str, *, cancel: CancellationToken | None = None
    ) -> ResponseRecord | None:
        """Read one response, or None if unknown."""
        item = self.store.get_item(
            self.table,
            ResponseKeys.primary(require_id(response_id, "responseId")),
            consistent=True,
            cancel=cancel,
        )
        return ResponseRecord.from_item(item) if item is not None else None

    def _require_owner(
        self,
        response_id: str,
        performed_by: CallerIdentity,
        cancel: CancellationToken | None,
    ) -> tuple[str, ResponseRecord]:
        username = require_authenticated(performed_by)
        current = self.get(response_id, cancel=cancel)
        if current is None:
            raise NotFoundError(ENTITY, response_id)
        if current.participant_id != username and not performed_by.is_researcher:
            raise ForbiddenError(
                f"User '{username}' may not modify response '{response_id}'",
                username=username,
            )
        return username, current

    def update(
        self,
        response_id: str,
        data: ResponseData,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> ResponseRecord:
        """Replace a response's payload.

        Only the submitting participant or a researcher may update.

        Raises
        ------
        NotFoundError
            If the response does not exist.
        ForbiddenError
            If the caller is neither the submitter nor a researcher.
        """
        response_id = require_id(response_id, "responseId")
        username, current = self._require_owner(response_id, performed_by, cancel)
        item = self._item(
            response_id,
            current.participant_id,
            data,
            created_at=current.created_at or utc_timestamp(),
            updated_by=username,
            updated_at=utc_timestamp(),
        )
        try:
            self.store.put_item(self.table, item, condition=exists_item(), cancel=cancel)
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, response_id) from e
        logger.info(f"Response {response_id} updated by {username}")
        return ResponseRecord.from_item(item)

    def delete(
        self,
        response_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Delete a response.

        Raises
        ------
        NotFoundError
            If the response does not exist.
        ForbiddenError
            If the caller is neither the submitter nor a researcher.
        """
        response_id = require_id(response_id, "responseId")
        username, _ = self._require_owner(response_id, performed_by, cancel)
        try:
            self.store.delete_item(
                self.table,
                ResponseKeys.primary(response_id),
                condition=exists_item(),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, response_id) from e
        logger.info(f"Response {response_id} deleted by {username}")

    def list_for_experiment(
        self,
        experiment_id: str,
        session_id: str | None = None,
        task_id: str | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[ResponseRecord]:
        """List an experiment's responses, optionally narrowed to a session or task.

        ``task_id`` is ignored unless ``session_id`` is given.
        """
        items = self.store.query(
            self.table,
            Query(
                partition_value=ExperimentKeys.partition(
                    require_id(experiment_id, "experimentId")
                ),
                index=GSI1,
                sort_op="begins_with",
                sort_value=ResponseKeys.session_scope(session_id, task_id),
            ),
            cancel=cancel,
        )
        return [ResponseRecord.from_item(item) for item in items]

    def list_for_participant(
        self,
        participant_id: str,
        experiment_id: str | None = None,
        questionnaire_id: str | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[ResponseRecord]:
        """List a participant's responses, newest update first."""
        items = self.store.query(
            self.table,
            Query(
                partition_value=ResponseKeys.participant_partition(
                    require_id(participant_id, "participantId")
                ),
                index=GSI2,
                forward=False,
            ),
            cancel=cancel,
        )
        records = [ResponseRecord.from_item(item) for item in items]
        if experiment_id is not None:
            records = [r for r in records if r.data.experiment_id == experiment_id]
        if questionnaire_id is not None:
            records = [r for r in records if r.data.questionnaire_id == questionnaire_id]
        return records

    def list_since(
        self,
        participant_id: str,
        since: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[ResponseRecord]:
        """List a participant's responses updated strictly after ``since``, oldest first."""
        items = self.store.query(
            self.table,
            Query(
                partition_value=ResponseKeys.participant_partition(
                    require_id(participant_id, "participantId")
                ),
                index=GSI2,
                sort_op="gt",
                sort_value=since,
            ),
            cancel=cancel,
        )
        # The sort key is "{updatedAt}#{id}", so an item updated exactly at
        # ``since`` still sorts after it.
        return [
            record
            for record in (ResponseRecord.from_item(item) for item in items)
            if record.updated_at is not None and record.updated_at > since
        ]
