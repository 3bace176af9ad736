"""Task store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studyhub.data.timestamps import utc_timestamp
from studyhub.errors import ConditionFailedError, ConflictError, NotFoundError, ValidationError
from studyhub.identity import require_researcher
from studyhub.store.base import Query
from studyhub.store.conditions import exists_item, not_exists_item
from studyhub.store.keys import GSI1, TaskKeys, validate_key
from studyhub.tasks.models import CreateTaskRequest, TaskData, TaskRecord

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.identity import CallerIdentity
    from studyhub.references import ReferentialValidator
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)

ENTITY = "Task"


def _require_name(data: TaskData) -> None:
    if not data.name.strip():
        raise ValidationError("Task name is required", field="name")


class TaskStore:
    """Persistence for task definitions.

    Task keys are researcher-chosen, trimmed and uppercased, and must match
    ``^[A-Z0-9_]{3,64}$``.

    Parameters
    ----------
    store : DocumentStore
        Document store holding the experiments table.
    table : str
        Experiments table name.
    validator : ReferentialValidator
        Checks questionnaire references on create and update.
    """

    def __init__(
        self, store: DocumentStore, table: str, validator: ReferentialValidator
    ) -> None:
        self.store = store
        self.table = table
        self.validator = validator

    def create(
        self,
        request: CreateTaskRequest,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> TaskRecord:
        """Create a task.

        Raises
        ------
        ValidationError
            If the key is malformed, the name is blank, or a referenced
            questionnaire is missing.
        ConflictError
            If a task with this key already exists.
        """
        username = require_researcher(performed_by)
        task_key = validate_key(request.task_key, "taskKey")
        _require_name(request.data)
        self.validator.assert_valid(
            request.data.referenced_questionnaires(), cancel=cancel
        )

        now = utc_timestamp()
        item = {
            **TaskKeys.primary(task_key).as_dict(),
            **TaskKeys.all_tasks(now).as_dict(),
            "type": ENTITY,
            "data": request.data.to_payload(),
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
            raise ConflictError(f"Task '{task_key}' already exists") from e
        logger.info(f"Task {task_key} created by {username}")
        return TaskRecord.from_item(item)

    def get(
        self, task_key: str, *, cancel: CancellationToken | None = None
    ) -> TaskRecord | None:
        """Read a task, or None if the key is unknown or malformed."""
        try:
            key = validate_key(task_key, "taskKey")
        except ValidationError:
            return None
        item = self.store.get_item(
            self.table, TaskKeys.primary(key), consistent=True, cancel=cancel
        )
        return TaskRecord.from_item(item) if item is not None else None

    def list(self, *, cancel: CancellationToken | None = None) -> list[TaskRecord]:
        """List every task, newest first."""
        items = self.store.query(
            self.table,
            Query(partition_value=TaskKeys.list_partition, index=GSI1, forward=False),
            cancel=cancel,
        )
        return [TaskRecord.from_item(item) for item in items]

    def update(
        self,
        task_key: str,
        data: TaskData,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> TaskRecord:
        """Replace a task's payload.

        Raises
        ------
        NotFoundError
            If the task does not exist.
        """
        username = require_researcher(performed_by)
        key = validate_key(task_key, "taskKey")
        _require_name(data)
        self.validator.assert_valid(data.referenced_questionnaires(), cancel=cancel)
        try:
            item = self.store.update_item(
                self.table,
                TaskKeys.primary(key),
                {
                    "data": data.to_payload(),
                    "updatedBy": username,
                    "updatedAt": utc_timestamp(),
                },
                condition=exists_item(),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, key) from e
        logger.info(f"Task {key} updated by {username}")
        return TaskRecord.from_item(item)

    def delete(
        self,
        task_key: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Delete a task.

        Raises
        ------
        NotFoundError
            If the task does not exist.
        """
        username = require_researcher(performed_by)
        key = validate_key(task_key, "taskKey")
        try:
            self.store.delete_item(
                self.table, TaskKeys.primary(key), condition=exists_item(), cancel=cancel
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, key) from e
        logger.info(f"Task {key} deleted by {username}")
