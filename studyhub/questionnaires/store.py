"""Questionnaire store with soft delete and batch import.

The store doubles as the ``QuestionnaireDirectory`` used for referential
validation: a soft-deleted questionnaire does not exist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from studyhub.batch import BatchResult, run_batch
from studyhub.data.timestamps import utc_timestamp
from studyhub.errors import (
    ConditionFailedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from studyhub.identity import require_researcher
from studyhub.questionnaires.models import (
    CreateQuestionnaireRequest,
    QuestionnaireData,
    QuestionnaireRecord,
)
from studyhub.store.base import Increment, Query
from studyhub.store.conditions import (
    AttributeExists,
    AttributeNotExists,
    Condition,
    Equals,
    exists_item,
    not_exists_item,
)
from studyhub.store.keys import GSI1, QuestionnaireKeys, require_id

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.identity import CallerIdentity
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)

ENTITY = "Questionnaire"


def _live_condition() -> Condition:
    # rows without an isDeleted flag are live, as in _is_deleted
    not_deleted = AttributeNotExists("syncMetadata.isDeleted") | Equals(
        "syncMetadata.isDeleted", False
    )
    return exists_item() & AttributeExists("syncMetadata") & not_deleted


def _is_deleted(item: Mapping[str, Any]) -> bool:
    return bool((item.get("syncMetadata") or {}).get("isDeleted", False))


class QuestionnaireStore:
    """Persistence for questionnaire definitions.

    Parameters
    ----------
    store : DocumentStore
        Document store holding the questionnaire table.
    table : str
        Questionnaire table name.
    """

    def __init__(self, store: DocumentStore, table: str) -> None:
        self.store = store
        self.table = table

    def create(
        self,
        request: CreateQuestionnaireRequest,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> QuestionnaireRecord:
        """Create a questionnaire.

        Raises
        ------
        ConflictError
            If a questionnaire with this id exists, including soft-deleted ones.
        """
        username = require_researcher(performed_by)
        questionnaire_id = require_id(request.id, "id")
        now = utc_timestamp()
        item = {
            **QuestionnaireKeys.primary(questionnaire_id).as_dict(),
            **QuestionnaireKeys.all_questionnaires(now).as_dict(),
            "type": ENTITY,
            "data": request.data.to_payload(),
            "syncMetadata": {"version": 1, "lastModified": now, "isDeleted": False},
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
                f"Questionnaire '{questionnaire_id}' already exists"
            ) from e
        logger.info(f"Questionnaire {questionnaire_id} created by {username}")
        return QuestionnaireRecord.from_item(item)

    def create_batch(
        self,
        requests: Iterable[CreateQuestionnaireRequest | Mapping[str, Any]],
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> BatchResult:
        """Create many questionnaires, reporting each outcome.

        Raw mappings are validated item by item, so one malformed entry only
        fails itself.
        """
        require_researcher(performed_by)

        def identify(request: CreateQuestionnaireRequest | Mapping[str, Any]) -> str:
            if isinstance(request, CreateQuestionnaireRequest):
                return request.id
            return str(request.get("id") or "")

        def create_one(request: CreateQuestionnaireRequest | Mapping[str, Any]) -> None:
            if not isinstance(request, CreateQuestionnaireRequest):
                try:
                    request = CreateQuestionnaireRequest.model_validate(request)
                except PydanticValidationError as e:
                    raise ValidationError.from_pydantic(e) from e
            self.create(request, performed_by, cancel=cancel)

        return run_batch(requests, identify, create_one, cancel=cancel)

    def get(
        self, questionnaire_id: str, *, cancel: CancellationToken | None = None
    ) -> QuestionnaireRecord | None:
        """Read a questionnaire; None when absent or soft-deleted."""
        if not (questionnaire_id or "").strip():
            return None
        item = self.store.get_item(
            self.table,
            QuestionnaireKeys.primary(questionnaire_id.strip()),
            consistent=True,
            cancel=cancel,
        )
        if item is None or _is_deleted(item):
            return None
        return QuestionnaireRecord.from_item(item)

    def get_many(
        self, questionnaire_ids: Iterable[str], *, cancel: CancellationToken | None = None
    ) -> list[QuestionnaireRecord]:
        """Read several questionnaires, skipping missing ones."""
        records = (self.get(qid, cancel=cancel) for qid in questionnaire_ids)
        return [record for record in records if record is not None]

    def list(
        self, *, cancel: CancellationToken | None = None
    ) -> list[QuestionnaireRecord]:
        """List live questionnaires, most recently changed first."""
        items = self.store.query(
            self.table,
            Query(
                partition_value=QuestionnaireKeys.list_partition,
                index=GSI1,
                forward=False,
            ),
            cancel=cancel,
        )
        return [QuestionnaireRecord.from_item(item) for item in items if not _is_deleted(item)]

    def update(
        self,
        questionnaire_id: str,
        data: QuestionnaireData,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> QuestionnaireRecord:
        """Replace a questionnaire's payload and bump its version.

        Raises
        ------
        NotFoundError
            If the questionnaire is absent or soft-deleted.
        """
        username = require_researcher(performed_by)
        questionnaire_id = require_id(questionnaire_id, "id")
        now = utc_timestamp()
        item = self._write_live(
            questionnaire_id,
            {
                "data": data.to_payload(),
                GSI1.sort_attr: now,
                "updatedBy": username,
                "updatedAt": now,
            },
            {"version": Increment(1), "lastModified": now},
            cancel=cancel,
        )
        logger.info(f"Questionnaire {questionnaire_id} updated by {username}")
        return QuestionnaireRecord.from_item(item)

    def delete(
        self,
        questionnaire_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Soft-delete a questionnaire.

        Raises
        ------
        NotFoundError
            If the questionnaire is absent or already deleted.
        """
        username = require_researcher(performed_by)
        questionnaire_id = require_id(questionnaire_id, "id")
        now = utc_timestamp()
        self._write_live(
            questionnaire_id,
            {"deletedBy": username, "deletedAt": now},
            {"isDeleted": True, "version": Increment(1), "lastModified": now},
            cancel=cancel,
        )
        logger.info(f"Questionnaire {questionnaire_id} deleted by {username}")

    def _write_live(
        self,
        questionnaire_id: str,
        updates: dict[str, Any],
        sync: dict[str, Any],
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        """Apply ``updates`` and ``sync`` metadata to a live questionnaire.

        Rows stored without a ``syncMetadata`` map get the whole map written
        by a second conditional update. Such rows read as version 1, so the
        first write stores version 2.

        Raises
        ------
        NotFoundError
            If the questionnaire is absent or soft-deleted.
        """
        key = QuestionnaireKeys.primary(questionnaire_id)
        nested = {f"syncMetadata.{name}": value for name, value in sync.items()}
        try:
            return self.store.update_item(
                self.table,
                key,
                {**updates, **nested},
                condition=_live_condition(),
                cancel=cancel,
            )
        except ConditionFailedError:
            logger.debug(f"Questionnaire {questionnaire_id} has no live sync metadata")

        metadata = {
            name: 1 + value.amount if isinstance(value, Increment) else value
            for name, value in sync.items()
        }
        metadata.setdefault("isDeleted", False)
        try:
            return self.store.update_item(
                self.table,
                key,
                {**updates, "syncMetadata": metadata},
                condition=exists_item() & AttributeNotExists("syncMetadata"),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, questionnaire_id) from e

    def exists(
        self, questionnaire_id: str, *, cancel: CancellationToken | None = None
    ) -> bool:
        """Whether a live questionnaire with this id exists."""
        return self.get(questionnaire_id, cancel=cancel) is not None
