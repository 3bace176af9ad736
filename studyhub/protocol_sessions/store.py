"""Protocol session store.

Protocol sessions live in the experiment partition under ``PROTOCOL#{key}``
sort keys. Writes are idempotent upserts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studyhub.data.timestamps import utc_timestamp
from studyhub.errors import ConditionFailedError, NotFoundError, ValidationError
from studyhub.identity import require_researcher
from studyhub.protocol_sessions.models import ProtocolSessionData, ProtocolSessionRecord
from studyhub.store.base import Query
from studyhub.store.conditions import exists_item
from studyhub.store.keys import ExperimentKeys, ProtocolSessionKeys, require_id, validate_key

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.identity import CallerIdentity
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)

ENTITY = "ProtocolSession"


class ProtocolSessionStore:
    """Persistence for an experiment's protocol sessions.

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

    def upsert(
        self,
        experiment_id: str,
        protocol_key: str,
        data: ProtocolSessionData,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> ProtocolSessionRecord:
        """Create or replace a protocol session.

        Repeating the same call leaves the same stored state, apart from
        ``updatedAt``; ``createdAt`` of an existing row is kept.

        Raises
        ------
        ValidationError
            If the key is malformed.
        NotFoundError
            If the experiment does not exist.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        key = validate_key(protocol_key, "protocolSessionKey")

        experiment = self.store.get_item(
            self.table, ExperimentKeys.primary(experiment_id), cancel=cancel
        )
        if experiment is None:
            raise NotFoundError("Experiment", experiment_id)

        item_key = ProtocolSessionKeys.primary(experiment_id, key)
        existing = self.store.get_item(self.table, item_key, consistent=True, cancel=cancel)
        now = utc_timestamp()
        item = {
            **item_key.as_dict(),
            "type": ENTITY,
            "data": data.to_payload(),
            "createdAt": existing.get("createdAt", now) if existing else now,
            "updatedBy": username,
            "updatedAt": now,
        }
        self.store.put_item(self.table, item, cancel=cancel)
        logger.info(f"Protocol session {experiment_id}/{key} saved by {username}")
        return ProtocolSessionRecord.from_item(item)

    def get(
        self,
        experiment_id: str,
        protocol_key: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> ProtocolSessionRecord | None:
        """Read one protocol session, or None if unknown."""
        try:
            key = validate_key(protocol_key, "protocolSessionKey")
        except ValidationError:
            return None
        item = self.store.get_item(
            self.table,
            ProtocolSessionKeys.primary(require_id(experiment_id, "experimentId"), key),
            consistent=True,
            cancel=cancel,
        )
        return ProtocolSessionRecord.from_item(item) if item is not None else None

    def list(
        self, experiment_id: str, *, cancel: CancellationToken | None = None
    ) -> list[ProtocolSessionRecord]:
        """List an experiment's protocol sessions ordered by key."""
        partition, prefix = ProtocolSessionKeys.protocols_of(
            require_id(experiment_id, "experimentId")
        )
        items = self.store.query(
            self.table,
            Query(partition_value=partition, sort_op="begins_with", sort_value=prefix),
            cancel=cancel,
        )
        return [ProtocolSessionRecord.from_item(item) for item in items]

    def delete(
        self,
        experiment_id: str,
        protocol_key: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Delete a protocol session.

        Raises
        ------
        NotFoundError
            If the protocol session does not exist.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        key = validate_key(protocol_key, "protocolSessionKey")
        try:
            self.store.delete_item(
                self.table,
                ProtocolSessionKeys.primary(experiment_id, key),
                condition=exists_item(),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(ENTITY, f"{experiment_id}/{key}") from e
        logger.info(f"Protocol session {experiment_id}/{key} deleted by {username}")
