"""Membership store.

Membership rows live in the experiment's own partition (``MEMBER#{pid}``
sort keys) and carry a participant-keyed index entry for "my experiments".
Adds are unconditional upserts, so the last write wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from studyhub.batch import BatchResult, run_batch
from studyhub.data.timestamps import utc_timestamp
from studyhub.errors import ConditionFailedError, NotFoundError
from studyhub.identity import require_researcher
from studyhub.memberships.models import MemberBatchItem, MemberRequest, Membership
from studyhub.store.base import Query
from studyhub.store.conditions import exists_item
from studyhub.store.keys import GSI1, ExperimentKeys, MembershipKeys, require_id

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.identity import CallerIdentity
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)

ENTITY = "Membership"


class MembershipStore:
    """Enrollment records of participants in experiments.

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

    def list(
        self,
        experiment_id: str,
        *,
        cohort: str | None = None,
        status: str | None = None,
        role: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[Membership]:
        """List an experiment's members, optionally filtered.

        The whole membership partition is read; filters are applied to the
        fetched rows.

        Parameters
        ----------
        experiment_id : str
            Experiment id.
        cohort, status, role : str | None
            Exact-match filters; None disables a filter.
        cancel : CancellationToken | None
            Cancellation signal.

        Returns
        -------
        list[Membership]
            Matching memberships ordered by participant id.
        """
        experiment_id = require_id(experiment_id, "experimentId")
        partition, prefix = MembershipKeys.members_of(experiment_id)
        items = self.store.query(
            self.table,
            Query(partition_value=partition, sort_op="begins_with", sort_value=prefix),
            cancel=cancel,
        )
        members = [Membership.from_item(item) for item in items]
        filtered = [
            member
            for member in members
            if (cohort is None or member.cohort == cohort)
            and (status is None or member.status == status)
            and (role is None or member.role == role)
        ]
        logger.debug(
            f"Experiment {experiment_id}: {len(filtered)} of {len(members)} members "
            f"match filters"
        )
        return filtered

    def get(
        self,
        experiment_id: str,
        participant_id: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> Membership | None:
        """Read one membership, or None if the participant is not enrolled."""
        item = self.store.get_item(
            self.table,
            MembershipKeys.primary(
                require_id(experiment_id, "experimentId"),
                require_id(participant_id, "participantId"),
            ),
            consistent=True,
            cancel=cancel,
        )
        return Membership.from_item(item) if item is not None else None

    def add(
        self,
        experiment_id: str,
        participant_id: str,
        request: MemberRequest,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> Membership:
        """Enroll a participant, overwriting any existing membership.

        Raises
        ------
        ValidationError
            If an id is blank.
        ForbiddenError
            If the caller is not a researcher.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        participant_id = require_id(participant_id, "participantId")
        now = utc_timestamp()
        item = {
            **MembershipKeys.primary(experiment_id, participant_id).as_dict(),
            **MembershipKeys.participant_experiments(
                participant_id, experiment_id
            ).as_dict(),
            "type": ENTITY,
            "role": request.role,
            "status": request.status,
            "addedBy": username,
            "addedAt": now,
            "updatedAt": now,
        }
        if request.cohort:
            item["cohort"] = request.cohort
        self.store.put_item(self.table, item, cancel=cancel)
        logger.info(
            f"{participant_id} added to experiment {experiment_id} as {request.role} "
            f"by {username}"
        )
        return Membership.from_item(item)

    def add_batch(
        self,
        experiment_id: str,
        items: Iterable[MemberBatchItem],
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> BatchResult:
        """Enroll many participants, one independent upsert each.

        Returns
        -------
        BatchResult
            Summary and per-participant outcomes; a failed item does not
            undo the others.
        """
        require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        return run_batch(
            items,
            identify=lambda member: member.participant_id,
            operation=lambda member: self.add(
                experiment_id,
                member.participant_id,
                member,
                performed_by,
                cancel=cancel,
            ),
            cancel=cancel,
        )

    def remove(
        self,
        experiment_id: str,
        participant_id: str,
        performed_by: CallerIdentity,
        *,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Remove a participant from an experiment.

        Raises
        ------
        NotFoundError
            If the participant is not a member.
        """
        username = require_researcher(performed_by)
        experiment_id = require_id(experiment_id, "experimentId")
        participant_id = require_id(participant_id, "participantId")
        try:
            self.store.delete_item(
                self.table,
                MembershipKeys.primary(experiment_id, participant_id),
                condition=exists_item(),
                cancel=cancel,
            )
        except ConditionFailedError as e:
            raise NotFoundError(
                ENTITY,
                f"{experiment_id}/{participant_id}",
                f"Participant '{participant_id}' is not a member of "
                f"experiment '{experiment_id}'",
            ) from e
        logger.info(
            f"{participant_id} removed from experiment {experiment_id} by {username}"
        )

    def list_for_participant(
        self, participant_id: str, *, cancel: CancellationToken | None = None
    ) -> list[Membership]:
        """List a participant's memberships through the participant index."""
        participant_id = require_id(participant_id, "participantId")
        items = self.store.query(
            self.table,
            Query(
                partition_value=MembershipKeys.participant_partition(participant_id),
                index=GSI1,
                sort_op="begins_with",
                sort_value=f"{ExperimentKeys.entity_type}#",
            ),
            cancel=cancel,
        )
        return [Membership.from_item(item) for item in items]
