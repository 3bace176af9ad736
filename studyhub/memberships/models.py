"""Membership models."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import Field

from studyhub.data.base import StudyhubBaseModel
from studyhub.store.keys import MembershipKeys

type MembershipRole = Literal["participant", "researcher"]
type MembershipStatus = Literal["active", "inactive", "withdrawn", "completed"]


class MemberRequest(StudyhubBaseModel):
    """Role, status, and cohort to set on a membership.

    Examples
    --------
    >>> MemberRequest().role
    'participant'
    """

    role: MembershipRole = "participant"
    status: MembershipStatus = "active"
    cohort: str | None = None


class MemberBatchItem(MemberRequest):
    """One participant in a batch enrollment."""

    participant_id: str = Field(min_length=1)


class Membership(StudyhubBaseModel):
    """A participant's enrollment in an experiment.

    Attributes
    ----------
    enrolled_at : str | None
        When the row was last written; re-adding a participant resets it.
    added_by : str | None
        Researcher who last wrote the row.
    updated_at : str | None
        Write time of the row; rows stored without ``updatedAt`` report
        their ``addedAt``.
    """

    experiment_id: str
    participant_id: str
    role: MembershipRole = "participant"
    status: MembershipStatus = "active"
    cohort: str | None = None
    enrolled_at: str | None = None
    added_by: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> Membership:
        """Build a membership from a decoded store item."""
        return cls(
            experiment_id=MembershipKeys.parse_id(item["PK"]),
            participant_id=MembershipKeys.parse_participant(item["SK"]),
            role=item.get("role", "participant"),
            status=item.get("status", "active"),
            cohort=item.get("cohort"),
            enrolled_at=item.get("addedAt"),
            added_by=item.get("addedBy"),
            updated_at=item.get("updatedAt", item.get("addedAt")),
        )
