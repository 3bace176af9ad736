"""Experiment memberships (enrollment) and their store."""

from __future__ import annotations

from studyhub.memberships.models import (
    MemberBatchItem,
    MemberRequest,
    Membership,
    MembershipRole,
    MembershipStatus,
)
from studyhub.memberships.store import MembershipStore

__all__ = [
    "MemberBatchItem",
    "MemberRequest",
    "Membership",
    "MembershipRole",
    "MembershipStatus",
    "MembershipStore",
]
