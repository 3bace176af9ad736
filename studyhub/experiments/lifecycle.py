"""Experiment status state machine.

=========  ======  ======  ======
from/to    Active  Paused  Closed
=========  ======  ======  ======
Draft      yes     no      no
Active     no      yes     yes
Paused     yes     no      yes
Closed     no      no      no
=========  ======  ======  ======

Experiments are created in Draft and never return to it. Status is stored
in the top-level ``status`` attribute; records written by older releases
keep it in ``data.Status`` instead, and the top-level attribute wins when
both are present.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, Field

from studyhub.errors import ValidationError

type ExperimentStatus = Literal["Draft", "Active", "Paused", "Closed"]
type StatusSource = Literal["status", "data.Status"]

STATUSES: tuple[str, ...] = ("Draft", "Active", "Paused", "Closed")
INITIAL_STATUS: ExperimentStatus = "Draft"
STATUS_PATH = "status"
LEGACY_STATUS_PATH = "data.Status"

TRANSITIONS: dict[str, frozenset[str]] = {
    "Draft": frozenset({"Active"}),
    "Active": frozenset({"Paused", "Closed"}),
    "Paused": frozenset({"Active", "Closed"}),
    "Closed": frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Whether the table allows ``current`` to move to ``target``.

    Examples
    --------
    >>> can_transition("Draft", "Active")
    True
    >>> can_transition("Closed", "Active")
    False
    """
    return target in TRANSITIONS.get(current, frozenset())


def allowed_sources(target: str) -> tuple[str, ...]:
    """Statuses from which ``target`` may be reached, in table order.

    Examples
    --------
    >>> allowed_sources("Closed")
    ('Active', 'Paused')
    """
    return tuple(status for status in STATUSES if can_transition(status, target))


def require_target(target: str) -> ExperimentStatus:
    """Check that ``target`` is a status a transition may aim for.

    Raises
    ------
    ValidationError
        If ``target`` is unknown or has no incoming transitions (Draft).
    """
    if target not in STATUSES:
        raise ValidationError(
            f"Unknown status '{target}'; expected one of {', '.join(STATUSES)}",
            field="status",
        )
    if not allowed_sources(target):
        raise ValidationError(f"Cannot transition to {target}", field="status")
    return target  # type: ignore[return-value]


class StatusResolution(BaseModel):
    """Resolved status and where it was read from.

    Attributes
    ----------
    status : str
        Resolved status; empty when neither source holds one.
    source : {"status", "data.Status"} | None
        Attribute the status was read from.
    """

    status: str = ""
    source: StatusSource | None = Field(default=None)


def resolve_status(item: Mapping[str, Any]) -> StatusResolution:
    """Resolve an experiment's status from a stored item.

    Parameters
    ----------
    item : Mapping[str, Any]
        Decoded experiment item.

    Returns
    -------
    StatusResolution
        Top-level ``status`` when present and not the empty string,
        otherwise the legacy ``data.Status``, otherwise an empty resolution.
        Whitespace is not trimmed, so a stored ``" "`` still shadows the
        legacy value, the same way the transition guard sees it.

    Examples
    --------
    >>> resolve_status({"status": "Active", "data": {"Status": "Draft"}}).source
    'status'
    >>> resolve_status({"data": {"Status": "Paused"}}).status
    'Paused'
    """
    top_level = item.get("status", "")
    if top_level != "":
        status = top_level if isinstance(top_level, str) else ""
        return StatusResolution(status=status, source="status")
    data = item.get("data")
    legacy = data.get("Status") if isinstance(data, Mapping) else None
    if isinstance(legacy, str) and legacy.strip():
        return StatusResolution(status=legacy, source="data.Status")
    return StatusResolution()
