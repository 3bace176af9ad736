"""Session occurrences."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import Field

from studyhub.data.base import JsonValue, StudyhubBaseModel

type SessionStatus = Literal["scheduled", "in_progress", "completed", "cancelled"]


def resolve_task_order(item: Mapping[str, Any]) -> list[str]:
    """Task order of a stored session.

    The top-level ``taskOrder`` wins when non-empty; older records keep the
    order inside the payload as ``taskOrder`` or ``TaskOrder``.

    Examples
    --------
    >>> resolve_task_order({"taskOrder": [], "data": {"TaskOrder": ["PVT"]}})
    ['PVT']
    """
    top_level = item.get("taskOrder")
    if top_level:
        return list(top_level)
    data = item.get("data") or {}
    return list(data.get("taskOrder") or data.get("TaskOrder") or [])


class SessionData(StudyhubBaseModel):
    """Session payload.

    Attributes
    ----------
    date : str
        Scheduled local date (YYYY-MM-DD).
    session_type : str
        Name of the experiment session type this occurrence instantiates.
    status : SessionStatus
        Progress of the occurrence.
    start_time, end_time : str | None
        Set by ``SessionStore.start`` and ``SessionStore.complete``.
    """

    date: str = ""
    session_type: str = ""
    session_name: str = ""
    description: str = ""
    sequence_number: int = Field(default=0, ge=0)
    status: SessionStatus = "scheduled"
    user_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    metadata: dict[str, JsonValue] = Field(default_factory=dict)


class CreateSessionRequest(StudyhubBaseModel):
    """Input to ``SessionStore.create``.

    Attributes
    ----------
    session_id : str | None
        Caller-chosen id (e.g. ``DAILY#2026-03-05``); generated when omitted.
    task_order : list[str] | None
        Task keys in run order; defaults to the session type's tasks.
    """

    session_id: str | None = None
    data: SessionData
    task_order: list[str] | None = None


class SessionRecord(StudyhubBaseModel):
    """A stored session occurrence."""

    experiment_id: str
    session_id: str
    data: SessionData
    task_order: list[str] = Field(default_factory=list)
    created_by: str | None = None
    created_at: str | None = None
    updated_by: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> SessionRecord:
        """Build a record from a decoded store item."""
        return cls(
            experiment_id=item["experimentId"],
            session_id=item["sessionId"],
            data=SessionData.model_validate(item.get("data") or {}),
            task_order=resolve_task_order(item),
            created_by=item.get("createdBy"),
            created_at=item.get("createdAt"),
            updated_by=item.get("updatedBy"),
            updated_at=item.get("updatedAt"),
        )
