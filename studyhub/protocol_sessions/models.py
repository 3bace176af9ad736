"""Protocol session definitions.

A protocol session describes a recurring slot of an experiment's protocol
(e.g. FIRST, DAILY, WEEKLY): its cadence, the ordered tasks to run, and the
local-time window in which participants may start it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from studyhub.data.base import StudyhubBaseModel
from studyhub.store.keys import ProtocolSessionKeys

LOCAL_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

type Cadence = Literal["once", "daily", "weekly"]


class ProtocolSessionData(StudyhubBaseModel):
    """Protocol session payload.

    Examples
    --------
    >>> ProtocolSessionData(
    ...     name="Daily check-in",
    ...     cadence="daily",
    ...     task_sequence=["pvt", "MOOD_Q"],
    ...     window_start_local="08:00",
    ...     window_end_local="11:30",
    ... ).task_sequence
    ['PVT', 'MOOD_Q']
    """

    name: str
    description: str = ""
    cadence: Cadence = "once"
    task_sequence: list[str] = Field(default_factory=list)
    estimated_duration: int | None = Field(default=None, ge=0)
    window_start_local: str | None = None
    window_end_local: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the name is non-empty."""
        if not v or not v.strip():
            raise ValueError("name must be non-empty")
        return v.strip()

    @field_validator("task_sequence")
    @classmethod
    def normalize_task_keys(cls, v: list[str]) -> list[str]:
        """Normalize task keys to their stored form."""
        return [key.strip().upper() for key in v if key and key.strip()]

    @field_validator("window_start_local", "window_end_local")
    @classmethod
    def validate_local_time(cls, v: str | None) -> str | None:
        """Validate HH:MM local times."""
        if v is not None and not LOCAL_TIME_PATTERN.match(v):
            raise ValueError(f"expected HH:MM local time, got '{v}'")
        return v

    @model_validator(mode="after")
    def validate_window(self) -> ProtocolSessionData:
        """Validate the window starts before it ends."""
        start, end = self.window_start_local, self.window_end_local
        if start is not None and end is not None and start >= end:
            raise ValueError("window_start_local must be before window_end_local")
        return self


class ProtocolSessionRecord(StudyhubBaseModel):
    """A stored protocol session."""

    experiment_id: str
    key: str
    data: ProtocolSessionData
    created_at: str | None = None
    updated_by: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> ProtocolSessionRecord:
        """Build a record from a decoded store item."""
        return cls(
            experiment_id=ProtocolSessionKeys.parse_id(item["PK"]),
            key=item["SK"][len(ProtocolSessionKeys.protocol_prefix) :],
            data=ProtocolSessionData.model_validate(item.get("data") or {}),
            created_at=item.get("createdAt"),
            updated_by=item.get("updatedBy"),
            updated_at=item.get("updatedAt"),
        )
