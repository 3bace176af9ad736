"""Session occurrences and their store."""

from __future__ import annotations

from studyhub.sessions.models import (
    CreateSessionRequest,
    SessionData,
    SessionRecord,
    SessionStatus,
    resolve_task_order,
)
from studyhub.sessions.store import SessionStore

__all__ = [
    "CreateSessionRequest",
    "SessionData",
    "SessionRecord",
    "SessionStatus",
    "resolve_task_order",
    "SessionStore",
]
