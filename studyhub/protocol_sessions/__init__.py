"""Protocol session definitions and their store."""

from __future__ import annotations

from studyhub.protocol_sessions.models import (
    Cadence,
    ProtocolSessionData,
    ProtocolSessionRecord,
)
from studyhub.protocol_sessions.store import ProtocolSessionStore

__all__ = [
    "Cadence",
    "ProtocolSessionData",
    "ProtocolSessionRecord",
    "ProtocolSessionStore",
]
