"""Experiments: payload models, the status state machine, and the store."""

from __future__ import annotations

from studyhub.experiments.lifecycle import (
    STATUSES,
    TRANSITIONS,
    ExperimentStatus,
    StatusResolution,
    allowed_sources,
    can_transition,
    resolve_status,
)
from studyhub.experiments.models import (
    CreateExperimentRequest,
    ExperimentData,
    ExperimentRecord,
    ExperimentSummary,
    QuestionnaireConfig,
    SessionType,
)
from studyhub.experiments.store import ExperimentStore

__all__ = [
    "STATUSES",
    "TRANSITIONS",
    "ExperimentStatus",
    "StatusResolution",
    "allowed_sources",
    "can_transition",
    "resolve_status",
    "CreateExperimentRequest",
    "ExperimentData",
    "ExperimentRecord",
    "ExperimentSummary",
    "QuestionnaireConfig",
    "SessionType",
    "ExperimentStore",
]
