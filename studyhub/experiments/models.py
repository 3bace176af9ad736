"""Experiment payloads and records.

Payload fields are snake_case in Python and camelCase in the store.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from studyhub.data.base import StudyhubBaseModel
from studyhub.experiments.lifecycle import StatusSource, resolve_status
from studyhub.store.keys import ExperimentKeys


class SessionType(StudyhubBaseModel):
    """A kind of session participants run, e.g. "daily" or "weekly".

    Attributes
    ----------
    name : str
        Display name.
    questionnaires : list[str]
        Questionnaire ids administered in this session type.
    tasks : list[str]
        Task keys run in this session type, in order.
    estimated_duration : int | None
        Expected duration in minutes.
    schedule : str | None
        Free-form schedule rule.
    """

    name: str = ""
    questionnaires: list[str] = Field(default_factory=list)
    tasks: list[str] = Field(default_factory=list)
    estimated_duration: int | None = Field(default=None, ge=0)
    schedule: str | None = None


class QuestionnaireConfig(StudyhubBaseModel):
    """When each questionnaire is administered.

    Attributes
    ----------
    schedule : dict[str, str]
        Questionnaire id to schedule rule ("every_session", "weekly", "once").
    """

    schedule: dict[str, str] = Field(default_factory=dict)


class ExperimentData(StudyhubBaseModel):
    """The researcher-editable payload of an experiment.

    Attributes
    ----------
    name : str
        Experiment name.
    description : str
        Free-text description.
    session_types : dict[str, SessionType]
        Session types keyed by name.
    questionnaire_ids : list[str]
        Denormalized list of referenced questionnaire ids, maintained by the
        store on create and update.

    Examples
    --------
    >>> data = ExperimentData.model_validate(
    ...     {"name": "Sleep", "sessionTypes": {"daily": {"questionnaires": ["PQ"]}}}
    ... )
    >>> data.session_types["daily"].questionnaires
    ['PQ']
    """

    name: str = ""
    description: str = ""
    session_types: dict[str, SessionType] = Field(default_factory=dict)
    questionnaire_ids: list[str] = Field(default_factory=list)


class CreateExperimentRequest(StudyhubBaseModel):
    """Input to ``ExperimentStore.create``.

    Attributes
    ----------
    id : str | None
        Caller-chosen id; a UUIDv7 string is generated when omitted.
    data : ExperimentData
        Experiment payload.
    questionnaire_config : QuestionnaireConfig
        Questionnaire schedule.
    """

    id: str | None = None
    data: ExperimentData
    questionnaire_config: QuestionnaireConfig = Field(
        default_factory=QuestionnaireConfig
    )


class ExperimentRecord(StudyhubBaseModel):
    """A stored experiment as returned by reads and writes.

    Attributes
    ----------
    id : str
        Experiment id.
    status : str
        Resolved status; empty for records with no status in either source.
    status_source : {"status", "data.Status"} | None
        Which attribute the status came from.
    """

    id: str
    status: str = ""
    status_source: StatusSource | None = None
    data: ExperimentData = Field(default_factory=ExperimentData)
    questionnaire_config: QuestionnaireConfig = Field(
        default_factory=QuestionnaireConfig
    )
    created_by: str | None = None
    created_at: str | None = None
    updated_by: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> ExperimentRecord:
        """Build a record from a decoded store item."""
        resolution = resolve_status(item)
        return cls(
            id=ExperimentKeys.parse_id(item["PK"]),
            status=resolution.status,
            status_source=resolution.source,
            data=ExperimentData.model_validate(item.get("data") or {}),
            questionnaire_config=QuestionnaireConfig.model_validate(
                item.get("questionnaireConfig") or {}
            ),
            created_by=item.get("createdBy"),
            created_at=item.get("createdAt"),
            updated_by=item.get("updatedBy"),
            updated_at=item.get("updatedAt"),
        )


class ExperimentSummary(StudyhubBaseModel):
    """Listing projection of an experiment.

    Attributes
    ----------
    role : str | None
        The caller's membership role, set only by "my experiments" listings.
    """

    id: str
    name: str = ""
    description: str = ""
    status: str = ""
    role: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> ExperimentSummary:
        """Build a summary from a (possibly projected) decoded item."""
        data = item.get("data") or {}
        return cls(
            id=ExperimentKeys.parse_id(item["PK"]),
            name=data.get("name") or "",
            description=data.get("description") or "",
            status=resolve_status(item).status,
        )
