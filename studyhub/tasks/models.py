"""Task definitions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from studyhub.data.base import JsonValue, StudyhubBaseModel
from studyhub.references import dedupe_ids
from studyhub.store.keys import TaskKeys


class TaskData(StudyhubBaseModel):
    """Task payload.

    Attributes
    ----------
    name : str
        Display name.
    type : str
        Task kind, e.g. "cognitive" or "questionnaire".
    description : str
        Free-text description.
    questionnaire_ids : list[str]
        Questionnaires administered by the task.
    configuration : dict[str, JsonValue]
        Task-specific settings; a ``questionnaireId`` entry counts as a
        questionnaire reference.
    estimated_duration : int | None
        Expected duration in minutes.
    """

    name: str = ""
    type: str = ""
    description: str = ""
    questionnaire_ids: list[str] = Field(default_factory=list)
    configuration: dict[str, JsonValue] = Field(default_factory=dict)
    estimated_duration: int | None = Field(default=None, ge=0)

    def referenced_questionnaires(self) -> list[str]:
        """Questionnaire ids referenced by the payload.

        Examples
        --------
        >>> TaskData(
        ...     questionnaire_ids=["PQ"], configuration={"questionnaireId": "MOOD"}
        ... ).referenced_questionnaires()
        ['PQ', 'MOOD']
        """
        configured = self.configuration.get("questionnaireId")
        extra = [configured] if isinstance(configured, str) else []
        return dedupe_ids([*self.questionnaire_ids, *extra])


class CreateTaskRequest(StudyhubBaseModel):
    """Input to ``TaskStore.create``; ``task_key`` is normalized to uppercase."""

    task_key: str
    data: TaskData


class TaskRecord(StudyhubBaseModel):
    """A stored task."""

    key: str
    data: TaskData
    created_by: str | None = None
    created_at: str | None = None
    updated_by: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> TaskRecord:
        """Build a record from a decoded store item."""
        return cls(
            key=TaskKeys.parse_id(item["PK"]),
            data=TaskData.model_validate(item.get("data") or {}),
            created_by=item.get("createdBy"),
            created_at=item.get("createdAt"),
            updated_by=item.get("updatedBy"),
            updated_at=item.get("updatedAt"),
        )
