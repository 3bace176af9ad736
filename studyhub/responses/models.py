"""Questionnaire responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from studyhub.data.base import JsonValue, StudyhubBaseModel


class QuestionAnswer(StudyhubBaseModel):
    """One answered question."""

    question_id: str = Field(min_length=1)
    answer: JsonValue = None
    timestamp: str | None = None


class ResponseData(StudyhubBaseModel):
    """The full answer set for one questionnaire completion.

    Attributes
    ----------
    experiment_id, session_id, task_id : str
        Where the questionnaire was completed; together they scope the
        experiment index.
    questionnaire_id : str
        Questionnaire answered.
    responses : list[QuestionAnswer]
        Answers in the order given.
    """

    experiment_id: str = Field(min_length=1)
    session_id: str = Field(min_length=1)
    task_id: str = Field(min_length=1)
    questionnaire_id: str = Field(min_length=1)
    responses: list[QuestionAnswer] = Field(default_factory=list)


class ResponseRecord(StudyhubBaseModel):
    """A stored response."""

    id: str
    participant_id: str
    data: ResponseData
    created_at: str | None = None
    updated_by: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> ResponseRecord:
        """Build a record from a decoded store item."""
        return cls(
            id=item["responseId"],
            participant_id=item["participantId"],
            data=ResponseData.model_validate(item.get("data") or {}),
            created_at=item.get("createdAt"),
            updated_by=item.get("updatedBy"),
            updated_at=item.get("updatedAt"),
        )
