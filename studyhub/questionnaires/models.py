"""Questionnaire definitions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator

from studyhub.data.base import StudyhubBaseModel
from studyhub.store.keys import QuestionnaireKeys

type QuestionType = Literal["text", "choice", "select", "scale", "number", "boolean"]


class Scale(StudyhubBaseModel):
    """Numeric range of a scale question."""

    min: int
    max: int
    min_label: str | None = None
    max_label: str | None = None


class Question(StudyhubBaseModel):
    """One question of a questionnaire.

    Choice and select questions need options; scale questions need a scale
    whose minimum is below its maximum.
    """

    id: str
    text: str
    type: QuestionType
    options: list[str] | None = None
    required: bool = False
    scale: Scale | None = None

    @field_validator("id", "text")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        """Validate identifiers and question text are non-empty."""
        if not v or not v.strip():
            raise ValueError("must be non-empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_type_params(self) -> Question:
        """Validate type-specific parameters are provided."""
        if self.type in ("choice", "select") and not self.options:
            raise ValueError(f"Question '{self.id}' of type {self.type} needs options")
        if self.type == "scale":
            if self.scale is None:
                raise ValueError(f"Question '{self.id}' of type scale needs a scale")
            if self.scale.min >= self.scale.max:
                raise ValueError(
                    f"Question '{self.id}' scale min must be less than max"
                )
        return self


class QuestionnaireData(StudyhubBaseModel):
    """Questionnaire payload.

    Examples
    --------
    >>> data = QuestionnaireData(
    ...     name="Mood",
    ...     questions=[Question(id="q1", text="How are you?", type="text")],
    ... )
    >>> data.version
    '1.0'
    """

    name: str
    description: str = ""
    estimated_time: int | None = Field(default=None, ge=0)
    version: str = "1.0"
    questions: list[Question] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the name is non-empty."""
        if not v or not v.strip():
            raise ValueError("name must be non-empty")
        return v.strip()

    @field_validator("questions")
    @classmethod
    def validate_unique_ids(cls, v: list[Question]) -> list[Question]:
        """Validate question ids are unique within the questionnaire."""
        seen: set[str] = set()
        for question in v:
            if question.id in seen:
                raise ValueError(f"Duplicate question id '{question.id}'")
            seen.add(question.id)
        return v


class CreateQuestionnaireRequest(StudyhubBaseModel):
    """Input to ``QuestionnaireStore.create``."""

    id: str = Field(min_length=1)
    data: QuestionnaireData


class QuestionnaireRecord(StudyhubBaseModel):
    """A stored questionnaire.

    Attributes
    ----------
    version : int
        Incremented on every update and on soft delete.
    is_deleted : bool
        Soft-delete flag.
    """

    id: str
    data: QuestionnaireData
    version: int = 1
    is_deleted: bool = False
    last_modified: str | None = None
    created_by: str | None = None
    created_at: str | None = None
    updated_by: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> QuestionnaireRecord:
        """Build a record from a decoded store item."""
        sync = item.get("syncMetadata") or {}
        return cls(
            id=QuestionnaireKeys.parse_id(item["PK"]),
            data=QuestionnaireData.model_validate(item.get("data") or {}),
            version=sync.get("version", 1),
            is_deleted=sync.get("isDeleted", False),
            last_modified=sync.get("lastModified"),
            created_by=item.get("createdBy"),
            created_at=item.get("createdAt"),
            updated_by=item.get("updatedBy"),
            updated_at=item.get("updatedAt"),
        )
