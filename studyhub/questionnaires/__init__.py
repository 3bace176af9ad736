"""Questionnaire definitions and their store."""

from __future__ import annotations

from studyhub.questionnaires.models import (
    CreateQuestionnaireRequest,
    Question,
    QuestionnaireData,
    QuestionnaireRecord,
    QuestionType,
    Scale,
)
from studyhub.questionnaires.store import QuestionnaireStore

__all__ = [
    "CreateQuestionnaireRequest",
    "Question",
    "QuestionnaireData",
    "QuestionnaireRecord",
    "QuestionType",
    "Scale",
    "QuestionnaireStore",
]
