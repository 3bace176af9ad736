"""Questionnaire responses and their store."""

from __future__ import annotations

from studyhub.responses.models import QuestionAnswer, ResponseData, ResponseRecord
from studyhub.responses.store import ResponseStore

__all__ = ["QuestionAnswer", "ResponseData", "ResponseRecord", "ResponseStore"]
