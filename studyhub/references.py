"""Referential integrity between experiments and questionnaires.

An experiment may only reference questionnaires that exist in the separate
questionnaire collection. Ids are compared case-insensitively after
trimming; the first spelling seen is the one reported.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, Field

from studyhub.errors import ValidationError, format_missing
from studyhub.store.keys import QuestionnaireKeys

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.store.base import DocumentStore

logger = logging.getLogger(__name__)

VALID_MESSAGE = "All dependencies are valid"


def dedupe_ids(ids: Iterable[str | None]) -> list[str]:
    """Trim ids and drop blanks and case-insensitive duplicates.

    Examples
    --------
    >>> dedupe_ids([" PQ ", "pq", "", None, "MOOD"])
    ['PQ', 'MOOD']
    """
    seen: set[str] = set()
    result: list[str] = []
    for raw in ids:
        value = (raw or "").strip()
        if not value or value.casefold() in seen:
            continue
        seen.add(value.casefold())
        result.append(value)
    return result


def collect_questionnaire_ids(
    session_types: Mapping[str, Any] | None,
    schedule: Mapping[str, Any] | None = None,
) -> list[str]:
    """Collect every questionnaire id an experiment references.

    Parameters
    ----------
    session_types : Mapping[str, Any] | None
        Session types keyed by name. Values are ``SessionType`` models or
        mappings with a ``questionnaires`` list.
    schedule : Mapping[str, Any] | None
        Questionnaire schedule keyed by questionnaire id, or None to consider
        session types only.

    Returns
    -------
    list[str]
        Deduplicated ids in first-seen order.

    Examples
    --------
    >>> collect_questionnaire_ids(
    ...     {"daily": {"questionnaires": ["PQ", "mood"]}},
    ...     {"MOOD": "every_session", "SLEEP": "weekly"},
    ... )
    ['PQ', 'mood', 'SLEEP']
    """
    ids: list[str | None] = []
    for session_type in (session_types or {}).values():
        if isinstance(session_type, Mapping):
            ids.extend(session_type.get("questionnaires") or [])
        else:
            ids.extend(getattr(session_type, "questionnaires", None) or [])
    ids.extend((schedule or {}).keys())
    return dedupe_ids(ids)


class QuestionnaireDirectory(Protocol):
    """Answers whether a questionnaire exists."""

    def exists(
        self, questionnaire_id: str, *, cancel: CancellationToken | None = None
    ) -> bool: ...  # noqa: D102


class StoreQuestionnaireDirectory:
    """Existence checks by point read against the questionnaire collection.

    Soft-deleted questionnaires count as missing.

    Parameters
    ----------
    store : DocumentStore
        Document store holding the questionnaire table.
    table : str
        Questionnaire table name.
    """

    def __init__(self, store: DocumentStore, table: str) -> None:
        self.store = store
        self.table = table

    def exists(
        self, questionnaire_id: str, *, cancel: CancellationToken | None = None
    ) -> bool:
        """Whether a live questionnaire with this id exists."""
        item = self.store.get_item(
            self.table, QuestionnaireKeys.primary(questionnaire_id), cancel=cancel
        )
        if item is None:
            return False
        return not (item.get("syncMetadata") or {}).get("isDeleted", False)


class ValidationReport(BaseModel):
    """Result of a dry-run dependency check.

    Attributes
    ----------
    valid : bool
        True when no referenced questionnaire is missing.
    referenced_ids : list[str]
        Every referenced id.
    missing_ids : list[str]
        Referenced ids that do not exist.
    message : str
        Human-readable summary.
    """

    valid: bool
    referenced_ids: list[str] = Field(default_factory=list)
    missing_ids: list[str] = Field(default_factory=list)
    message: str = VALID_MESSAGE


class ReferentialValidator:
    """Checks questionnaire references against a directory.

    Issues one existence read per referenced id.

    Parameters
    ----------
    directory : QuestionnaireDirectory
        Source of truth for questionnaire existence.
    """

    def __init__(self, directory: QuestionnaireDirectory) -> None:
        self.directory = directory

    def find_missing(
        self, ids: Iterable[str], *, cancel: CancellationToken | None = None
    ) -> list[str]:
        """Return the ids that do not exist, in input order."""
        missing = [
            questionnaire_id
            for questionnaire_id in dedupe_ids(ids)
            if not self.directory.exists(questionnaire_id, cancel=cancel)
        ]
        if missing:
            logger.debug(f"Missing questionnaires: {missing}")
        return missing

    def assert_valid(
        self, ids: Iterable[str], *, cancel: CancellationToken | None = None
    ) -> None:
        """Raise if any id is missing.

        Raises
        ------
        ValidationError
            Naming every missing id.
        """
        missing = self.find_missing(ids, cancel=cancel)
        if missing:
            raise ValidationError(missing_ids=missing, field="questionnaires")

    def report(
        self, ids: Iterable[str], *, cancel: CancellationToken | None = None
    ) -> ValidationReport:
        """Check ids without raising.

        Returns
        -------
        ValidationReport
            Referenced and missing ids plus a summary message.
        """
        referenced = dedupe_ids(ids)
        missing = self.find_missing(referenced, cancel=cancel)
        return ValidationReport(
            valid=not missing,
            referenced_ids=referenced,
            missing_ids=missing,
            message=format_missing(missing) if missing else VALID_MESSAGE,
        )
