"""Tests for the error taxonomy."""

from __future__ import annotations

import pytest
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from studyhub.errors import (
    ConditionFailedError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    OperationCancelledError,
    UnauthenticatedError,
    UnavailableError,
    ValidationError,
    error_kind,
    http_status,
)


@pytest.mark.parametrize(
    ("exc", "kind", "status"),
    [
        (ValidationError("bad"), "validation", 400),
        (UnauthenticatedError(), "unauthenticated", 401),
        (ForbiddenError("no", username="bob"), "forbidden", 403),
        (NotFoundError("Experiment", "E1"), "not_found", 404),
        (ConflictError("taken"), "conflict", 409),
        (UnavailableError("slow down"), "unavailable", 503),
        (OperationCancelledError(), "cancelled", 499),
        (InternalError("boom"), "internal", 500),
        (RuntimeError("foreign"), "internal", 500),
    ],
)
def test_kinds_and_status(exc: Exception, kind: str, status: int) -> None:
    """Test each error maps to its kind and transport status."""
    assert error_kind(exc) == kind
    assert http_status(exc) == status


def test_only_unavailable_is_retryable() -> None:
    """Test retryability."""
    assert UnavailableError("x").retryable
    assert not ConflictError("x").retryable


def test_validation_lists_every_missing_id() -> None:
    """Test the message names every missing questionnaire."""
    err = ValidationError(missing_ids=["PQ", "MOOD"])
    assert err.missing_ids == ["PQ", "MOOD"]
    assert "PQ" in str(err)
    assert "MOOD" in str(err)


def test_not_found_message() -> None:
    """Test the default not-found message."""
    err = NotFoundError("Experiment", "E1")
    assert str(err) == "Experiment 'E1' not found"
    assert err.entity_id == "E1"


def test_conflict_carries_statuses() -> None:
    """Test transition conflicts name both statuses."""
    err = ConflictError("Cannot transition", attempted_status="Active", current_status="Closed")
    assert str(err) == "Cannot transition (current status: Closed, attempted: Active)"


def test_condition_failed_is_conflict() -> None:
    """Test raw condition failures are conflicts until refined."""
    assert isinstance(ConditionFailedError(), ConflictError)
    assert error_kind(ConditionFailedError()) == "conflict"


def test_from_pydantic() -> None:
    """Test pydantic errors flatten to one message."""

    class Sample(BaseModel):
        count: int

    with pytest.raises(PydanticValidationError) as exc_info:
        Sample(count="many")
    err = ValidationError.from_pydantic(exc_info.value)
    assert err.field == "count"
    assert str(err).startswith("count:")
