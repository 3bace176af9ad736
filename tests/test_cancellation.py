"""Tests for cooperative cancellation."""

from __future__ import annotations

import pytest

from studyhub.cancellation import CancellationToken, check_cancelled
from studyhub.errors import OperationCancelledError


def test_fresh_token_not_cancelled() -> None:
    """Test a new token passes."""
    token = CancellationToken()
    token.raise_if_cancelled()
    assert not token.cancelled


def test_cancel_is_idempotent() -> None:
    """Test cancelling twice."""
    token = CancellationToken()
    token.cancel()
    token.cancel()
    with pytest.raises(OperationCancelledError):
        token.raise_if_cancelled()


def test_check_cancelled_accepts_none() -> None:
    """Test a missing token never cancels."""
    check_cancelled(None)


def test_check_cancelled_raises() -> None:
    """Test a cancelled token raises."""
    token = CancellationToken()
    token.cancel()
    with pytest.raises(OperationCancelledError):
        check_cancelled(token)
