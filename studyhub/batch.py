"""Per-item outcomes of non-transactional batch operations.

A batch is a sequence of independent single-item writes. Failures are
recorded per item and never roll back the items that already succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from functools import reduce
from typing import Literal

from pydantic import BaseModel, Field

from studyhub.cancellation import CancellationToken, check_cancelled
from studyhub.errors import ErrorKind, OperationCancelledError, error_kind

logger = logging.getLogger(__name__)


class BatchItemResult(BaseModel):
    """Outcome of one batch item.

    Attributes
    ----------
    id : str
        Identifier of the item.
    status : {"success", "error"}
        Whether the item was applied.
    error : str | None
        Failure message for failed items.
    kind : ErrorKind | None
        Failure kind for failed items.
    """

    id: str
    status: Literal["success", "error"]
    error: str | None = None
    kind: ErrorKind | None = None


class BatchSummary(BaseModel):
    """Counts over a batch."""

    processed: int = Field(default=0, ge=0)
    successful: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)


class BatchResult(BaseModel):
    """Summary plus per-item results, in input order.

    Examples
    --------
    >>> result = BatchResult().record(BatchItemResult(id="PQ", status="success"))
    >>> result.summary.successful
    1
    """

    summary: BatchSummary = Field(default_factory=BatchSummary)
    results: list[BatchItemResult] = Field(default_factory=list)

    def record(self, outcome: BatchItemResult) -> BatchResult:
        """Return a new result with one more item outcome folded in."""
        succeeded = outcome.status == "success"
        return BatchResult(
            summary=BatchSummary(
                processed=self.summary.processed + 1,
                successful=self.summary.successful + int(succeeded),
                failed=self.summary.failed + int(not succeeded),
            ),
            results=[*self.results, outcome],
        )


def run_batch[T](
    items: Iterable[T],
    identify: Callable[[T], str],
    operation: Callable[[T], object],
    cancel: CancellationToken | None = None,
) -> BatchResult:
    """Apply ``operation`` to every item and fold the outcomes.

    Parameters
    ----------
    items : Iterable[T]
        Items to process.
    identify : Callable[[T], str]
        Returns the identifier reported for an item.
    operation : Callable[[T], object]
        Applies one item; any exception marks that item as failed.
    cancel : CancellationToken | None
        Checked before each item.

    Returns
    -------
    BatchResult
        Summary and per-item results.

    Raises
    ------
    OperationCancelledError
        If cancelled; items applied before cancellation stay applied.
    """

    def step(result: BatchResult, item: T) -> BatchResult:
        check_cancelled(cancel)
        item_id = identify(item)
        try:
            operation(item)
        except OperationCancelledError:
            raise
        except Exception as e:
            kind = error_kind(e)
            if kind == "internal":
                logger.exception(f"Batch item {item_id} failed unexpectedly")
            else:
                logger.info(f"Batch item {item_id} failed ({kind}): {e}")
            return result.record(
                BatchItemResult(id=item_id, status="error", error=str(e), kind=kind)
            )
        return result.record(BatchItemResult(id=item_id, status="success"))

    outcome = reduce(step, items, BatchResult())
    logger.info(
        f"Batch finished: {outcome.summary.successful}/{outcome.summary.processed} "
        f"succeeded"
    )
    return outcome
