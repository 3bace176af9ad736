"""Document store interface.

A document store holds items (top-level attribute name to structured value)
in named tables. Every item has a partition key ``PK`` and a sort key ``SK``;
items may also carry secondary-index key attributes (``GSI1PK``/``GSI1SK``
and so on), and an item without them is simply absent from that index.

All writes are single-item. Conditional writes are atomic with respect to
other writes of the same item; this is the only concurrency primitive the
rest of the package relies on.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from studyhub.store.keys import PARTITION_ATTR, SORT_ATTR, IndexSpec, ItemKey

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.store.conditions import Condition

type Item = dict[str, Any]


@dataclass(frozen=True)
class Increment:
    """Update value that adds ``amount`` to a numeric attribute.

    A missing attribute counts as zero.
    """

    amount: int = 1


@dataclass(frozen=True)
class Query:
    """A key-condition query against the primary key or a secondary index.

    Attributes
    ----------
    partition_value : str
        Exact partition key value.
    index : IndexSpec | None
        Secondary index to query; None for the table's primary key.
    sort_op : {"begins_with", "gt"} | None
        Sort-key predicate; None matches every item in the partition.
    sort_value : str | None
        Operand of ``sort_op``.
    forward : bool
        Ascending sort-key order when True, descending otherwise.
    projection : tuple[str, ...] | None
        Dotted attribute paths to return; None returns whole items.
    limit : int | None
        Maximum number of items to return.
    consistent : bool
        Strongly consistent read; only honoured on the primary key.
    """

    partition_value: str
    index: IndexSpec | None = None
    sort_op: Literal["begins_with", "gt"] | None = None
    sort_value: str | None = None
    forward: bool = True
    projection: tuple[str, ...] | None = None
    limit: int | None = None
    consistent: bool = False

    @property
    def partition_attr(self) -> str:
        return self.index.partition_attr if self.index else PARTITION_ATTR

    @property
    def sort_attr(self) -> str:
        return self.index.sort_attr if self.index else SORT_ATTR


class DocumentStore(ABC):
    """Abstract single-table document store with conditional writes.

    Every method accepts a ``cancel`` token. Implementations check it before
    issuing the store call; reads check it again once the call returns and
    discard the late result. An acknowledged write is never reported as
    cancelled.
    Store failures are raised as ``studyhub.errors`` kinds: condition
    failures as ``ConditionFailedError``, throttling and transient faults as
    ``UnavailableError``.
    """

    @abstractmethod
    def get_item(
        self,
        table: str,
        key: ItemKey,
        *,
        consistent: bool = False,
        cancel: CancellationToken | None = None,
    ) -> Item | None:
        """Read one item, returning None when it does not exist."""

    @abstractmethod
    def put_item(
        self,
        table: str,
        item: Item,
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Create or replace one item, optionally guarded by a condition."""

    @abstractmethod
    def update_item(
        self,
        table: str,
        key: ItemKey,
        updates: dict[str, Any],
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> Item:
        """Set attributes of one item and return the item after the update.

        ``updates`` maps dotted attribute paths to new values or to an
        ``Increment``.
        """

    @abstractmethod
    def delete_item(
        self,
        table: str,
        key: ItemKey,
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        """Delete one item, optionally guarded by a condition."""

    @abstractmethod
    def query(
        self,
        table: str,
        query: Query,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[Item]:
        """Return every item matching the query, following all pages."""
