"""In-process document store.

Items are kept in their encoded attribute-value form and decoded on every
read, so callers always receive fresh copies and every payload passes
through the same codec as with the DynamoDB backend. A single lock
serializes writes, which makes each conditional write atomic across threads.
Secondary indexes are sparse: an item appears in an index only when it
carries both of the index's key attributes.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from studyhub.cancellation import check_cancelled
from studyhub.errors import ConditionFailedError, InternalError
from studyhub.store.base import DocumentStore, Increment, Item, Query
from studyhub.store.codec import decode_item, encode_item
from studyhub.store.conditions import evaluate, is_missing, resolve_path
from studyhub.store.keys import PARTITION_ATTR, SORT_ATTR, ItemKey

if TYPE_CHECKING:
    from studyhub.cancellation import CancellationToken
    from studyhub.store.conditions import Condition

logger = logging.getLogger(__name__)

type _Table = dict[tuple[str, str], dict[str, Any]]


def _assign(item: Item, path: str, value: Any) -> None:
    """Set a dotted path; every parent segment must already be a map."""
    segments = path.split(".")
    parent: Any = item
    for segment in segments[:-1]:
        if not isinstance(parent, dict) or segment not in parent:
            raise InternalError(f"Update path parent does not exist: {path}")
        parent = parent[segment]
    if not isinstance(parent, dict):
        raise InternalError(f"Update path parent is not a map: {path}")
    if isinstance(value, Increment):
        current = parent.get(segments[-1], 0)
        parent[segments[-1]] = current + value.amount
    else:
        parent[segments[-1]] = value


def _project(item: Item, paths: tuple[str, ...]) -> Item:
    """Keep only the given dotted paths of an item."""
    result: Item = {}
    for path in paths:
        found = resolve_path(item, path)
        if is_missing(found):
            continue
        segments = path.split(".")
        target = result
        for segment in segments[:-1]:
            target = target.setdefault(segment, {})
        target[segments[-1]] = found
    return result


class MemoryDocumentStore(DocumentStore):
    """Thread-safe in-memory ``DocumentStore``.

    Examples
    --------
    >>> from studyhub.store.keys import ExperimentKeys
    >>> store = MemoryDocumentStore()
    >>> key = ExperimentKeys.primary("E1")
    >>> store.put_item("experiments", {**key.as_dict(), "status": "Draft"})
    >>> store.get_item("experiments", key)["status"]
    'Draft'
    """

    def __init__(self) -> None:
        self._tables: dict[str, _Table] = {}
        self._lock = threading.Lock()

    def _table(self, name: str) -> _Table:
        return self._tables.setdefault(name, {})

    def _current(self, table: str, key: ItemKey) -> Item | None:
        encoded = self._table(table).get((key.pk, key.sk))
        return decode_item(encoded) if encoded is not None else None

    def _check(self, condition: Condition | None, current: Item | None) -> None:
        if condition is not None and not evaluate(condition, current):
            raise ConditionFailedError()

    def get_item(
        self,
        table: str,
        key: ItemKey,
        *,
        consistent: bool = False,
        cancel: CancellationToken | None = None,
    ) -> Item | None:
        check_cancelled(cancel)
        with self._lock:
            item = self._current(table, key)
        check_cancelled(cancel)
        return item

    def put_item(
        self,
        table: str,
        item: Item,
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        check_cancelled(cancel)
        key = ItemKey(item[PARTITION_ATTR], item[SORT_ATTR])
        encoded = encode_item(item)
        with self._lock:
            self._check(condition, self._current(table, key))
            self._table(table)[(key.pk, key.sk)] = encoded
        logger.debug(f"put {table} {key.pk}/{key.sk}")

    def update_item(
        self,
        table: str,
        key: ItemKey,
        updates: dict[str, Any],
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> Item:
        check_cancelled(cancel)
        with self._lock:
            current = self._current(table, key)
            self._check(condition, current)
            updated = current if current is not None else key.as_dict()
            for path, value in updates.items():
                _assign(updated, path, value)
            self._table(table)[(key.pk, key.sk)] = encode_item(updated)
        logger.debug(f"update {table} {key.pk}/{key.sk}: {sorted(updates)}")
        return decode_item(encode_item(updated))

    def delete_item(
        self,
        table: str,
        key: ItemKey,
        *,
        condition: Condition | None = None,
        cancel: CancellationToken | None = None,
    ) -> None:
        check_cancelled(cancel)
        with self._lock:
            self._check(condition, self._current(table, key))
            self._table(table).pop((key.pk, key.sk), None)
        logger.debug(f"delete {table} {key.pk}/{key.sk}")

    def query(
        self,
        table: str,
        query: Query,
        *,
        cancel: CancellationToken | None = None,
    ) -> list[Item]:
        check_cancelled(cancel)
        with self._lock:
            items = [decode_item(encoded) for encoded in self._table(table).values()]
        check_cancelled(cancel)

        matches: list[Item] = []
        for item in items:
            if item.get(query.partition_attr) != query.partition_value:
                continue
            sort_value = item.get(query.sort_attr)
            if not isinstance(sort_value, str):
                continue
            if query.sort_op == "begins_with" and not sort_value.startswith(
                query.sort_value or ""
            ):
                continue
            if query.sort_op == "gt" and not sort_value > (query.sort_value or ""):
                continue
            matches.append(item)

        matches.sort(key=lambda item: item[query.sort_attr], reverse=not query.forward)
        if query.limit is not None:
            matches = matches[: query.limit]
        if query.projection is not None:
            matches = [_project(item, query.projection) for item in matches]
        return matches

    def all_items(self, table: str) -> list[Item]:
        """Return every item of a table in key order (for inspection in tests)."""
        with self._lock:
            encoded = sorted(self._table(table).items())
        return [decode_item(value) for _, value in encoded]
