"""Predicates evaluated by the store at write time.

Conditions are small immutable trees. A backend either renders them into its
native conditional-write syntax (``render``) or evaluates them against the
current item under its own write lock (``evaluate``). Paths are dotted, so
``"data.Status"`` addresses the ``Status`` attribute nested in ``data``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

_MISSING = object()


@dataclass(frozen=True)
class Condition:
    """Base class for write conditions; combine with ``&`` and ``|``."""

    def __and__(self, other: Condition) -> And:
        return And((self, other))

    def __or__(self, other: Condition) -> Or:
        return Or((self, other))


@dataclass(frozen=True)
class AttributeExists(Condition):
    """Holds when the attribute at ``path`` is present."""

    path: str


@dataclass(frozen=True)
class AttributeNotExists(Condition):
    """Holds when the attribute at ``path`` is absent."""

    path: str


@dataclass(frozen=True)
class Equals(Condition):
    """Holds when the attribute at ``path`` is present and equal to ``value``."""

    path: str
    value: Any


@dataclass(frozen=True)
class And(Condition):
    """Holds when every child condition holds."""

    conditions: tuple[Condition, ...]


@dataclass(frozen=True)
class Or(Condition):
    """Holds when at least one child condition holds."""

    conditions: tuple[Condition, ...]


def exists_item() -> Condition:
    """Condition requiring the targeted item to exist."""
    return AttributeExists("PK") & AttributeExists("SK")


def not_exists_item() -> Condition:
    """Condition requiring the targeted item to be absent."""
    return AttributeNotExists("PK") & AttributeNotExists("SK")


def any_equals(path: str, values: list[Any] | tuple[Any, ...]) -> Condition:
    """Condition holding when the attribute equals any of ``values``.

    Parameters
    ----------
    path : str
        Dotted attribute path.
    values : list[Any] | tuple[Any, ...]
        Accepted values; must not be empty.

    Returns
    -------
    Condition
        A single ``Equals`` or an ``Or`` of them.

    Raises
    ------
    ValueError
        If ``values`` is empty.
    """
    if not values:
        raise ValueError("any_equals requires at least one value")
    if len(values) == 1:
        return Equals(path, values[0])
    return Or(tuple(Equals(path, value) for value in values))


class ExpressionBuilder:
    """Collects placeholder names and values while rendering expressions.

    One builder is shared by every expression of a single request
    (condition, update, key condition, projection) so that placeholders do
    not collide.

    Examples
    --------
    >>> builder = ExpressionBuilder()
    >>> builder.render(Equals("data.Status", "Draft"))
    '#n0.#n1 = :v0'
    >>> builder.names
    {'#n0': 'data', '#n1': 'Status'}
    >>> builder.values
    {':v0': 'Draft'}
    """

    def __init__(self) -> None:
        self.names: dict[str, str] = {}
        self.values: dict[str, Any] = {}
        self._name_placeholders: dict[str, str] = {}

    def name(self, path: str) -> str:
        """Return the placeholder expression for a dotted attribute path."""
        parts: list[str] = []
        for segment in path.split("."):
            placeholder = self._name_placeholders.get(segment)
            if placeholder is None:
                placeholder = f"#n{len(self._name_placeholders)}"
                self._name_placeholders[segment] = placeholder
                self.names[placeholder] = segment
            parts.append(placeholder)
        return ".".join(parts)

    def value(self, value: Any) -> str:
        """Register a value and return its placeholder."""
        placeholder = f":v{len(self.values)}"
        self.values[placeholder] = value
        return placeholder

    def render(self, condition: Condition) -> str:
        """Render a condition into DynamoDB condition-expression syntax.

        Raises
        ------
        TypeError
            If the condition type is unknown.
        """
        if isinstance(condition, AttributeExists):
            return f"attribute_exists({self.name(condition.path)})"
        if isinstance(condition, AttributeNotExists):
            return f"attribute_not_exists({self.name(condition.path)})"
        if isinstance(condition, Equals):
            return f"{self.name(condition.path)} = {self.value(condition.value)}"
        if isinstance(condition, And):
            return " AND ".join(self._group(child) for child in condition.conditions)
        if isinstance(condition, Or):
            return " OR ".join(self._group(child) for child in condition.conditions)
        raise TypeError(f"Unknown condition type: {type(condition).__name__}")

    def _group(self, condition: Condition) -> str:
        rendered = self.render(condition)
        if isinstance(condition, (And, Or)):
            return f"({rendered})"
        return rendered


def resolve_path(item: dict[str, Any], path: str) -> Any:
    """Resolve a dotted path in a decoded item.

    Returns
    -------
    Any
        The value, or a private sentinel when any segment is missing.
    """
    current: Any = item
    for segment in path.split("."):
        if not isinstance(current, dict) or segment not in current:
            return _MISSING
        current = current[segment]
    return current


def is_missing(value: Any) -> bool:
    """Whether ``resolve_path`` found nothing."""
    return value is _MISSING


def evaluate(condition: Condition, item: dict[str, Any] | None) -> bool:
    """Evaluate a condition against the current item (None when absent).

    Examples
    --------
    >>> evaluate(AttributeNotExists("PK"), None)
    True
    >>> evaluate(Equals("data.Status", "Draft"), {"data": {"Status": "Draft"}})
    True
    """
    current = item or {}
    if isinstance(condition, AttributeExists):
        return not is_missing(resolve_path(current, condition.path))
    if isinstance(condition, AttributeNotExists):
        return is_missing(resolve_path(current, condition.path))
    if isinstance(condition, Equals):
        found = resolve_path(current, condition.path)
        return not is_missing(found) and found == condition.value
    if isinstance(condition, And):
        return all(evaluate(child, item) for child in condition.conditions)
    if isinstance(condition, Or):
        return any(evaluate(child, item) for child in condition.conditions)
    raise TypeError(f"Unknown condition type: {type(condition).__name__}")
