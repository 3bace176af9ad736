"""Conversion between structured values and store-native attribute values.

A structured value is any JSON-like tree of strings, numbers, booleans,
None, lists, and string-keyed dictionaries. The store-native representation
is the typed attribute-value form used by DynamoDB (``{"S": "x"}``,
``{"M": {...}}``), produced by boto3's own serializer.

Numbers travel as decimal text so that no binary floating-point drift is
introduced on the way to the store and back.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal, DecimalException
from typing import Any

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from studyhub.errors import ValidationError

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def _to_store_scalars(value: Any) -> Any:
    """Prepare a structured value for the boto3 serializer.

    Floats become ``Decimal`` built from their shortest repr; tuples become
    lists. Everything else passes through for the serializer to judge.
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"Cannot store non-finite number: {value!r}")
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {str(key): _to_store_scalars(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_store_scalars(item) for item in value]
    return value


def _from_store_scalars(value: Any) -> Any:
    """Map decoded ``Decimal`` values back to ``int`` or ``float``."""
    if isinstance(value, Decimal):
        if value == value.to_integral_value() and value.as_tuple().exponent >= 0:
            return int(value)
        return float(value)
    if isinstance(value, dict):
        return {key: _from_store_scalars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_from_store_scalars(item) for item in value]
    return value


def encode(value: Any) -> dict[str, Any]:
    """Encode one structured value as a store attribute value.

    Parameters
    ----------
    value : Any
        Structured value (str, int, float, bool, None, list, dict).

    Returns
    -------
    dict[str, Any]
        Store attribute value, e.g. ``{"N": "1.5"}``.

    Raises
    ------
    ValidationError
        If the value contains a non-finite float or an unsupported type.

    Examples
    --------
    >>> encode({"name": "Sleep", "weeks": 2})
    {'M': {'name': {'S': 'Sleep'}, 'weeks': {'N': '2'}}}
    >>> encode(None)
    {'NULL': True}
    """
    try:
        return _serializer.serialize(_to_store_scalars(value))
    except (TypeError, DecimalException) as e:
        raise ValidationError(f"Cannot encode value for storage: {e}") from e


def decode(attribute: Mapping[str, Any]) -> Any:
    """Decode one store attribute value into a structured value.

    Parameters
    ----------
    attribute : Mapping[str, Any]
        Store attribute value.

    Returns
    -------
    Any
        Structured value. Integral numbers come back as ``int``, others as
        ``float``.

    Examples
    --------
    >>> decode({"L": [{"N": "1"}, {"N": "2.5"}, {"BOOL": True}]})
    [1, 2.5, True]
    """
    return _from_store_scalars(_deserializer.deserialize(dict(attribute)))


def encode_item(item: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Encode a top-level item (attribute name to structured value)."""
    return {name: encode(value) for name, value in item.items()}


def decode_item(item: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
    """Decode a top-level item (attribute name to store attribute value)."""
    return {name: decode(value) for name, value in item.items()}
