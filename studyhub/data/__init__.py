"""Shared data primitives: the base model, identifiers, and timestamps."""

from __future__ import annotations

from studyhub.data.base import JsonValue, StudyhubBaseModel
from studyhub.data.identifiers import generate_id, generate_uuid, is_valid_uuid7
from studyhub.data.timestamps import (
    format_iso8601,
    now_iso8601,
    parse_iso8601,
    utc_timestamp,
)

__all__ = [
    "JsonValue",
    "StudyhubBaseModel",
    "generate_id",
    "generate_uuid",
    "is_valid_uuid7",
    "format_iso8601",
    "now_iso8601",
    "parse_iso8601",
    "utc_timestamp",
]
