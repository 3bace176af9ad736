"""Tests for CLI helper functions."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from studyhub.cli.utils import (
    exit_code_for,
    format_output,
    get_nested_value,
    load_data_file,
    parse_model,
    redact_sensitive_values,
)
from studyhub.errors import ConflictError, UnavailableError, ValidationError
from studyhub.memberships.models import MemberBatchItem


class TestFormatOutput:
    """Tests for format_output."""

    def test_json(self) -> None:
        """Test JSON output."""
        assert json.loads(format_output({"a": 1}, "json")) == {"a": 1}

    def test_yaml_keeps_order(self) -> None:
        """Test YAML output keeps key order."""
        assert format_output({"b": 1, "a": 2}, "yaml") == "b: 1\na: 2\n"

    def test_table_rows(self) -> None:
        """Test lists render one column per key."""
        output = format_output([{"id": "E1", "status": None}], "table")
        assert "id" in output
        assert "E1" in output

    def test_invalid(self) -> None:
        """Test unknown formats."""
        with pytest.raises(ValueError):
            format_output({}, "xml")  # type: ignore[arg-type]


def test_exit_codes() -> None:
    """Test failure kinds map to exit codes."""
    assert exit_code_for(ValidationError("x")) == 2
    assert exit_code_for(ConflictError("x")) == 4
    assert exit_code_for(UnavailableError("x")) == 5
    assert exit_code_for(RuntimeError("x")) == 1


def test_get_nested_value_missing() -> None:
    """Test missing paths raise KeyError."""
    with pytest.raises(KeyError):
        get_nested_value({"a": 1}, "a.b")


def test_redact() -> None:
    """Test empty secrets stay empty."""
    assert redact_sensitive_values({"token": ""}) == {"token": None}


def test_load_data_file_json(tmp_path: Path) -> None:
    """Test JSON files parse through the YAML loader."""
    path = tmp_path / "members.json"
    path.write_text('[{"participantId": "p1"}]')
    assert load_data_file(path) == [{"participantId": "p1"}]


def test_load_data_file_malformed(tmp_path: Path) -> None:
    """Test parse errors become validation failures."""
    path = tmp_path / "bad.yaml"
    path.write_text("[unclosed")
    with pytest.raises(ValidationError):
        load_data_file(path)


def test_parse_model() -> None:
    """Test pydantic failures become validation failures."""
    assert parse_model(MemberBatchItem, {"participantId": "p1"}).participant_id == "p1"
    with pytest.raises(ValidationError):
        parse_model(MemberBatchItem, {"role": "owner"})
