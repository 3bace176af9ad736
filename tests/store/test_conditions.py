"""Tests for write conditions."""

from __future__ import annotations

import pytest

from studyhub.store.conditions import (
    And,
    AttributeExists,
    AttributeNotExists,
    Equals,
    ExpressionBuilder,
    Or,
    any_equals,
    evaluate,
    exists_item,
    not_exists_item,
)


class TestCombinators:
    """Tests for condition composition."""

    def test_and_operator(self) -> None:
        """Test ``&`` builds an And node."""
        condition = AttributeExists("PK") & Equals("status", "Draft")
        assert isinstance(condition, And)
        assert len(condition.conditions) == 2

    def test_or_operator(self) -> None:
        """Test ``|`` builds an Or node."""
        assert isinstance(Equals("a", 1) | Equals("a", 2), Or)

    def test_any_equals_single_value(self) -> None:
        """Test a single accepted value gives a plain Equals."""
        assert any_equals("status", ["Draft"]) == Equals("status", "Draft")

    def test_any_equals_many_values(self) -> None:
        """Test several accepted values give an Or."""
        condition = any_equals("status", ("Active", "Paused"))
        assert isinstance(condition, Or)
        assert condition.conditions == (
            Equals("status", "Active"),
            Equals("status", "Paused"),
        )

    def test_any_equals_requires_values(self) -> None:
        """Test an empty value list is rejected."""
        with pytest.raises(ValueError):
            any_equals("status", [])


class TestEvaluate:
    """Tests for in-process evaluation."""

    def test_exists_item_on_missing_item(self) -> None:
        """Test existence fails for an absent item."""
        assert evaluate(exists_item(), None) is False

    def test_not_exists_item_on_missing_item(self) -> None:
        """Test non-existence holds for an absent item."""
        assert evaluate(not_exists_item(), None) is True

    def test_not_exists_item_on_present_item(self) -> None:
        """Test non-existence fails for a present item."""
        assert evaluate(not_exists_item(), {"PK": "A", "SK": "B"}) is False

    def test_equals_nested_path(self) -> None:
        """Test dotted paths reach nested attributes."""
        item = {"data": {"Status": "Paused"}}
        assert evaluate(Equals("data.Status", "Paused"), item) is True
        assert evaluate(Equals("data.Status", "Active"), item) is False

    def test_equals_missing_attribute(self) -> None:
        """Test Equals fails when the attribute is absent."""
        assert evaluate(Equals("status", None), {}) is False

    def test_attribute_not_exists_nested(self) -> None:
        """Test absence through a missing parent."""
        assert evaluate(AttributeNotExists("data.Status"), {"data": "text"}) is True

    def test_or_and_mix(self) -> None:
        """Test nested combinations."""
        condition = exists_item() & (
            Equals("status", "Active")
            | (AttributeNotExists("status") & Equals("data.Status", "Active"))
        )
        legacy = {"PK": "x", "SK": "y", "data": {"Status": "Active"}}
        both = {**legacy, "status": "Draft"}
        assert evaluate(condition, legacy) is True
        assert evaluate(condition, both) is False


class TestExpressionBuilder:
    """Tests for rendering DynamoDB expressions."""

    def test_render_exists(self) -> None:
        """Test attribute_exists rendering."""
        builder = ExpressionBuilder()
        assert builder.render(AttributeExists("PK")) == "attribute_exists(#n0)"
        assert builder.names == {"#n0": "PK"}

    def test_render_reuses_name_placeholders(self) -> None:
        """Test a repeated segment reuses its placeholder."""
        builder = ExpressionBuilder()
        rendered = builder.render(
            Equals("status", "Active") | Equals("data.status", "Active")
        )
        assert rendered == "#n0 = :v0 OR #n1.#n0 = :v1"
        assert builder.names == {"#n0": "status", "#n1": "data"}
        assert builder.values == {":v0": "Active", ":v1": "Active"}

    def test_render_groups_nested_nodes(self) -> None:
        """Test nested And/Or nodes are parenthesized."""
        builder = ExpressionBuilder()
        rendered = builder.render(
            AttributeExists("PK") & (Equals("a", 1) | Equals("b", 2))
        )
        assert rendered == "attribute_exists(#n0) AND (#n1 = :v0 OR #n2 = :v1)"
