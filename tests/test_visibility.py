"""Tests for visibility conditions."""

import pytest

from nixwizard.lib.errors import ConfigurationError
from nixwizard.lib.visibility import (
    Comparison,
    VisibilityCondition,
    is_visible,
    parse_condition,
    parse_expression,
)


def lookup_from(values):
    return lambda name: values.get(name, "")


class TestParseExpression:
    """Tests for the single expression grammar."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("NETWORK_METHOD==static", Comparison("NETWORK_METHOD", "==", "static")),
            ("SSH_ENABLE!=false", Comparison("SSH_ENABLE", "!=", "false")),
            ("BOOT_TIMEOUT>=10", Comparison("BOOT_TIMEOUT", ">=", "10")),
            ("BOOT_TIMEOUT<5", Comparison("BOOT_TIMEOUT", "<", "5")),
            ("FIELD==", Comparison("FIELD", "==", "")),
        ],
    )
    def test_valid_expressions(self, expression, expected):
        assert parse_expression(expression) == expected

    @pytest.mark.parametrize("expression", ["method==static", "NETWORK_METHOD", "=static", "A=B"])
    def test_malformed_expressions_raise(self, expression):
        with pytest.raises(ConfigurationError, match="Invalid visibility expression"):
            parse_expression(expression, field="X")

    def test_malformed_condition_names_field(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_condition("NETWORK_METHOD=static", field="NETWORK_IP")
        assert exc_info.value.field == "NETWORK_IP"


class TestEvaluate:
    """Tests for comparison and condition evaluation."""

    def test_equality(self):
        condition = parse_condition("NETWORK_METHOD==static")
        assert is_visible(condition, lookup_from({"NETWORK_METHOD": "static"}))
        assert not is_visible(condition, lookup_from({"NETWORK_METHOD": "dhcp"}))

    def test_numeric_ordering_when_both_sides_are_integers(self):
        """9 < 10 numerically even though "9" > "10" as strings."""
        condition = parse_condition("BOOT_TIMEOUT<10")
        assert is_visible(condition, lookup_from({"BOOT_TIMEOUT": "9"}))
        assert not is_visible(condition, lookup_from({"BOOT_TIMEOUT": "10"}))

    def test_string_ordering_otherwise(self):
        condition = parse_condition("NAME<m")
        assert is_visible(condition, lookup_from({"NAME": "alpha"}))
        assert not is_visible(condition, lookup_from({"NAME": "zulu"}))

    def test_all_of(self):
        condition = parse_condition("A==1 B==2")
        assert is_visible(condition, lookup_from({"A": "1", "B": "2"}))
        assert not is_visible(condition, lookup_from({"A": "1", "B": "3"}))

    def test_any_of(self):
        condition = parse_condition(visible_any="A==1 B==2")
        assert is_visible(condition, lookup_from({"A": "0", "B": "2"}))
        assert not is_visible(condition, lookup_from({"A": "0", "B": "0"}))

    def test_all_and_any_must_both_hold(self):
        condition = parse_condition("A==1", "B==1 C==1")
        assert is_visible(condition, lookup_from({"A": "1", "C": "1"}))
        assert not is_visible(condition, lookup_from({"A": "0", "C": "1"}))
        assert not is_visible(condition, lookup_from({"A": "1"}))

    def test_no_condition_is_visible(self):
        assert parse_condition(None, "") is None
        assert is_visible(None, lookup_from({}))

    def test_evaluation_has_no_side_effects(self):
        values = {"A": "1"}
        condition = parse_condition("A==1")
        results = [condition.evaluate(lookup_from(values)) for _ in range(3)]
        assert results == [True, True, True]
        assert values == {"A": "1"}

    def test_referenced_fields(self):
        condition = VisibilityCondition(
            all_of=(Comparison("A", "==", "1"),), any_of=(Comparison("B", "<", "2"),)
        )
        assert condition.referenced_fields() == ("A", "B")
