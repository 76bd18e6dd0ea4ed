"""Tests for rule definitions and their dict form."""

import dataclasses

import pytest

from validatable import (
    ConfigurationError,
    CustomHandler,
    HasValue,
    NumberGreaterThan,
    Operand,
    Severity,
    StringLengthGreaterThan,
    StringLengthLessThan,
    rule_from_dict,
)
from validatable.rules import coerce_rule


class TestOperand:
    def test_number_is_literal(self):
        operand = Operand.coerce(6)
        assert operand.value == 6
        assert not operand.is_path

    def test_string_is_path(self):
        operand = Operand.coerce("Account.MinimumBalance")
        assert operand.path == "Account.MinimumBalance"
        assert operand.is_path

    def test_rejects_booleans(self):
        with pytest.raises(ConfigurationError):
            Operand.coerce(True)

    def test_rejects_blank_paths(self):
        with pytest.raises(ConfigurationError):
            Operand.coerce("  ")

    def test_requires_exactly_one_side(self):
        with pytest.raises(ConfigurationError):
            Operand()
        with pytest.raises(ConfigurationError):
            Operand(value=1, path="A")

    def test_str(self):
        assert str(Operand.coerce(6)) == "6"
        assert str(Operand.coerce("A.B")) == "A.B"


class TestRuleDefinitions:
    def test_rules_are_immutable(self):
        rule = HasValue(property="Email")
        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.property = "Password"

    def test_comparison_operands_are_coerced(self):
        rule = NumberGreaterThan(than="Account.MinimumBalance")
        assert rule.than == Operand(path="Account.MinimumBalance")
        assert rule.paths() == ("Account.MinimumBalance",)

    def test_literal_operands_read_no_paths(self):
        assert StringLengthLessThan(than=20).paths() == ()

    def test_bind_sets_property(self):
        rule = HasValue(message="required").bind("Email")
        assert rule.property == "Email"
        assert rule.message == "required"

    def test_bind_rejects_conflicting_property(self):
        with pytest.raises(ConfigurationError):
            HasValue(property="Email").bind("Password")

    def test_equal_rules_compare_equal(self):
        assert HasValue(property="Email") == HasValue(property="Email")
        assert hash(NumberGreaterThan(than=1)) == hash(NumberGreaterThan(than=1))

    def test_fallback_prefers_literal_message(self):
        assert HasValue(property="Email", message="blank").fallback_text() == "blank"
        assert HasValue(property="Email").fallback_text() == "Email must have a value"

    def test_default_texts(self):
        assert "greater than 5" in NumberGreaterThan(property="N", than=5).default_text()
        assert "longer than 6" in StringLengthGreaterThan(property="P", than=6).default_text()
        assert "shorter than 20" in StringLengthLessThan(property="P", than=20).default_text()

    def test_custom_handler_requires_name(self):
        with pytest.raises(ConfigurationError):
            CustomHandler(handler="")


class TestRuleFromDict:
    def test_has_value(self):
        rule = rule_from_dict(
            {"type": "hasValue", "key": "K", "message": "M", "severity": "warning"},
            "Email",
        )
        assert rule == HasValue(property="Email", key="K", message="M", severity=Severity.WARNING)

    def test_comparison_with_gate(self):
        rule = rule_from_dict(
            {
                "type": "numberGreaterThan",
                "params": {"than": "Account.MinimumBalance"},
                "when": "Account.IsOpen",
            },
            "CurrentBalance",
        )
        assert isinstance(rule, NumberGreaterThan)
        assert rule.when_valid == "Account.IsOpen"
        assert rule.than.path == "Account.MinimumBalance"

    def test_custom(self):
        rule = rule_from_dict({"type": "custom", "params": {"handler": "H"}}, "Email")
        assert rule == CustomHandler(property="Email", handler="H")

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="Unknown rule type"):
            rule_from_dict({"type": "regex"}, "Email")

    def test_invalid_severity(self):
        with pytest.raises(ConfigurationError, match="severity"):
            rule_from_dict({"type": "hasValue", "severity": "fatal"}, "Email")

    def test_comparison_requires_than(self):
        with pytest.raises(ConfigurationError, match="params.than"):
            rule_from_dict({"type": "stringLengthLessThan"}, "Password")


class TestCoerceRule:
    def test_accepts_dicts(self):
        assert coerce_rule({"type": "hasValue"}, "Email") == HasValue(property="Email")

    def test_binds_definitions(self):
        assert coerce_rule(HasValue(), "Email").property == "Email"

    def test_rejects_other_values(self):
        with pytest.raises(ConfigurationError):
            coerce_rule("hasValue", "Email")
