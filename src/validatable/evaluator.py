"""Rule evaluation.

Evaluates one RuleDefinition against a live instance and returns at most one
ValidationMessage. Gating is not handled here: the engine decides whether a
rule runs at all before calling the evaluator.

- hasValue: target must not be None or a blank string
- numberGreaterThan: target > operand (literal or path)
- stringLengthGreaterThan / stringLengthLessThan: strict length bounds
- custom: the named handler decides, and its output is authoritative
"""

from __future__ import annotations

import dataclasses
from decimal import Decimal
from typing import Any

from validatable.errors import ConfigurationError, HandlerExecutionError
from validatable.localization import MessageResolver, NullMessageResolver
from validatable.paths import UNRESOLVED, resolve
from validatable.registry import MetadataRegistry
from validatable.rules import (
    CustomHandler,
    HasValue,
    NumberGreaterThan,
    Operand,
    RuleDefinition,
    StringLengthGreaterThan,
    StringLengthLessThan,
)
from validatable.types import PropertyDescriptor, ValidationMessage


class RuleEvaluator:
    """Evaluates single rules and builds their failure messages."""

    def __init__(self, resolver: MessageResolver | None = None):
        self.resolver = resolver or NullMessageResolver()

    def evaluate(
        self,
        instance: Any,
        rule: RuleDefinition,
        descriptor: PropertyDescriptor | None = None,
    ) -> ValidationMessage | None:
        """Evaluate ``rule`` against ``instance``.

        Returns:
            None if the rule passes, otherwise the failure message

        Raises:
            PathResolutionError: If the target or an operand path is invalid
            HandlerExecutionError: If a custom handler raised
        """
        if descriptor is None:
            descriptor = PropertyDescriptor(name=rule.property, declaring_type=type(instance))

        if isinstance(rule, CustomHandler):
            return self._run_handler(instance, rule, descriptor)

        value = resolve(instance, rule.property)

        if isinstance(rule, HasValue):
            passed = not self._is_empty(value)
        elif isinstance(rule, NumberGreaterThan):
            target = self._as_number(value)
            operand = self._as_number(self._operand_value(instance, rule.than))
            passed = target is not None and operand is not None and target > operand
        elif isinstance(rule, (StringLengthGreaterThan, StringLengthLessThan)):
            bound = self._as_number(self._operand_value(instance, rule.than))
            length = self._length(value)
            if bound is None:
                passed = False
            elif isinstance(rule, StringLengthGreaterThan):
                passed = length > bound
            else:
                passed = length < bound
        else:
            raise ConfigurationError(f"Unsupported rule type: {type(rule).__name__}")

        return None if passed else self.build_message(rule)

    def build_message(self, rule: RuleDefinition) -> ValidationMessage:
        """Build the failure message: localized text first, then fallback."""
        text = self.resolver.resolve(rule.key) if rule.key else None
        return ValidationMessage(
            severity=rule.severity,
            text=text or rule.fallback_text(),
            rule=rule,
        )

    def _run_handler(
        self,
        instance: Any,
        rule: CustomHandler,
        descriptor: PropertyDescriptor,
    ) -> ValidationMessage | None:
        handler = MetadataRegistry.get_handler(type(instance), rule.handler)
        fallback = self.build_message(rule)

        try:
            result = handler.__get__(instance, type(instance))(fallback, descriptor)
        except Exception as e:
            raise HandlerExecutionError(rule.handler, rule.property, e) from e

        if result is None:
            return None
        if isinstance(result, str):
            return dataclasses.replace(fallback, text=result)
        if isinstance(result, ValidationMessage):
            if result.rule is None:
                return dataclasses.replace(result, rule=rule)
            return result

        raise HandlerExecutionError(
            rule.handler,
            rule.property,
            TypeError(f"handler returned {type(result).__name__}, expected a message or None"),
        )

    @staticmethod
    def _operand_value(instance: Any, operand: Operand) -> Any:
        if not operand.is_path:
            return operand.value
        value = resolve(instance, operand.path)
        return None if value is UNRESOLVED else value

    @staticmethod
    def _is_empty(value: Any) -> bool:
        """Check if a value is considered absent."""
        if value is None or value is UNRESOLVED:
            return True
        if isinstance(value, str) and value.strip() == "":
            return True
        return False

    @staticmethod
    def _as_number(value: Any) -> int | float | Decimal | None:
        """Coerce to a number; None when the value is not numeric."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float, Decimal)):
            return value
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                return None
        return None

    @staticmethod
    def _length(value: Any) -> int:
        if value is None:
            return 0
        return len(value) if isinstance(value, str) else len(str(value))
