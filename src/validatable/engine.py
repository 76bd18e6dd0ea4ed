"""Validation engine.

Orchestrates evaluation of a property's rules (or of every property with
rules) for one object, applying conditional gates and recording the results
in a MessageAggregator.

One call to ``validate_property`` or ``validate_all`` is a pass. Within a
pass, each property is evaluated at most once; gate properties are
validated on demand (through the engine of the object that owns them) and
a pass-scoped in-progress set breaks gate cycles.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from validatable.errors import HandlerExecutionError
from validatable.evaluator import RuleEvaluator
from validatable.localization import MessageResolver
from validatable.messages import MessageAggregator
from validatable.paths import UNRESOLVED, resolve, resolve_owner
from validatable.registry import MetadataRegistry, TypeMetadata
from validatable.rules import RuleDefinition
from validatable.types import (
    Diagnostic,
    DiagnosticKind,
    Severity,
    ValidationMessage,
    ValidationPass,
)

logger = logging.getLogger(__name__)


@dataclass
class _PassState:
    """Bookkeeping for a single pass."""

    report: ValidationPass = field(default_factory=ValidationPass)
    in_progress: set[tuple[int, str]] = field(default_factory=set)
    completed: set[tuple[int, str]] = field(default_factory=set)
    engines: dict[int, ValidationEngine] = field(default_factory=dict)


class ValidationEngine:
    """Validates one object against the rules declared on its type.

    Example:
        engine = ValidationEngine(user)
        result = engine.validate_all()
        if not engine.aggregator.is_valid():
            for name, messages in engine.aggregator.get_all_messages().items():
                ...
    """

    def __init__(
        self,
        instance: Any,
        aggregator: MessageAggregator | None = None,
        resolver: MessageResolver | None = None,
        evaluator: RuleEvaluator | None = None,
    ):
        self.instance = instance
        self.aggregator = aggregator if aggregator is not None else MessageAggregator()
        self.evaluator = evaluator or RuleEvaluator(resolver)
        # Properties of this instance currently being validated, across passes
        self._active: set[str] = set()

    @property
    def metadata(self) -> TypeMetadata:
        return MetadataRegistry.get(type(self.instance))

    def validate_property(self, property_name: str) -> ValidationPass:
        """Run one pass for a single property.

        Raises:
            ConfigurationError: If the type's rule metadata is malformed
            PathResolutionError: If a rule names a missing property
        """
        state = _PassState()
        self._validate(property_name, state, property_name)
        return state.report

    def validate_all(self) -> ValidationPass:
        """Validate every property that has at least one rule.

        Each property runs as an independent pass; the returned report
        merges them.
        """
        report = ValidationPass()
        for property_name in self.metadata.properties:
            self._merge(report, self.validate_property(property_name))
        return report

    def on_property_changed(self, property_name: str) -> ValidationPass:
        """Re-validate a changed property and every property gated on it.

        A property whose evaluation is already under way (e.g. a handler
        assigning to the property it validates) is not re-entered.
        """
        report = ValidationPass()
        for affected in self.affected_by(property_name):
            if affected in self._active:
                logger.debug(
                    "Skipping re-entrant validation of '%s' after a change to '%s'",
                    affected,
                    property_name,
                )
                continue
            self._merge(report, self.validate_property(affected))
        return report

    def affected_by(self, property_name: str) -> list[str]:
        """Properties to re-validate after ``property_name`` changes.

        The changed property comes first (when it has rules), followed by
        the transitive closure of properties whose gates reference it.
        """
        metadata = self.metadata
        affected: list[str] = []
        queue = [property_name]
        seen = {property_name}
        while queue:
            current = queue.pop(0)
            if current in metadata.rules:
                affected.append(current)
            for dependent in metadata.dependents.get(current, ()):
                if dependent not in seen:
                    seen.add(dependent)
                    queue.append(dependent)
        return affected

    def is_valid(self) -> bool:
        return self.aggregator.is_valid()

    def get_messages(self, property_name: str) -> tuple[ValidationMessage, ...]:
        return self.aggregator.get_messages(property_name)

    # ------------------------------------------------------------------
    # Pass internals
    # ------------------------------------------------------------------

    def _validate(self, property_name: str, state: _PassState, label: str) -> None:
        key = (id(self.instance), property_name)
        if key in state.completed:
            return

        metadata = self.metadata
        descriptor = metadata.descriptors.get(property_name)
        messages: list[ValidationMessage] = []

        state.in_progress.add(key)
        self._active.add(property_name)
        try:
            for rule in metadata.rules.get(property_name, ()):
                # Gated rules are skipped entirely while the gate is unsatisfied
                if rule.when_valid and not self._gate_satisfied(rule, state, label):
                    continue

                try:
                    message = self.evaluator.evaluate(self.instance, rule, descriptor)
                except HandlerExecutionError as e:
                    message = self._handler_fault(rule, e, state, label)

                if message is not None:
                    messages.append(message)
        finally:
            state.in_progress.discard(key)
            self._active.discard(property_name)

        state.completed.add(key)
        self.aggregator.replace(property_name, messages)
        state.report.results[label] = tuple(messages)

    def _gate_satisfied(self, rule: RuleDefinition, state: _PassState, label: str) -> bool:
        """Check the rule's gate against the gate property's current validity."""
        gate_path = rule.when_valid
        located = resolve_owner(self.instance, gate_path)
        if located is UNRESOLVED:
            return False
        owner, leaf = located

        # Flag gates (e.g. "Account.IsOpen") are unsatisfied while False
        if resolve(owner, leaf) is False:
            return False

        if (id(owner), leaf) in state.in_progress:
            detail = (
                f"Gate cycle: '{label}' is gated on '{gate_path}', which is already "
                "being validated in this pass; treating the gate as satisfied"
            )
            logger.warning("%s", detail)
            state.report.diagnostics.append(
                Diagnostic(kind=DiagnosticKind.GATE_CYCLE, property=label, detail=detail)
            )
            return True

        engine = self._engine_for(owner, state)
        if leaf in engine._active:
            # Under evaluation by an enclosing pass; use its last recorded state
            return not engine.aggregator.has_errors(leaf)

        gate_label = gate_path if owner is not self.instance else leaf
        engine._validate(leaf, state, gate_label)
        return not engine.aggregator.has_errors(leaf)

    def _engine_for(self, owner: Any, state: _PassState) -> ValidationEngine:
        if owner is self.instance:
            return self
        engine = getattr(owner, "validation_engine", None)
        if isinstance(engine, ValidationEngine):
            return engine
        if id(owner) not in state.engines:
            state.engines[id(owner)] = ValidationEngine(owner, evaluator=self.evaluator)
        return state.engines[id(owner)]

    @staticmethod
    def _handler_fault(
        rule: RuleDefinition,
        error: HandlerExecutionError,
        state: _PassState,
        label: str,
    ) -> ValidationMessage:
        logger.error(
            "Validation handler '%s' on '%s' failed: %s",
            error.handler_name,
            label,
            error.cause,
        )
        state.report.diagnostics.append(
            Diagnostic(
                kind=DiagnosticKind.HANDLER_ERROR,
                property=label,
                detail=str(error),
                error=error.cause,
            )
        )
        return ValidationMessage(severity=Severity.ERROR, text=str(error), rule=rule)

    @staticmethod
    def _merge(target: ValidationPass, source: ValidationPass) -> None:
        target.results.update(source.results)
        target.diagnostics.extend(source.diagnostics)
