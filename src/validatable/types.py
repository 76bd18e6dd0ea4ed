"""Core types for the validatable engine.

This module defines the value objects shared by every component:
- Severity: ERROR blocks validity, WARNING is informational
- PropertyDescriptor: a property discovered once per type and reused
- ValidationMessage: one failing rule's output for one pass
- Diagnostic: an internal condition reported to the caller of a pass
- ValidationPass: what one call into the engine recorded
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from validatable.rules import RuleDefinition


class Severity(Enum):
    """Validation message severity.

    ERROR: The property (and therefore the object) is invalid
    WARNING: Informational only, never affects validity
    """

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class PropertyDescriptor:
    """Identifies a property by name and declaring type.

    Attributes:
        name: Attribute name on the instance
        declaring_type: The class the rules were discovered on
        annotation: The declared type annotation, or None when undeclared
    """

    name: str
    declaring_type: type
    annotation: Any = None

    def get_value(self, instance: Any) -> Any:
        return getattr(instance, self.name, None)

    def __str__(self) -> str:
        return f"{self.declaring_type.__name__}.{self.name}"


@dataclass(frozen=True)
class ValidationMessage:
    """A single validation error or warning.

    Attributes:
        severity: ERROR or WARNING
        text: Rendered, human-readable message
        rule: The rule definition that produced the message, or None when
            the message was added manually
    """

    severity: Severity
    text: str
    rule: RuleDefinition | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "text": self.text,
            "rule": self.rule.kind if self.rule is not None else None,
        }

    def __str__(self) -> str:
        return self.text


class DiagnosticKind(Enum):
    """Internal conditions surfaced to the caller of a validation pass."""

    HANDLER_ERROR = "handler_error"
    GATE_CYCLE = "gate_cycle"


@dataclass(frozen=True)
class Diagnostic:
    """An internal condition observed during a pass.

    Attributes:
        kind: HANDLER_ERROR or GATE_CYCLE
        property: Property being validated when the condition occurred
        detail: Human-readable description
        error: The underlying exception for handler faults
    """

    kind: DiagnosticKind
    property: str
    detail: str
    error: BaseException | None = None


@dataclass
class ValidationPass:
    """Result of one call into the engine.

    Attributes:
        results: Property name -> messages recorded for it during the pass
            (including gate properties validated along the way)
        diagnostics: Handler faults and gate cycles seen during the pass
    """

    results: dict[str, tuple[ValidationMessage, ...]] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """True if nothing recorded in this pass carries an ERROR."""
        return not any(
            message.is_error
            for messages in self.results.values()
            for message in messages
        )

    def messages_for(self, property_name: str) -> tuple[ValidationMessage, ...]:
        return self.results.get(property_name, ())
