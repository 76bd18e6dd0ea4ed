"""Rule definitions.

Rules are immutable, type-level declarations attached to a property. Each
variant is a frozen dataclass carrying its own parameters plus the fields
shared by every rule:

- property: the target property (filled in at registration time)
- when_valid: optional gate path; the rule only runs while it is valid
- severity: ERROR or WARNING
- key: optional localization key
- message: literal fallback text used when the key does not resolve

Rules may also be written as dicts (the YAML rule table shape)::

    {"type": "numberGreaterThan",
     "params": {"than": "Account.MinimumBalance"},
     "when": "Account.IsOpen",
     "severity": "warning",
     "message": "You must maintain a minimum balance."}
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar

from validatable.errors import ConfigurationError
from validatable.types import Severity


@dataclass(frozen=True)
class Operand:
    """A comparison operand: either a literal number or a property path."""

    value: float | None = None
    path: str | None = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.path is None):
            raise ConfigurationError(
                "An operand needs exactly one of a literal value or a path"
            )

    @classmethod
    def coerce(cls, raw: Any) -> Operand:
        """Build an operand from a literal number, a path string or an Operand."""
        if isinstance(raw, Operand):
            return raw
        if isinstance(raw, bool):
            raise ConfigurationError(f"Operand cannot be a boolean: {raw!r}")
        if isinstance(raw, (int, float)):
            return cls(value=raw)
        if isinstance(raw, str) and raw.strip():
            return cls(path=raw.strip())
        raise ConfigurationError(f"Invalid operand: {raw!r}")

    @property
    def is_path(self) -> bool:
        return self.path is not None

    def __str__(self) -> str:
        return self.path if self.path is not None else f"{self.value:g}"


@dataclass(frozen=True, kw_only=True)
class RuleDefinition:
    """Fields shared by every rule variant."""

    kind: ClassVar[str] = ""

    property: str = ""
    when_valid: str | None = None
    severity: Severity = Severity.ERROR
    key: str | None = None
    message: str = ""

    def bind(self, property_name: str) -> RuleDefinition:
        """Return a copy targeting ``property_name``."""
        if self.property == property_name:
            return self
        if self.property:
            raise ConfigurationError(
                f"{self.kind} rule targets '{self.property}' but is declared on '{property_name}'"
            )
        return dataclasses.replace(self, property=property_name)

    def paths(self) -> tuple[str, ...]:
        """Property paths this rule reads besides its own target."""
        return ()

    def default_text(self) -> str:
        return f"{self.property} is invalid"

    def fallback_text(self) -> str:
        return self.message or self.default_text()


@dataclass(frozen=True, kw_only=True)
class HasValue(RuleDefinition):
    """Fails if the target is None or a blank string."""

    kind: ClassVar[str] = "hasValue"

    def default_text(self) -> str:
        return f"{self.property} must have a value"


@dataclass(frozen=True, kw_only=True)
class _ComparisonRule(RuleDefinition):
    than: Operand

    def __post_init__(self) -> None:
        object.__setattr__(self, "than", Operand.coerce(self.than))

    def paths(self) -> tuple[str, ...]:
        return (self.than.path,) if self.than.is_path else ()


@dataclass(frozen=True, kw_only=True)
class NumberGreaterThan(_ComparisonRule):
    """Fails unless ``target > than`` (strict)."""

    kind: ClassVar[str] = "numberGreaterThan"

    def default_text(self) -> str:
        return f"{self.property} must be greater than {self.than}"


@dataclass(frozen=True, kw_only=True)
class StringLengthGreaterThan(_ComparisonRule):
    """Fails unless ``len(target) > than``."""

    kind: ClassVar[str] = "stringLengthGreaterThan"

    def default_text(self) -> str:
        return f"{self.property} must be longer than {self.than} characters"


@dataclass(frozen=True, kw_only=True)
class StringLengthLessThan(_ComparisonRule):
    """Fails unless ``len(target) < than``."""

    kind: ClassVar[str] = "stringLengthLessThan"

    def default_text(self) -> str:
        return f"{self.property} must be shorter than {self.than} characters"


@dataclass(frozen=True, kw_only=True)
class CustomHandler(RuleDefinition):
    """Delegates pass/fail to a named handler registered on the type."""

    kind: ClassVar[str] = "custom"

    handler: str

    def __post_init__(self) -> None:
        if not self.handler:
            raise ConfigurationError("custom rule requires a handler name")


RULE_TYPES: dict[str, type[RuleDefinition]] = {
    rule_type.kind: rule_type
    for rule_type in (
        HasValue,
        NumberGreaterThan,
        StringLengthGreaterThan,
        StringLengthLessThan,
        CustomHandler,
    )
}


def rule_from_dict(data: dict[str, Any], property_name: str = "") -> RuleDefinition:
    """Create a RuleDefinition from a YAML/JSON dict."""
    rule_type = data.get("type")
    if rule_type not in RULE_TYPES:
        raise ConfigurationError(
            f"Unknown rule type {rule_type!r}. "
            "Available types: " + ", ".join(sorted(RULE_TYPES))
        )

    try:
        severity = Severity(data.get("severity", "error"))
    except ValueError:
        raise ConfigurationError(
            f"Invalid severity {data.get('severity')!r} on {rule_type} rule"
        ) from None

    kwargs: dict[str, Any] = {
        "property": property_name,
        "when_valid": data.get("when"),
        "severity": severity,
        "key": data.get("key"),
        "message": data.get("message", ""),
    }
    params = data.get("params", {}) or {}
    if rule_type == CustomHandler.kind:
        kwargs["handler"] = params.get("handler") or data.get("handler", "")
    elif rule_type != HasValue.kind:
        if "than" not in params:
            raise ConfigurationError(f"{rule_type} rule requires params.than")
        kwargs["than"] = params["than"]

    return RULE_TYPES[rule_type](**kwargs)


def coerce_rule(raw: RuleDefinition | dict[str, Any], property_name: str) -> RuleDefinition:
    """Normalize a declared rule and bind it to its property."""
    if isinstance(raw, dict):
        return rule_from_dict(raw, property_name)
    if isinstance(raw, RuleDefinition):
        return raw.bind(property_name)
    raise ConfigurationError(
        f"Rule declared on '{property_name}' must be a RuleDefinition or dict, got {type(raw).__name__}"
    )
