"""
metadata.py: YAML rule tables for validatable.

A rule table declares the rules of one type outside its class body::

    type: User
    rules:
      Email:
        - type: hasValue
          key: User-Email-Validation-Failure-Cannot-be-blank
          message: Email cannot be blank.
        - type: custom
          params: {handler: ValidateEmailFormat}
      CurrentBalance:
        - type: numberGreaterThan
          params: {than: Account.MinimumBalance}
          when: Account.IsOpen
          severity: warning

Usage:
    from validatable.metadata import register_rule_table, validate_rule_table

    issues = validate_rule_table(Path("rules/user.yaml"))
    register_rule_table(User, Path("rules/user.yaml"))

Tables are checked against ``schemas/rule_table.schema.json`` (JSON Schema
draft 2020-12) before any rule is built.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from validatable.errors import ConfigurationError
from validatable.registry import MetadataRegistry
from validatable.rules import RuleDefinition, rule_from_dict

logger = logging.getLogger(__name__)

_SCHEMAS_DIR = Path(__file__).parent / "schemas"
RULE_TABLE_SCHEMA = "rule_table.schema.json"


@dataclass
class RuleTableIssue:
    """A single validation finding for a rule table file."""

    file: Path
    message: str
    path: str = ""           # location within the document, e.g. "rules/Email[0]"
    severity: str = "error"  # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


@dataclass
class RuleTable:
    """A parsed rule table."""

    source: Path
    type_name: str | None = None
    description: str = ""
    rules: dict[str, list[RuleDefinition]] = field(default_factory=dict)

    @property
    def rule_count(self) -> int:
        return sum(len(r) for r in self.rules.values())


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str = RULE_TABLE_SCHEMA) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _read_yaml(yaml_path: Path) -> tuple[Any, list[RuleTableIssue]]:
    try:
        with yaml_path.open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return None, [RuleTableIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if raw is None:
        return None, [
            RuleTableIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]
    return raw, []


def _schema_issues(yaml_path: Path, doc: Any) -> list[RuleTableIssue]:
    validator = Draft202012Validator(_load_schema())
    return [
        RuleTableIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=_json_path)
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_rule_table(yaml_path: Path, *, strict: bool = False) -> list[RuleTableIssue]:
    """
    Validate a rule table file.

    Args:
        yaml_path: Path to the YAML file.
        strict:    Report gated rules whose gate is the rule's own property
                   as errors instead of warnings.

    Returns:
        A list of :class:`RuleTableIssue` objects (empty on success).
    """
    yaml_path = Path(yaml_path)
    doc, issues = _read_yaml(yaml_path)
    if issues:
        return issues

    issues = _schema_issues(yaml_path, doc)
    if issues:
        return issues

    # Semantic checks the schema cannot express
    for property_name, rules in doc["rules"].items():
        for index, rule in enumerate(rules):
            if rule.get("when", "").split(".")[0] == property_name:
                issues.append(
                    RuleTableIssue(
                        file=yaml_path,
                        message=f"Rule is gated on its own property '{property_name}'",
                        path=f"rules/{property_name}[{index}]/when",
                        severity="error" if strict else "warning",
                    )
                )
    return issues


def load_rule_table(yaml_path: Path) -> RuleTable:
    """
    Load and build a rule table.

    Raises:
        ConfigurationError: If the file fails schema validation or a rule
            cannot be built.
    """
    yaml_path = Path(yaml_path)
    doc, issues = _read_yaml(yaml_path)
    if not issues:
        issues = _schema_issues(yaml_path, doc)
    if issues:
        raise ConfigurationError(
            f"Invalid rule table {yaml_path}:\n" + "\n".join(str(i) for i in issues)
        )

    table = RuleTable(
        source=yaml_path,
        type_name=doc.get("type"),
        description=doc.get("description", ""),
    )
    for property_name, rules in doc["rules"].items():
        table.rules[property_name] = [rule_from_dict(rule, property_name) for rule in rules]

    logger.debug("Loaded %d rule(s) from %s", table.rule_count, yaml_path)
    return table


def register_rule_table(target: type, yaml_path: Path) -> RuleTable:
    """Load a rule table and attach it to ``target`` before first validation."""
    table = load_rule_table(yaml_path)
    if table.type_name and table.type_name != target.__name__:
        logger.warning(
            "Rule table %s declares type '%s' but is registered on '%s'",
            yaml_path,
            table.type_name,
            target.__name__,
        )
    MetadataRegistry.register_rules(target, table.rules)
    return table
