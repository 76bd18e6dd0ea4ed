"""validatable: declarative, reactive property validation.

Properties of an object carry rule definitions (presence, numeric and
string-length comparisons against literals or other properties, custom
handlers). Rules are discovered once per type and evaluated on demand or
whenever a property changes, producing per-property Error/Warning messages.

Usage:
    from validatable import (
        CustomHandler,
        HasValue,
        ValidatableBase,
        validation_handler,
    )

    @dataclass
    class User(ValidatableBase):
        Email: str = ""

        __validation_rules__ = {
            "Email": [
                HasValue(message="Email cannot be blank"),
                CustomHandler(handler="ValidateEmailFormat"),
            ],
        }

        @validation_handler("ValidateEmailFormat")
        def validate_email_format(self, failure_message, descriptor):
            return None if "@" in self.Email else failure_message

    user = User()
    user.validate_all()
    user.is_valid()
"""

from validatable.engine import ValidationEngine
from validatable.errors import (
    ConfigurationError,
    HandlerExecutionError,
    PathResolutionError,
    ValidatableError,
)
from validatable.evaluator import RuleEvaluator
from validatable.localization import MessageCatalog, MessageResolver, NullMessageResolver
from validatable.messages import MessageAggregator
from validatable.metadata import (
    RuleTable,
    RuleTableIssue,
    load_rule_table,
    register_rule_table,
    validate_rule_table,
)
from validatable.model import Signal, ValidatableBase
from validatable.paths import UNRESOLVED, check_path, resolve, resolve_owner
from validatable.registry import MetadataRegistry, TypeMetadata, validation_handler
from validatable.rules import (
    CustomHandler,
    HasValue,
    NumberGreaterThan,
    Operand,
    RuleDefinition,
    StringLengthGreaterThan,
    StringLengthLessThan,
    rule_from_dict,
)
from validatable.types import (
    Diagnostic,
    DiagnosticKind,
    PropertyDescriptor,
    Severity,
    ValidationMessage,
    ValidationPass,
)

__version__ = "0.1.0"

__all__ = [
    # Types
    "Diagnostic",
    "DiagnosticKind",
    "PropertyDescriptor",
    "Severity",
    "ValidationMessage",
    "ValidationPass",
    # Errors
    "ConfigurationError",
    "HandlerExecutionError",
    "PathResolutionError",
    "ValidatableError",
    # Rules
    "CustomHandler",
    "HasValue",
    "NumberGreaterThan",
    "Operand",
    "RuleDefinition",
    "StringLengthGreaterThan",
    "StringLengthLessThan",
    "rule_from_dict",
    # Paths
    "UNRESOLVED",
    "check_path",
    "resolve",
    "resolve_owner",
    # Registry
    "MetadataRegistry",
    "TypeMetadata",
    "validation_handler",
    # Evaluation
    "MessageAggregator",
    "RuleEvaluator",
    "ValidationEngine",
    # Host model
    "Signal",
    "ValidatableBase",
    # Localization
    "MessageCatalog",
    "MessageResolver",
    "NullMessageResolver",
    # Rule tables
    "RuleTable",
    "RuleTableIssue",
    "load_rule_table",
    "register_rule_table",
    "validate_rule_table",
]
