"""Per-type rule metadata for validatable.

Provides discovery and lookup for:
- Rule definitions attached to each property of a type
- Custom handler methods registered on the type

Rules are declared with a ``__validation_rules__`` table on the class (or
registered explicitly with ``MetadataRegistry.register_rules`` before first
use); handlers are methods tagged with ``@validation_handler``. Discovery
happens once per type and the result is immutable.

Example:
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
            ...
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from validatable.errors import ConfigurationError, PathResolutionError
from validatable.paths import check_path, declared_properties, split_path
from validatable.rules import CustomHandler, RuleDefinition, coerce_rule
from validatable.types import PropertyDescriptor, ValidationMessage

logger = logging.getLogger(__name__)

# Handler signature: (self, fallback_message, descriptor) -> message | str | None
HandlerFn = Callable[[Any, ValidationMessage, PropertyDescriptor], "ValidationMessage | str | None"]

RuleTableMapping = Mapping[str, Iterable["RuleDefinition | dict[str, Any]"]]

HANDLER_ATTR = "__validation_handler__"
RULES_ATTR = "__validation_rules__"


def validation_handler(name: str) -> Callable[[HandlerFn], HandlerFn]:
    """Decorator to register a method as a named custom handler.

    Usage:
        @validation_handler("ValidateEmailFormat")
        def validate_email(self, failure_message, descriptor):
            return None if "@" in self.Email else failure_message
    """

    def decorator(fn: HandlerFn) -> HandlerFn:
        setattr(fn, HANDLER_ATTR, name)
        return fn

    return decorator


@dataclass(frozen=True)
class TypeMetadata:
    """Discovered rule metadata for one concrete type.

    Attributes:
        type: The validated class
        rules: Property name -> rules in declaration order
        handlers: Handler name -> handler attribute (function or static/classmethod)
        descriptors: Property name -> descriptor, for every property with rules
        dependents: Property name -> properties whose gate starts with it
    """

    type: type
    rules: Mapping[str, tuple[RuleDefinition, ...]]
    handlers: Mapping[str, HandlerFn]
    descriptors: Mapping[str, PropertyDescriptor]
    dependents: Mapping[str, tuple[str, ...]]

    @property
    def properties(self) -> tuple[str, ...]:
        return tuple(self.rules)


class MetadataRegistry:
    """Process-wide, single-flight cache of TypeMetadata.

    The first caller for a type runs discovery under a lock; concurrent
    first callers wait and observe the same result. Afterwards the cache is
    read without locking.
    """

    _cache: ClassVar[dict[type, TypeMetadata]] = {}
    _registered: ClassVar[dict[type, list[tuple[str, RuleDefinition | dict[str, Any]]]]] = {}
    _lock: ClassVar[threading.RLock] = threading.RLock()

    @classmethod
    def get(cls, target: type) -> TypeMetadata:
        """Return the metadata for ``target``, discovering it on first use.

        Raises:
            ConfigurationError: If the type's rule declarations are malformed
        """
        metadata = cls._cache.get(target)
        if metadata is not None:
            return metadata
        with cls._lock:
            metadata = cls._cache.get(target)
            if metadata is None:
                metadata = cls._discover(target)
                cls._cache[target] = metadata
        return metadata

    @classmethod
    def get_rules(cls, target: type, property_name: str | None = None) -> Any:
        """Return ordered rules for one property, or the whole rule table."""
        rules = cls.get(target).rules
        if property_name is None:
            return dict(rules)
        return rules.get(property_name, ())

    @classmethod
    def get_handler(cls, target: type, name: str) -> HandlerFn:
        """Get a registered handler by name.

        Raises:
            ConfigurationError: If no handler is registered under ``name``
        """
        handlers = cls.get(target).handlers
        if name not in handlers:
            raise ConfigurationError(
                f"Handler '{name}' is not registered on {target.__name__}"
            )
        return handlers[name]

    @classmethod
    def register_rules(cls, target: type, table: RuleTableMapping) -> None:
        """Attach a rule table to ``target`` explicitly.

        Must be called before the type is first validated.

        Raises:
            ConfigurationError: If ``target`` was already discovered
        """
        with cls._lock:
            if target in cls._cache:
                raise ConfigurationError(
                    f"Rules for {target.__name__} were already discovered; "
                    "register rule tables before first validation"
                )
            pending = cls._registered.setdefault(target, [])
            for property_name, rules in table.items():
                pending.extend((property_name, rule) for rule in rules)

    @classmethod
    def is_discovered(cls, target: type) -> bool:
        return target in cls._cache

    @classmethod
    def invalidate(cls, target: type | None = None) -> None:
        """Drop cached metadata. Primarily for testing."""
        with cls._lock:
            if target is None:
                cls._cache.clear()
                cls._registered.clear()
            else:
                cls._cache.pop(target, None)
                cls._registered.pop(target, None)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    @classmethod
    def _discover(cls, target: type) -> TypeMetadata:
        handlers = cls._discover_handlers(target)
        shape = declared_properties(target)

        rules: dict[str, list[RuleDefinition]] = {}
        for property_name, raw in cls._declared_rules(target):
            rule = coerce_rule(raw, property_name)
            cls._check_rule(target, rule, handlers)
            rules.setdefault(property_name, []).append(rule)

        descriptors = {
            name: PropertyDescriptor(name=name, declaring_type=target, annotation=shape.get(name))
            for name in rules
        }

        dependents: dict[str, list[str]] = {}
        for property_name, property_rules in rules.items():
            for rule in property_rules:
                if rule.when_valid:
                    gate_root = split_path(rule.when_valid)[0]
                    names = dependents.setdefault(gate_root, [])
                    if property_name not in names:
                        names.append(property_name)

        logger.debug(
            "Discovered %d rule(s) on %d propert(ies) and %d handler(s) for %s",
            sum(len(r) for r in rules.values()),
            len(rules),
            len(handlers),
            target.__name__,
        )
        return TypeMetadata(
            type=target,
            rules={name: tuple(r) for name, r in rules.items()},
            handlers=handlers,
            descriptors=descriptors,
            dependents={name: tuple(d) for name, d in dependents.items()},
        )

    @classmethod
    def _declared_rules(cls, target: type) -> list[tuple[str, Any]]:
        """Collect (property, rule) pairs base classes first."""
        declared: list[tuple[str, Any]] = []
        for klass in reversed(target.__mro__):
            table = vars(klass).get(RULES_ATTR)
            if table:
                if not isinstance(table, Mapping):
                    raise ConfigurationError(
                        f"{klass.__name__}.{RULES_ATTR} must map property names to rule lists"
                    )
                for property_name, property_rules in table.items():
                    declared.extend((property_name, rule) for rule in property_rules)
            declared.extend(cls._registered.get(klass, ()))
        return declared

    @staticmethod
    def _discover_handlers(target: type) -> dict[str, HandlerFn]:
        handlers: dict[str, HandlerFn] = {}
        owners: dict[str, str] = {}
        attributes: dict[str, Any] = {}
        for klass in reversed(target.__mro__):
            attributes.update(vars(klass))

        for attr_name, value in attributes.items():
            fn = value.__func__ if isinstance(value, (staticmethod, classmethod)) else value
            handler_name = getattr(fn, HANDLER_ATTR, None)
            if handler_name is None or not callable(fn):
                continue
            if handler_name in handlers:
                raise ConfigurationError(
                    f"Handler name '{handler_name}' is registered twice on {target.__name__} "
                    f"('{owners[handler_name]}' and '{attr_name}')"
                )
            handlers[handler_name] = value
            owners[handler_name] = attr_name
        return handlers

    @staticmethod
    def _check_rule(target: type, rule: RuleDefinition, handlers: Mapping[str, HandlerFn]) -> None:
        if not rule.property or "." in rule.property:
            raise ConfigurationError(
                f"{rule.kind} rule on {target.__name__} must target a single property, "
                f"got {rule.property!r}"
            )
        if isinstance(rule, CustomHandler) and rule.handler not in handlers:
            raise ConfigurationError(
                f"Rule on {target.__name__}.{rule.property} names handler "
                f"'{rule.handler}', which is not registered on the type"
            )
        for label, path in (
            ("property", rule.property),
            ("gate path", rule.when_valid),
            *(("comparison path", p) for p in rule.paths()),
        ):
            if not path:
                continue
            try:
                check_path(target, path)
            except (PathResolutionError, ValueError) as exc:
                raise ConfigurationError(
                    f"Invalid {label} on {target.__name__}.{rule.property} "
                    f"({rule.kind}): {exc}"
                ) from exc
