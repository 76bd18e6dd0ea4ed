"""Host-object integration.

``ValidatableBase`` is a mixin for objects that validate themselves:

- Assigning a new value to a public attribute emits ``property_changed``
  with its name. Re-assigning an equal value emits nothing.
- The object's engine subscribes to that signal and re-validates the
  property (and every property gated on it).
- Whenever a property's message set changes, ``validation_changed`` emits
  ``(property_name, messages)`` for UI or other external layers.

The engine is created on first use (any validation call or access to
``validation_engine``); dataclass subclasses create it in ``__post_init__``.
Assignments made before that point do not trigger validation.

Usage:
    @dataclass
    class User(ValidatableBase):
        Email: str = ""

        __validation_rules__ = {"Email": [HasValue(message="Email cannot be blank")]}

    user = User()
    user.validation_changed.connect(lambda name, messages: ...)
    user.Email = "someone@example.com"
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar

from validatable.engine import ValidationEngine
from validatable.localization import MessageResolver
from validatable.types import Severity, ValidationMessage, ValidationPass

_MISSING = object()


class Signal:
    """Synchronous signal with connect/disconnect.

    Listener exceptions propagate to the code that emitted the signal.
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[..., Any]] = []

    def connect(self, listener: Callable[..., Any]) -> Callable[[], None]:
        """Subscribe ``listener``; returns a callable that disconnects it."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.disconnect(listener)

    def disconnect(self, listener: Callable[..., Any]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, *args: Any) -> None:
        for listener in list(self._listeners):
            listener(*args)

    def __len__(self) -> int:
        return len(self._listeners)


class ValidatableBase:
    """Mixin giving an object reactive, rule-driven validation."""

    message_resolver: ClassVar[MessageResolver | None] = None

    def __setattr__(self, name: str, value: Any) -> None:
        old = self.__dict__.get(name, _MISSING)
        super().__setattr__(name, value)
        if name.startswith("_"):
            return
        # Re-assigning an equal value is not a change
        if old is _MISSING or not (old is value or old == value):
            self.property_changed.emit(name)

    def __post_init__(self) -> None:
        self.validation_engine  # noqa: B018 - start reactive validation

    # ------------------------------------------------------------------
    # Signals and engine
    # ------------------------------------------------------------------

    @property
    def property_changed(self) -> Signal:
        """Emits the name of each public attribute assigned."""
        return self._lazy("_property_changed", Signal)

    @property
    def validation_changed(self) -> Signal:
        """Emits ``(property_name, messages)`` when a message set changes."""
        return self._lazy("_validation_changed", Signal)

    @property
    def validation_engine(self) -> ValidationEngine:
        engine = self.__dict__.get("_validation_engine")
        if engine is None:
            engine = ValidationEngine(self, resolver=type(self).message_resolver)
            object.__setattr__(self, "_validation_engine", engine)
            engine.aggregator.on_change(
                lambda name, old, new: self.validation_changed.emit(name, new)
            )
            self.property_changed.connect(engine.on_property_changed)
        return engine

    def _lazy(self, attr: str, factory: Callable[[], Any]) -> Any:
        value = self.__dict__.get(attr)
        if value is None:
            value = factory()
            object.__setattr__(self, attr, value)
        return value

    # ------------------------------------------------------------------
    # Validation API
    # ------------------------------------------------------------------

    def validate_all(self) -> ValidationPass:
        return self.validation_engine.validate_all()

    def validate_property(self, property_name: str) -> ValidationPass:
        return self.validation_engine.validate_property(property_name)

    def is_valid(self) -> bool:
        return self.validation_engine.is_valid()

    def get_validation_messages(
        self, property_name: str | None = None
    ) -> tuple[ValidationMessage, ...] | dict[str, tuple[ValidationMessage, ...]]:
        """Messages for one property, or every property with messages."""
        aggregator = self.validation_engine.aggregator
        if property_name is None:
            return aggregator.get_all_messages()
        return aggregator.get_messages(property_name)

    def has_validation_messages(self, severity: Severity | None = None) -> bool:
        return self.validation_engine.aggregator.has_messages(severity)

    def add_validation_message(self, property_name: str, message: ValidationMessage) -> None:
        self.validation_engine.aggregator.add_message(property_name, message)

    def remove_validation_messages(self, property_name: str) -> None:
        self.validation_engine.aggregator.remove_messages(property_name)
