"""Per-property validation message state.

The aggregator owns the current message set of every evaluated property.
A property's set is replaced as a whole (never patched) and listeners are
told about the replacement only when the new set differs from the old one.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType

from validatable.types import Severity, ValidationMessage

logger = logging.getLogger(__name__)

# Listener signature: (property_name, old_messages, new_messages) -> None
ChangeListener = Callable[[str, tuple[ValidationMessage, ...], tuple[ValidationMessage, ...]], None]


class MessageAggregator:
    """Current message sets, overall validity and a change feed.

    Each property maps to an immutable tuple. Replacement swaps in a new
    mapping under a lock, so readers always see a complete set.
    """

    def __init__(self) -> None:
        self._messages: Mapping[str, tuple[ValidationMessage, ...]] = MappingProxyType({})
        self._lock = threading.Lock()
        self._listeners: list[ChangeListener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_messages(self, property_name: str) -> tuple[ValidationMessage, ...]:
        return self._messages.get(property_name, ())

    def get_all_messages(self) -> dict[str, tuple[ValidationMessage, ...]]:
        """Snapshot of every property that currently has messages."""
        return {name: messages for name, messages in self._messages.items() if messages}

    def has_errors(self, property_name: str) -> bool:
        return any(m.is_error for m in self.get_messages(property_name))

    def has_messages(self, severity: Severity | None = None) -> bool:
        """True if any property has a message (of ``severity``, when given)."""
        return any(
            severity is None or message.severity is severity
            for messages in self._messages.values()
            for message in messages
        )

    def is_valid(self) -> bool:
        """True iff no property has an ERROR message. Warnings never count."""
        return not self.has_messages(Severity.ERROR)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def replace(self, property_name: str, messages: Iterable[ValidationMessage]) -> bool:
        """Atomically replace a property's message set.

        Returns:
            True if the set changed (and listeners were notified)
        """
        new = tuple(messages)
        with self._lock:
            old = self._messages.get(property_name, ())
            if old == new:
                return False
            updated = dict(self._messages)
            if new:
                updated[property_name] = new
            else:
                updated.pop(property_name, None)
            self._messages = MappingProxyType(updated)

        self._notify(property_name, old, new)
        return True

    def add_message(self, property_name: str, message: ValidationMessage) -> bool:
        """Append a message to a property. Replaced on the next evaluation."""
        with self._lock:
            current = self._messages.get(property_name, ())
        if message in current:
            return False
        return self.replace(property_name, (*current, message))

    def remove_messages(self, property_name: str) -> bool:
        return self.replace(property_name, ())

    def clear(self) -> None:
        for property_name in list(self._messages):
            self.remove_messages(property_name)

    # ------------------------------------------------------------------
    # Change feed
    # ------------------------------------------------------------------

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Subscribe to per-property changes.

        Returns:
            A callable that removes the subscription
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(
        self,
        property_name: str,
        old: tuple[ValidationMessage, ...],
        new: tuple[ValidationMessage, ...],
    ) -> None:
        for listener in list(self._listeners):
            try:
                listener(property_name, old, new)
            except Exception as e:
                logger.warning(
                    "Validation change listener failed for '%s': %s", property_name, e
                )
