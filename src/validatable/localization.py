"""Message resolution for validation messages.

The engine treats localization as a lookup service: ``resolve(key)``
returns the text for a key or None, in which case the rule's literal
fallback text is used.

Catalog files are YAML documents keyed by locale::

    default:
      User-Email-Validation-Failure-Cannot-be-blank: Email cannot be blank.
    en-US:
      User-Password-Too-Short: Password must be longer than 6 characters.
    fr:
      User-Password-Too-Short: Le mot de passe est trop court.

Lookup order for locale ``fr-CA`` is ``fr-CA``, ``fr``, then ``default``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml

DEFAULT_SECTION = "default"


@runtime_checkable
class MessageResolver(Protocol):
    """Protocol for the localization lookup service."""

    def resolve(self, key: str) -> str | None:
        """Return the text for ``key``, or None if the key is unknown."""
        ...


class NullMessageResolver:
    """Resolver that never finds a key, so fallback text is always used."""

    def resolve(self, key: str) -> str | None:
        return None


class MessageCatalog:
    """Dict-backed message resolver with locale fallback."""

    def __init__(
        self,
        messages: Mapping[str, Mapping[str, str]] | None = None,
        locale: str = "en-US",
    ):
        """Initialize the catalog.

        Args:
            messages: Locale (or ``"default"``) -> key -> text
            locale: Preferred locale, e.g. ``"en-US"``
        """
        self.locale = locale
        self._messages = {
            section: dict(entries or {}) for section, entries in (messages or {}).items()
        }

    @classmethod
    def from_yaml(cls, path: Path, locale: str = "en-US") -> MessageCatalog:
        """Load a catalog from a YAML file.

        Raises:
            ValueError: If the document is not a mapping of mappings
        """
        with Path(path).open(encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}

        if not isinstance(raw, dict) or not all(
            isinstance(entries, dict) or entries is None for entries in raw.values()
        ):
            raise ValueError(f"{path}: message catalog must map locales to key/text mappings")

        messages = {
            str(section): {str(k): str(v) for k, v in (entries or {}).items()}
            for section, entries in raw.items()
        }
        return cls(messages, locale=locale)

    def sections(self) -> list[str]:
        """Sections consulted for the current locale, most specific first."""
        order = [self.locale]
        language = self.locale.split("-")[0]
        if language != self.locale:
            order.append(language)
        order.append(DEFAULT_SECTION)
        return order

    def resolve(self, key: str) -> str | None:
        for section in self.sections():
            text = self._messages.get(section, {}).get(key)
            if text:
                return text
        return None

    def with_locale(self, locale: str) -> MessageCatalog:
        return MessageCatalog(self._messages, locale=locale)

    def keys(self) -> set[str]:
        return {key for entries in self._messages.values() for key in entries}
