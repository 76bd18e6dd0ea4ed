"""Runtime settings for validatable tooling."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from validatable.localization import MessageCatalog, MessageResolver, NullMessageResolver


@dataclass
class Settings:
    """Settings resolved from the environment.

    Attributes:
        log_level: Logging level name for the CLI
        locale: Locale used when resolving catalog messages
        catalog_path: Optional YAML message catalog
    """

    log_level: str = "WARNING"
    locale: str = "en-US"
    catalog_path: Path | None = None

    @classmethod
    def from_env(cls) -> Settings:
        """Create settings from environment variables.

        - VALIDATABLE_LOG_LEVEL (default: WARNING)
        - VALIDATABLE_LOCALE (default: en-US)
        - VALIDATABLE_CATALOG_PATH (default: none)
        """
        catalog = os.environ.get("VALIDATABLE_CATALOG_PATH")
        return cls(
            log_level=os.environ.get("VALIDATABLE_LOG_LEVEL", "WARNING").upper(),
            locale=os.environ.get("VALIDATABLE_LOCALE", "en-US"),
            catalog_path=Path(catalog) if catalog else None,
        )

    def configure_logging(self) -> None:
        logging.basicConfig(
            level=getattr(logging, self.log_level, logging.WARNING),
            format="%(levelname)s %(name)s: %(message)s",
        )

    def message_resolver(self) -> MessageResolver:
        """Build the resolver described by these settings."""
        if self.catalog_path is None:
            return NullMessageResolver()
        return MessageCatalog.from_yaml(self.catalog_path, locale=self.locale)
