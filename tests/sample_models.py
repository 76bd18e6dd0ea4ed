"""Sample banking models shared by the test suite."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from validatable import (
    CustomHandler,
    HasValue,
    NumberGreaterThan,
    Severity,
    StringLengthGreaterThan,
    StringLengthLessThan,
    ValidatableBase,
    validation_handler,
)

BLANK_EMAIL = "Email cannot be blank."
BAD_EMAIL = "Email address is not properly formatted."
MIN_BALANCE = "You can not withdraw anymore, you must maintain a minimum balance."
SHORT_PASSWORD = "Password must be greater than 6 characters."
LONG_PASSWORD = "Password must be less than 20 characters."
SPECIAL_PASSWORD = "Passwords can not use special characters"


@dataclass
class Bank:
    MinimumBalance: int = 100
    IsOpen: bool = False


@dataclass
class User(ValidatableBase):
    Email: str = ""
    Password: str = ""
    CurrentBalance: int = 0
    Account: Bank | None = field(default_factory=Bank)

    __validation_rules__ = {
        "CurrentBalance": [
            NumberGreaterThan(
                than="Account.MinimumBalance",
                when_valid="Account.IsOpen",
                severity=Severity.WARNING,
                message=MIN_BALANCE,
            ),
        ],
        "Email": [
            HasValue(
                key="User-Email-Validation-Failure-Cannot-be-blank",
                message=BLANK_EMAIL,
            ),
            CustomHandler(
                handler="ValidateEmailFormat",
                key="User-Email-Validation-Failure-Invalid-Format",
                message=BAD_EMAIL,
            ),
        ],
        "Password": [
            StringLengthGreaterThan(than=6, when_valid="Email", message=SHORT_PASSWORD),
            StringLengthLessThan(than=20, when_valid="Email", message=LONG_PASSWORD),
            CustomHandler(handler="IsPasswordCorrectlyFormatted", message=SPECIAL_PASSWORD),
        ],
    }

    @validation_handler("ValidateEmailFormat")
    def validate_email_is_formatted(self, failure_message, descriptor):
        address_parts = (self.Email or "").split("@")
        if len(address_parts) < 2:
            return failure_message

        domain_piece = address_parts[-1].split(".")
        if len(domain_piece) < 2:
            return failure_message

        return None

    @validation_handler("IsPasswordCorrectlyFormatted")
    def validate_password_format(self, failure_message, descriptor):
        if re.match(r"^[a-zA-Z0-9\s]+$", self.Password or ""):
            return None
        return failure_message


@dataclass
class Cyclic(ValidatableBase):
    """Two properties gated on each other."""

    A: str = ""
    B: str = ""

    __validation_rules__ = {
        "A": [HasValue(when_valid="B", message="A is required")],
        "B": [HasValue(when_valid="A", message="B is required")],
    }


@dataclass
class Faulty(ValidatableBase):
    """A handler that raises, next to a rule that keeps working."""

    Name: str = ""

    __validation_rules__ = {
        "Name": [
            CustomHandler(handler="Explode"),
            HasValue(message="Name is required"),
        ],
    }

    @validation_handler("Explode")
    def explode(self, failure_message, descriptor):
        raise RuntimeError("kaboom")


@dataclass
class Loose:
    """A plain (non-reactive) object whose path runs through an untyped member."""

    Holder: Any = None
    Value: int = 0

    __validation_rules__ = {
        "Value": [NumberGreaterThan(than="Holder.Limit", message="Value too small")],
    }


def make_user(**overrides: Any) -> User:
    """Helper to create a User with an open account by default."""
    values: dict[str, Any] = {
        "Email": "someone@example.com",
        "Password": "secret123",
        "CurrentBalance": 500,
        "Account": Bank(MinimumBalance=100, IsOpen=True),
    }
    values.update(overrides)
    return User(**values)
