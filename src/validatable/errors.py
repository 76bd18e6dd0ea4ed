"""Exception taxonomy for the validatable engine.

- ConfigurationError: malformed rule metadata (fatal, never swallowed)
- PathResolutionError: a path names a property that does not exist (fatal)
- HandlerExecutionError: a custom handler raised while running (recovered
  by the engine into a message and a diagnostic)

A failing rule is not an error: it produces a ValidationMessage.
"""


class ValidatableError(Exception):
    """Base class for all engine errors."""
    pass


class ConfigurationError(ValidatableError):
    """Rule metadata declared on a type is malformed."""
    pass


class PathResolutionError(ValidatableError):
    """A path segment does not exist on the type being navigated."""

    def __init__(self, path: str, segment: str, owner_type: type):
        self.path = path
        self.segment = segment
        self.owner_type = owner_type
        super().__init__(
            f"Cannot resolve '{path}': '{owner_type.__name__}' has no property '{segment}'"
        )


class HandlerExecutionError(ValidatableError):
    """A custom validation handler raised an exception."""

    def __init__(self, handler_name: str, property_name: str, cause: BaseException):
        self.handler_name = handler_name
        self.property_name = property_name
        self.cause = cause
        super().__init__(f"{handler_name} failed: {cause}")
