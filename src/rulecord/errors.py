"""
Exceptions raised by rulecord.

Only administrative entry points raise these; the message pipeline reports
failures through logs and ``DeliveryResult`` values instead.
"""


class RulecordError(Exception):
    """Base class for rulecord errors."""


class RuleValidationError(RulecordError):
    """A rule was rejected before it could be stored."""

    def __init__(self, message: str, *, kind: str | None = None, pattern: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.pattern = pattern


class ConfigValidationError(RulecordError):
    """A guild configuration value is out of range."""
