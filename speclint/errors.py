"""Exceptions raised for programming errors in the linter engine.

Problems with the linted document itself are never raised: they surface as
an absent context, a logged warning or a violation.
"""


class SpecLintError(Exception):
    """Base class for linter errors."""


class PointerSyntaxError(SpecLintError, ValueError):
    """Raised when a JSON pointer string is malformed."""


class RuleRegistrationError(SpecLintError):
    """Raised when a rule cannot be registered."""
