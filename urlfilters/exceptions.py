"""
Exception hierarchy for filter-string parsing.

Every error aborts the whole ``extract`` call. Messages are meant to be shown to end users
verbatim; the structured attributes carry the same context for programmatic use.
"""

from __future__ import annotations


class FilterError(Exception):
    """Base class for all filter-string errors."""

    def __init__(
        self,
        message: str,
        *,
        token: str | None = None,
        field: str | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.token = token
        self.field = field
        self.position = position

    def __str__(self) -> str:
        return self.message


class GrammarError(FilterError):
    """Structural violation: stray separator, unbalanced group, incomplete clause header."""


class UnknownTokenError(FilterError):
    """Declared type or operator not registered, or field not in the whitelist."""


class TypeMismatchError(FilterError):
    """Value or operator not acceptable for the clause's declared type."""

    def __init__(
        self,
        message: str,
        *,
        token: str | None = None,
        field: str | None = None,
        expected: int | None = None,
        actual: int | None = None,
    ) -> None:
        super().__init__(message, token=token, field=field)
        self.expected = expected
        self.actual = actual
