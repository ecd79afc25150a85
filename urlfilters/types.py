"""
Registries of declared types, operators and group delimiters.

These are fixed enumerations. Lookups never mutate them.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType


class DeclaredType(str, Enum):
    """Leading type tag of a clause, governing value coercion and legal operators."""

    STRING = "s"
    BOOLEAN = "b"
    NUMBER = "n"
    DATE = "d"
    VOID = "v"


class Operator(str, Enum):
    """Comparison operators, keyed by their literal token."""

    EQ = "="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    BETWEEN = "><"  # range
    NOT_BETWEEN = ">!<"  # not-range
    IN = "<>"  # membership
    NOT_IN = "<!>"  # not-membership
    MATCHES = "~"
    NOT_MATCHES = "!~"
    IS = "!!"
    IS_NOT = "!"


class GroupDelimiter(str, Enum):
    """Join semantic implied by the character closing a group."""

    AND = ","  # closed by ]
    OR = "|"  # closed by )


GROUP_OPENERS = frozenset("[(")
GROUP_CLOSERS: Mapping[str, GroupDelimiter] = MappingProxyType(
    {
        "]": GroupDelimiter.AND,
        ")": GroupDelimiter.OR,
    }
)
CLAUSE_SEPARATORS = frozenset(",|")

RANGE_OPERATORS: frozenset[Operator] = frozenset([Operator.BETWEEN, Operator.NOT_BETWEEN])

_COMPARISON_OPERATORS: frozenset[Operator] = frozenset(
    [
        Operator.EQ,
        Operator.NE,
        Operator.GT,
        Operator.GTE,
        Operator.LT,
        Operator.LTE,
        Operator.IN,
        Operator.NOT_IN,
    ]
)

OPERATORS_BY_TYPE: Mapping[DeclaredType, frozenset[Operator]] = MappingProxyType(
    {
        DeclaredType.STRING: frozenset(
            [
                Operator.EQ,
                Operator.NE,
                Operator.IN,
                Operator.NOT_IN,
                Operator.MATCHES,
                Operator.NOT_MATCHES,
            ]
        ),
        DeclaredType.BOOLEAN: frozenset([Operator.EQ, Operator.NE]),
        DeclaredType.NUMBER: _COMPARISON_OPERATORS | RANGE_OPERATORS,
        DeclaredType.DATE: _COMPARISON_OPERATORS | RANGE_OPERATORS,
        DeclaredType.VOID: frozenset([Operator.IS, Operator.IS_NOT]),
    }
)


def lookup_type(token: str) -> DeclaredType | None:
    """Return the declared type for a token, or None if it is not registered."""
    try:
        return DeclaredType(token)
    except ValueError:
        return None


def lookup_operator(token: str) -> Operator | None:
    """Return the operator for a token, or None if it is not registered."""
    try:
        return Operator(token)
    except ValueError:
        return None


def legal_operators(declared_type: DeclaredType) -> frozenset[Operator]:
    return OPERATORS_BY_TYPE[declared_type]
