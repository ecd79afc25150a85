"""
Parse compact, URL-safe filter strings into typed filter descriptors.

Example:
    from urlfilters import extract

    extract("b:admin:=:true,n:price:><:[0,99.99]")
"""

from __future__ import annotations

from .coercion import RawDescriptor, transform
from .exceptions import FilterError, GrammarError, TypeMismatchError, UnknownTokenError
from .models import (
    BooleanFilterQuery,
    DateFilterQuery,
    FilterQuery,
    NullFilterQuery,
    NumberFilterQuery,
    StringFilterQuery,
)
from .options import ParserOptions
from .parser import ExtractResult, FilterParser, extract, extract_many
from .types import DeclaredType, GroupDelimiter, Operator

__version__ = "1.0.0"

__all__ = [
    "BooleanFilterQuery",
    "DateFilterQuery",
    "DeclaredType",
    "ExtractResult",
    "FilterError",
    "FilterParser",
    "FilterQuery",
    "GrammarError",
    "GroupDelimiter",
    "NullFilterQuery",
    "NumberFilterQuery",
    "Operator",
    "ParserOptions",
    "RawDescriptor",
    "StringFilterQuery",
    "TypeMismatchError",
    "UnknownTokenError",
    "__version__",
    "extract",
    "extract_many",
    "transform",
]
