"""
Value coercion and validation.

Turns the untyped clause collected by the tokenizer into a typed ``FilterQuery``. This is a pure
function of its input.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from .exceptions import TypeMismatchError
from .models import (
    BooleanFilterQuery,
    DateFilterQuery,
    FilterQuery,
    NullFilterQuery,
    NumberFilterQuery,
    StringFilterQuery,
)
from .types import RANGE_OPERATORS, DeclaredType, GroupDelimiter, Operator, legal_operators

_BOOLEAN_LITERALS = {"true": True, "false": False}
_NULL_LITERALS = frozenset(["null", "undefined"])


@dataclass(frozen=True, slots=True)
class RawDescriptor:
    """One clause as read by the tokenizer, before coercion."""

    declared_type: DeclaredType
    field: str
    operator: Operator
    raw_value: str
    is_multi: bool = False
    group_delimiter: GroupDelimiter | None = None

    def split(self) -> list[str]:
        """Split the raw value on the group delimiter; single values yield one token."""
        if self.is_multi and self.group_delimiter is not None:
            return self.raw_value.split(self.group_delimiter.value)
        return [self.raw_value]

    def header(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "operator": self.operator,
            "is_multi": self.is_multi,
            "group_delimiter": self.group_delimiter,
        }


def _build(
    model: Callable[..., FilterQuery], descriptor: RawDescriptor, value: Any
) -> FilterQuery:
    try:
        return model(value=value, **descriptor.header())
    except ValidationError as e:
        errors = e.errors()
        if len(errors) == 1:
            err = errors[0]
            cause = err.get("ctx", {}).get("error")
            message = str(cause) if cause is not None else err["msg"]
        else:
            message = str(e)
        raise TypeMismatchError(message, field=descriptor.field) from e


def _check_operator(descriptor: RawDescriptor) -> None:
    if descriptor.operator not in legal_operators(descriptor.declared_type):
        type_name = descriptor.declared_type.name.lower()
        raise TypeMismatchError(
            f"Unexpected operator '{descriptor.operator.value}' for {type_name} "
            f"field '{descriptor.field}'",
            token=descriptor.operator.value,
            field=descriptor.field,
        )


def _parse_number(token: str, descriptor: RawDescriptor) -> float:
    try:
        # float() also takes digit separators, which are not part of the grammar
        if "_" in token:
            raise ValueError(token)
        number = float(token)
    except ValueError as e:
        raise TypeMismatchError(
            f"Invalid number '{token}' for field '{descriptor.field}'",
            token=token,
            field=descriptor.field,
        ) from e
    if not math.isfinite(number):
        raise TypeMismatchError(
            f"Invalid number '{token}' for field '{descriptor.field}'",
            token=token,
            field=descriptor.field,
        )
    return number


def _parse_instant(token: str, descriptor: RawDescriptor) -> datetime:
    raw = token.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as e:
        raise TypeMismatchError(
            f"Invalid date '{token}' for field '{descriptor.field}'",
            token=token,
            field=descriptor.field,
        ) from e
    # Date-only and naive values are taken as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _transform_string(descriptor: RawDescriptor) -> FilterQuery:
    _check_operator(descriptor)
    value: str | list[str] = descriptor.split() if descriptor.is_multi else descriptor.raw_value
    return _build(StringFilterQuery, descriptor, value)


def _transform_boolean(descriptor: RawDescriptor) -> FilterQuery:
    _check_operator(descriptor)
    if descriptor.raw_value not in _BOOLEAN_LITERALS:
        raise TypeMismatchError(
            f"Unexpected value '{descriptor.raw_value}' for boolean field '{descriptor.field}', "
            "expects true|false",
            token=descriptor.raw_value,
            field=descriptor.field,
        )
    return _build(BooleanFilterQuery, descriptor, _BOOLEAN_LITERALS[descriptor.raw_value])


def _transform_ordered(
    descriptor: RawDescriptor,
    parse: Callable[[str, RawDescriptor], Any],
    model: Callable[..., FilterQuery],
) -> FilterQuery:
    """Shared arity rules for number and date clauses."""
    _check_operator(descriptor)
    values = [parse(token, descriptor) for token in descriptor.split()]

    if descriptor.is_multi and descriptor.operator in RANGE_OPERATORS and len(values) != 2:
        raise TypeMismatchError(
            f"Wrong number of arguments for '{descriptor.field}', expects 2, {len(values)} given",
            field=descriptor.field,
            expected=2,
            actual=len(values),
        )
    if not descriptor.is_multi:
        return _build(model, descriptor, values[0])
    return _build(model, descriptor, values)


def _transform_number(descriptor: RawDescriptor) -> FilterQuery:
    return _transform_ordered(descriptor, _parse_number, NumberFilterQuery)


def _transform_date(descriptor: RawDescriptor) -> FilterQuery:
    return _transform_ordered(descriptor, _parse_instant, DateFilterQuery)


def _transform_void(descriptor: RawDescriptor) -> FilterQuery:
    _check_operator(descriptor)
    if descriptor.raw_value not in _NULL_LITERALS:
        raise TypeMismatchError(
            f"Unexpected value '{descriptor.raw_value}' for void field '{descriptor.field}', "
            "expects null|undefined",
            token=descriptor.raw_value,
            field=descriptor.field,
        )
    return _build(NullFilterQuery, descriptor, None)


_TRANSFORMERS: dict[DeclaredType, Callable[[RawDescriptor], FilterQuery]] = {
    DeclaredType.STRING: _transform_string,
    DeclaredType.BOOLEAN: _transform_boolean,
    DeclaredType.NUMBER: _transform_number,
    DeclaredType.DATE: _transform_date,
    DeclaredType.VOID: _transform_void,
}


def transform(descriptor: RawDescriptor) -> FilterQuery:
    """Validate a raw clause against its declared type and coerce its value.

    Raises:
        TypeMismatchError: If the operator or value does not fit the declared type.
    """
    return _TRANSFORMERS[descriptor.declared_type](descriptor)
