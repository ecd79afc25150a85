"""
Typed filter descriptors.

One frozen model per declared type. Each model's validators enforce its own operator set and
value shape, so an accepted descriptor is always internally consistent.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, model_validator

from .types import (
    RANGE_OPERATORS,
    DeclaredType,
    GroupDelimiter,
    Operator,
    legal_operators,
)


class _FilterModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        strict=True,
    )

    type: DeclaredType
    field: str
    operator: Operator
    is_multi: bool = False
    group_delimiter: GroupDelimiter | None = None

    @model_validator(mode="after")
    def check_header(self) -> _FilterModel:
        if self.is_multi != (self.group_delimiter is not None):
            raise ValueError("group_delimiter must be set exactly when is_multi is true")
        if self.operator not in legal_operators(self.type):
            raise ValueError(
                f"Operator '{self.operator.value}' is not valid for {self.type.name.lower()} "
                f"field '{self.field}'"
            )
        return self

    @property
    def values(self) -> list[Any]:
        """The value as a list; scalar values are wrapped."""
        value = getattr(self, "value", None)
        return list(value) if isinstance(value, list) else [value]

    @property
    def is_range(self) -> bool:
        return self.operator in RANGE_OPERATORS

    @property
    def joins_with_or(self) -> bool:
        """True when group elements combine with OR (a ``(...)`` group)."""
        return self.group_delimiter is GroupDelimiter.OR


def _check_multi_shape(model: _FilterModel, value: Any) -> None:
    if model.is_multi and not isinstance(value, list):
        raise ValueError(f"Multi-valued filter on '{model.field}' requires a list value")
    if not model.is_multi and isinstance(value, list):
        raise ValueError(f"Single-valued filter on '{model.field}' cannot hold a list value")


def _check_range_arity(model: _FilterModel, value: Any) -> None:
    if not model.is_multi or model.operator not in RANGE_OPERATORS:
        return
    if not isinstance(value, list) or len(value) != 2:
        raise ValueError(f"Range operator '{model.operator.value}' requires exactly 2 values")


class StringFilterQuery(_FilterModel):
    type: Literal[DeclaredType.STRING] = DeclaredType.STRING
    value: str | list[str]

    @model_validator(mode="after")
    def check_value(self) -> StringFilterQuery:
        _check_multi_shape(self, self.value)
        return self


class BooleanFilterQuery(_FilterModel):
    type: Literal[DeclaredType.BOOLEAN] = DeclaredType.BOOLEAN
    value: bool


class NumberFilterQuery(_FilterModel):
    type: Literal[DeclaredType.NUMBER] = DeclaredType.NUMBER
    value: float | list[float]

    @model_validator(mode="after")
    def check_value(self) -> NumberFilterQuery:
        _check_multi_shape(self, self.value)
        _check_range_arity(self, self.value)
        return self


class DateFilterQuery(_FilterModel):
    type: Literal[DeclaredType.DATE] = DeclaredType.DATE
    value: datetime | list[datetime]

    @model_validator(mode="after")
    def check_value(self) -> DateFilterQuery:
        _check_multi_shape(self, self.value)
        _check_range_arity(self, self.value)
        return self


class NullFilterQuery(_FilterModel):
    type: Literal[DeclaredType.VOID] = DeclaredType.VOID
    value: None = None


FilterQuery = Union[
    StringFilterQuery,
    BooleanFilterQuery,
    NumberFilterQuery,
    DateFilterQuery,
    NullFilterQuery,
]
