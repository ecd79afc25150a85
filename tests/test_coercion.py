"""Tests for value coercion of raw clauses."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from urlfilters import (
    DateFilterQuery,
    DeclaredType,
    GroupDelimiter,
    NumberFilterQuery,
    Operator,
    RawDescriptor,
    StringFilterQuery,
    TypeMismatchError,
    transform,
)
from urlfilters.coercion import _build


def _raw(
    declared_type: DeclaredType,
    operator: Operator,
    raw_value: str,
    delimiter: GroupDelimiter | None = None,
    field: str = "f",
) -> RawDescriptor:
    return RawDescriptor(
        declared_type=declared_type,
        field=field,
        operator=operator,
        raw_value=raw_value,
        is_multi=delimiter is not None,
        group_delimiter=delimiter,
    )


class TestStringCoercion:
    """String clauses keep their text as-is."""

    @pytest.mark.req("COERCE-STR-001")
    @pytest.mark.parametrize(
        "op",
        [
            Operator.EQ,
            Operator.NE,
            Operator.IN,
            Operator.NOT_IN,
            Operator.MATCHES,
            Operator.NOT_MATCHES,
        ],
    )
    def test_legal_operators(self, op: Operator) -> None:
        result = transform(_raw(DeclaredType.STRING, op, "abc"))
        assert isinstance(result, StringFilterQuery)
        assert result.value == "abc"

    @pytest.mark.req("COERCE-STR-001")
    @pytest.mark.parametrize("op", [Operator.GT, Operator.BETWEEN, Operator.IS])
    def test_illegal_operators(self, op: Operator) -> None:
        with pytest.raises(TypeMismatchError, match="for string field 'f'"):
            transform(_raw(DeclaredType.STRING, op, "abc"))

    def test_multi_splits_on_delimiter(self) -> None:
        result = transform(_raw(DeclaredType.STRING, Operator.IN, "a|b,c", GroupDelimiter.OR))
        assert result.value == ["a", "b,c"]

    def test_empty_group_yields_one_empty_element(self) -> None:
        result = transform(_raw(DeclaredType.STRING, Operator.EQ, "", GroupDelimiter.AND))
        assert result.value == [""]


class TestBooleanCoercion:
    def test_true_and_false(self) -> None:
        assert transform(_raw(DeclaredType.BOOLEAN, Operator.EQ, "true")).value is True
        assert transform(_raw(DeclaredType.BOOLEAN, Operator.NE, "false")).value is False

    @pytest.mark.parametrize("raw", ["yes", "True", "1", ""])
    def test_rejects_other_literals(self, raw: str) -> None:
        with pytest.raises(TypeMismatchError, match="expects true\\|false"):
            transform(_raw(DeclaredType.BOOLEAN, Operator.EQ, raw))

    def test_rejects_ordering_operator(self) -> None:
        with pytest.raises(TypeMismatchError, match="Unexpected operator '>'"):
            transform(_raw(DeclaredType.BOOLEAN, Operator.GT, "true"))


class TestNumberCoercion:
    @pytest.mark.req("COERCE-NUM-001")
    def test_scalar(self) -> None:
        result = transform(_raw(DeclaredType.NUMBER, Operator.LT, "-3.5e2"))
        assert isinstance(result, NumberFilterQuery)
        assert result.value == -350.0
        assert result.is_multi is False

    def test_membership_list(self) -> None:
        result = transform(_raw(DeclaredType.NUMBER, Operator.IN, "1,2,3", GroupDelimiter.AND))
        assert result.value == [1.0, 2.0, 3.0]

    def test_single_element_group_stays_a_list(self) -> None:
        result = transform(_raw(DeclaredType.NUMBER, Operator.EQ, "7", GroupDelimiter.AND))
        assert result.value == [7.0]

    def test_splits_on_group_delimiter_not_comma(self) -> None:
        """A (...) group splits on '|'; commas inside it are part of the element."""
        result = transform(_raw(DeclaredType.NUMBER, Operator.IN, "1|2", GroupDelimiter.OR))
        assert result.value == [1.0, 2.0]
        with pytest.raises(TypeMismatchError, match="Invalid number '1,2'"):
            transform(_raw(DeclaredType.NUMBER, Operator.IN, "1,2", GroupDelimiter.OR))

    @pytest.mark.parametrize("raw", ["abc", "", "nan", "1.2.3", "1_000", "inf", "-Infinity"])
    def test_rejects_unparseable(self, raw: str) -> None:
        with pytest.raises(TypeMismatchError, match="Invalid number") as exc:
            transform(_raw(DeclaredType.NUMBER, Operator.EQ, raw, field="price"))
        assert exc.value.field == "price"

    @pytest.mark.req("COERCE-NUM-002")
    @pytest.mark.parametrize("raw", ["1", "1,2,3"])
    def test_range_requires_exactly_two(self, raw: str) -> None:
        with pytest.raises(TypeMismatchError, match="expects 2") as exc:
            transform(_raw(DeclaredType.NUMBER, Operator.BETWEEN, raw, GroupDelimiter.AND))
        assert exc.value.expected == 2
        assert exc.value.actual == len(raw.split(","))

    def test_range_on_scalar_value(self) -> None:
        """Arity applies to groups only; a bare value stays a scalar."""
        result = transform(_raw(DeclaredType.NUMBER, Operator.NOT_BETWEEN, "5"))
        assert result.value == 5.0
        assert not result.is_multi

    def test_not_range(self) -> None:
        result = transform(
            _raw(DeclaredType.NUMBER, Operator.NOT_BETWEEN, "0|99.99", GroupDelimiter.OR)
        )
        assert result.value == [0.0, 99.99]
        assert result.is_range

    def test_rejects_pattern_operator(self) -> None:
        with pytest.raises(TypeMismatchError, match="for number field 'price'"):
            transform(_raw(DeclaredType.NUMBER, Operator.MATCHES, "1", field="price"))


class TestDateCoercion:
    def test_date_only_is_utc_midnight(self) -> None:
        result = transform(_raw(DeclaredType.DATE, Operator.GTE, "2024-04-01"))
        assert isinstance(result, DateFilterQuery)
        assert result.value == datetime(2024, 4, 1, tzinfo=timezone.utc)

    def test_offset_is_kept(self) -> None:
        result = transform(_raw(DeclaredType.DATE, Operator.EQ, "2024-04-01T12:00:00+02:00"))
        assert result.value.utcoffset() == timedelta(hours=2)
        assert result.value == datetime(2024, 4, 1, 10, tzinfo=timezone.utc)

    def test_range(self) -> None:
        raw = _raw(
            DeclaredType.DATE, Operator.BETWEEN, "2024-04-01,2024-04-30", GroupDelimiter.AND
        )
        result = transform(raw)
        assert result.value == [
            datetime(2024, 4, 1, tzinfo=timezone.utc),
            datetime(2024, 4, 30, tzinfo=timezone.utc),
        ]

    def test_range_wrong_count(self) -> None:
        with pytest.raises(TypeMismatchError, match="expects 2, 3 given"):
            transform(
                _raw(
                    DeclaredType.DATE,
                    Operator.BETWEEN,
                    "2024-04-01,2024-04-30,2024-12-31",
                    GroupDelimiter.AND,
                )
            )

    @pytest.mark.parametrize("raw", ["yesterday", "2024-13-01", ""])
    def test_rejects_unparseable(self, raw: str) -> None:
        with pytest.raises(TypeMismatchError, match="Invalid date"):
            transform(_raw(DeclaredType.DATE, Operator.EQ, raw))


class TestVoidCoercion:
    @pytest.mark.parametrize("raw", ["null", "undefined"])
    def test_null_literals(self, raw: str) -> None:
        assert transform(_raw(DeclaredType.VOID, Operator.IS, raw)).value is None

    def test_rejects_other_literal(self) -> None:
        with pytest.raises(TypeMismatchError, match="expects null\\|undefined"):
            transform(_raw(DeclaredType.VOID, Operator.IS_NOT, "nil"))

    def test_rejects_equality_operator(self) -> None:
        with pytest.raises(TypeMismatchError, match="for void field"):
            transform(_raw(DeclaredType.VOID, Operator.EQ, "null"))


def test_raw_descriptor_split_without_group() -> None:
    raw = _raw(DeclaredType.STRING, Operator.EQ, "a,b")
    assert raw.split() == ["a,b"]


def test_model_errors_keep_the_validator_message() -> None:
    """Model validator failures surface without pydantic's message prefix."""
    raw = _raw(DeclaredType.STRING, Operator.GT, "x")
    with pytest.raises(TypeMismatchError) as exc:
        _build(StringFilterQuery, raw, "x")
    assert str(exc.value) == "Operator '>' is not valid for string field 'f'"
    assert exc.value.field == "f"
