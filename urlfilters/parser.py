"""
Filter string parser.

Converts a compact, URL-safe filter string into typed filter descriptors.

Clause structure:
    type:field:operator:value

Clauses are separated by ``,`` or ``|``. A value is either plain text or a group of elements:
``[a,b]`` groups are comma-joined (AND), ``(a|b)`` groups are pipe-joined (OR). A backslash
makes the next character literal, e.g. ``s:comment:!~:[message me\\:]``.

Example:
    from urlfilters import extract

    filters = extract("s:isbn13:=:9783111108346,s:marking:!=:[pencil,stickers]")
    filters[1].value  # ["pencil", "stickers"]
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, NoReturn

from .coercion import RawDescriptor, transform
from .exceptions import FilterError, GrammarError, UnknownTokenError
from .models import FilterQuery
from .options import ParserOptions, coerce_options
from .types import (
    CLAUSE_SEPARATORS,
    GROUP_CLOSERS,
    GROUP_OPENERS,
    DeclaredType,
    GroupDelimiter,
    Operator,
    lookup_operator,
    lookup_type,
)

logger = logging.getLogger(__name__)

OptionsArg = ParserOptions | Mapping[str, Any] | None


class _State(Enum):
    """Tokenizer states, in the order a clause moves through them."""

    AWAIT_TYPE = auto()
    AWAIT_FIELD = auto()
    AWAIT_OPERATOR = auto()
    AWAIT_VALUE = auto()
    IN_GROUP = auto()


# Header part each state is waiting for, used in error messages
_MISSING_PART = {
    _State.AWAIT_TYPE: "type",
    _State.AWAIT_FIELD: "field",
    _State.AWAIT_OPERATOR: "operator",
}


class _Tokenizer:
    """Single-pass state machine over one filter string.

    Holds all mutable state for one call; never reused.
    """

    def __init__(self, text: str, options: ParserOptions):
        self.text = text
        self.options = options
        self.pos = 0
        self.length = len(text)
        self.filters: list[FilterQuery] = []
        self._reset()

    def _reset(self) -> None:
        self.state = _State.AWAIT_TYPE
        self.buffer: list[str] = []
        self.escaped = False
        self.declared_type: DeclaredType | None = None
        self.field: str | None = None
        self.operator: Operator | None = None

    def _take_buffer(self) -> str:
        token = "".join(self.buffer)
        self.buffer = []
        return token

    def tokenize(self) -> list[FilterQuery]:
        """Scan the whole string and return the accepted filters in input order."""
        while self.pos < self.length:
            ch = self.text[self.pos]
            if self.escaped:
                self._on_escaped(ch)
            elif ch == ":":
                self._on_colon()
            elif ch in CLAUSE_SEPARATORS:
                self._on_separator(ch)
            elif ch in GROUP_OPENERS:
                self._on_group_open()
            elif ch in GROUP_CLOSERS:
                self._on_group_close(ch)
            elif ch == "\\":
                self.escaped = True
            else:
                self.buffer.append(ch)
            self.pos += 1

        self._on_end()
        return self.filters

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _on_escaped(self, ch: str) -> None:
        if ch in CLAUSE_SEPARATORS or ch in GROUP_CLOSERS:
            raise GrammarError(
                f"Invalid escaped character '{ch}' at position {self.pos}",
                token=ch,
                position=self.pos,
            )
        self.buffer.append(ch)
        self.escaped = False

    def _on_colon(self) -> None:
        if self.state is _State.IN_GROUP:
            raise GrammarError(
                f"Malformed filter, unbalanced parenthesis or brackets at position {self.pos}",
                token=":",
                position=self.pos,
            )

        if self.state is _State.AWAIT_VALUE:
            raise GrammarError(
                f"Unexpected character ':' at position {self.pos}",
                token=":",
                field=self.field,
                position=self.pos,
            )

        token = self._take_buffer()
        if self.state is _State.AWAIT_TYPE:
            self.declared_type = lookup_type(token)
            if self.declared_type is None:
                raise UnknownTokenError(
                    f"'{token}' is an invalid type", token=token, position=self.pos
                )
            self.state = _State.AWAIT_FIELD
        elif self.state is _State.AWAIT_FIELD:
            if not token:
                raise GrammarError(
                    f"Missing field name at position {self.pos}", position=self.pos
                )
            if not self.options.allows(token):
                raise UnknownTokenError(
                    f"'{token}' is not an allowed key", token=token, field=token, position=self.pos
                )
            self.field = token
            self.state = _State.AWAIT_OPERATOR
        else:
            self.operator = lookup_operator(token)
            if self.operator is None:
                raise UnknownTokenError(
                    f"'{token}' is an invalid operator",
                    token=token,
                    field=self.field,
                    position=self.pos,
                )
            self.state = _State.AWAIT_VALUE

    def _on_separator(self, ch: str) -> None:
        if self.state is _State.IN_GROUP:
            # Split later on the delimiter chosen by the closing bracket
            self.buffer.append(ch)
        elif self.buffer:
            self._emit(None)

    def _on_group_open(self) -> None:
        if self.state is _State.IN_GROUP:
            raise GrammarError(
                f"Malformed filter, nested group at position {self.pos}", position=self.pos
            )
        if self.state is not _State.AWAIT_VALUE:
            self._raise_incomplete_header()
        self.buffer = []
        self.state = _State.IN_GROUP

    def _on_group_close(self, ch: str) -> None:
        if self.state is not _State.IN_GROUP:
            raise GrammarError(
                f"Malformed filter, unbalanced parenthesis or brackets at position {self.pos}",
                token=ch,
                position=self.pos,
            )
        self._emit(GROUP_CLOSERS[ch])

    def _on_end(self) -> None:
        if self.escaped:
            raise GrammarError("Malformed filter, dangling escape at end of input")
        if self.state is _State.IN_GROUP:
            raise GrammarError("Malformed filter, unbalanced parenthesis or brackets")
        # Trailing text only forms a clause once a field name has been read
        if self.buffer and (self.field is not None or self.operator is not None):
            self._emit(None)

    # -------------------------------------------------------------------------
    # Clause finalization
    # -------------------------------------------------------------------------

    def _raise_incomplete_header(self) -> NoReturn:
        missing = _MISSING_PART[self.state]
        where = f" for '{self.field}'" if self.field else ""
        raise GrammarError(
            f"Malformed filter: missing {missing}{where} at position {self.pos}",
            field=self.field,
            position=self.pos,
        )

    def _emit(self, delimiter: GroupDelimiter | None) -> None:
        if self.declared_type is None or self.field is None or self.operator is None:
            self._raise_incomplete_header()

        descriptor = RawDescriptor(
            declared_type=self.declared_type,
            field=self.field,
            operator=self.operator,
            raw_value=self._take_buffer(),
            is_multi=delimiter is not None,
            group_delimiter=delimiter,
        )
        result = transform(descriptor)
        logger.debug(
            "Accepted %s filter on %r (operator %r, multi=%s)",
            descriptor.declared_type.name.lower(),
            descriptor.field,
            descriptor.operator.value,
            descriptor.is_multi,
        )
        self.filters.append(result)
        self._reset()


@dataclass(frozen=True, slots=True)
class ExtractResult:
    """Outcome of parsing one string in a batch."""

    source: str
    filters: list[FilterQuery] = field(default_factory=list)
    error: FilterError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FilterParser:
    """Reusable parser holding default options.

    The parser keeps no state between calls, so one instance may be shared.
    """

    def __init__(self, options: OptionsArg = None):
        self.options = coerce_options(options, ParserOptions())

    def extract(self, text: str, options: OptionsArg = None) -> list[FilterQuery]:
        """Parse a filter string into typed filters, in input order.

        Args:
            text: The filter string.
            options: Per-call options; the parser defaults apply when omitted.

        Raises:
            GrammarError: If the string is structurally malformed.
            UnknownTokenError: If a type, operator or field is not recognised or allowed.
            TypeMismatchError: If a value does not fit its declared type and operator.
        """
        resolved = coerce_options(options, self.options)
        filters = _Tokenizer(text, resolved).tokenize()
        logger.debug("Extracted %d filter(s) from %d character(s)", len(filters), len(text))
        return filters

    def extract_many(
        self, inputs: Iterable[str], options: OptionsArg = None
    ) -> list[ExtractResult]:
        """Parse several independent strings; a malformed one does not abort the others."""
        resolved = coerce_options(options, self.options)
        results: list[ExtractResult] = []
        for source in inputs:
            try:
                results.append(ExtractResult(source, self.extract(source, resolved)))
            except FilterError as e:
                logger.debug("Rejected filter string: %s", e)
                results.append(ExtractResult(source, error=e))
        return results


_default_parser = FilterParser()


def extract(text: str, options: OptionsArg = None) -> list[FilterQuery]:
    """Parse a filter string with the default parser. See ``FilterParser.extract``."""
    return _default_parser.extract(text, options)


def extract_many(inputs: Iterable[str], options: OptionsArg = None) -> list[ExtractResult]:
    """Parse several filter strings with the default parser."""
    return _default_parser.extract_many(inputs, options)
