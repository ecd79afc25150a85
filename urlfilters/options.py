"""
Parser configuration.

Options are immutable and can be shared freely between parsers and threads.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

WILDCARD = "*"
ALLOWED_KEYS_ENV = "URLFILTERS_ALLOWED_KEYS"


@dataclass(frozen=True, slots=True)
class ParserOptions:
    """Configuration applied to every clause of an ``extract`` call.

    ``allowed_keys`` is the whitelist of field names. The wildcard ``"*"`` anywhere in the set
    permits every field.
    """

    allowed_keys: frozenset[str] = frozenset([WILDCARD])

    @classmethod
    def of(cls, allowed_keys: str | Iterable[str]) -> ParserOptions:
        """Build options from a single key or any iterable of keys."""
        if isinstance(allowed_keys, str):
            allowed_keys = [allowed_keys]
        keys = frozenset(allowed_keys)
        if not keys:
            raise ValueError("allowed_keys must name at least one field (or '*')")
        return cls(allowed_keys=keys)

    @classmethod
    def from_env(cls) -> ParserOptions:
        """Read the whitelist from ``URLFILTERS_ALLOWED_KEYS`` (comma-separated).

        Unset or blank means wildcard.
        """
        raw = os.getenv(ALLOWED_KEYS_ENV, "").strip()
        if not raw:
            return cls()
        keys = [part.strip() for part in raw.split(",") if part.strip()]
        return cls.of(keys)

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in self.allowed_keys

    def allows(self, field: str) -> bool:
        return self.is_wildcard or field in self.allowed_keys


def coerce_options(
    options: ParserOptions | Mapping[str, Any] | None,
    default: ParserOptions,
) -> ParserOptions:
    """Resolve per-call options: explicit options win, otherwise the parser default."""
    if options is None:
        return default
    if isinstance(options, ParserOptions):
        return options
    if "allowed_keys" not in options:
        return default
    return ParserOptions.of(options["allowed_keys"])
