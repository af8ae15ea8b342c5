# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Typed access to catalog JSON objects with location-aware errors."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TypeAlias

from ..errors import CatalogIntegrityError

JSONValue: TypeAlias = str | int | float | bool | None | Mapping[str, "JSONValue"] | Sequence["JSONValue"]


def expect_mapping(value: JSONValue | None, *, key: str, context: str) -> Mapping[str, JSONValue]:
    """Return ``value`` when it is a JSON object.

    Raises:
        CatalogIntegrityError: If ``value`` is anything else.
    """
    if not isinstance(value, Mapping):
        raise CatalogIntegrityError(f"{context}: '{key}' must be an object")
    return value


@dataclass(frozen=True, slots=True)
class FieldReader:
    """Read typed fields from one catalog object.

    Every error names ``context`` (the document and object path) and the
    offending key, so schema-valid but semantically odd documents still
    produce actionable messages.
    """

    data: Mapping[str, JSONValue]
    context: str

    def _fail(self, key: str, expected: str) -> CatalogIntegrityError:
        return CatalogIntegrityError(f"{self.context}: '{key}' must be {expected}")

    def text(self, key: str) -> str:
        """Return the required string at ``key``."""
        value = self.data.get(key)
        if not isinstance(value, str):
            raise self._fail(key, "a string")
        return value

    def optional_text(self, key: str) -> str | None:
        """Return the string at ``key``, ``None`` when absent or empty."""
        if self.data.get(key) is None:
            return None
        return self.text(key) or None

    def text_or(self, key: str, default: str) -> str:
        value = self.optional_text(key)
        return default if value is None else value

    def flag(self, key: str, *, default: bool) -> bool:
        value = self.data.get(key)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise self._fail(key, "a boolean")
        return value

    def texts(self, key: str) -> tuple[str, ...]:
        """Return the array of strings at ``key``, empty when absent."""
        value = self.data.get(key)
        if value is None:
            return ()
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise self._fail(key, "an array of strings")
        if not all(isinstance(item, str) for item in value):
            raise self._fail(key, "an array of strings")
        return tuple(str(item) for item in value)

    def items(self, key: str) -> Sequence[JSONValue]:
        """Return the raw array at ``key``, empty when absent."""
        value = self.data.get(key)
        if value is None:
            return ()
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise self._fail(key, "an array")
        return value


__all__ = ["FieldReader", "JSONValue", "expect_mapping"]
