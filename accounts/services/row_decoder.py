"""Typed decoding of raw store rows."""

from collections.abc import Mapping
from typing import Any


class RowDecodeError(Exception):
    """A store row could not be decoded into profile fields."""


class MissingColumnError(RowDecodeError):
    """A required column is absent or null."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f"Missing column: {column}")


class TypeMismatchError(RowDecodeError):
    """A column holds a value of an unexpected type."""

    def __init__(self, column: str, expected: str, actual: Any) -> None:
        self.column = column
        super().__init__(f"Column {column} expected {expected}, got {type(actual).__name__}")


def _column(row: Mapping[str, Any], column: str) -> Any:
    if column not in row:
        raise MissingColumnError(column)
    return row[column]


def decode_text(row: Mapping[str, Any], column: str) -> str:
    """Required text column."""
    value = _column(row, column)
    if value is None:
        raise MissingColumnError(column)
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TypeMismatchError(column, "utf-8 text", value) from e
    if not isinstance(value, str):
        raise TypeMismatchError(column, "text", value)
    return value


def decode_optional_text(row: Mapping[str, Any], column: str) -> str | None:
    """Optional text column; null and empty strings decode to None."""
    if row.get(column) is None:
        return None
    return decode_text(row, column) or None


def decode_bool(row: Mapping[str, Any], column: str, default: bool = False) -> bool:
    """Boolean column; null decodes to the default."""
    value = _column(row, column)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, bytes) and len(value) == 1:
        return value != b"\x00"
    raise TypeMismatchError(column, "boolean", value)


def decode_flags(row: Mapping[str, Any], column: str = "flags") -> int:
    """32-bit flags column.

    Raw values are read as 4 big-endian bytes; drivers that already
    deserialize the int column hand back a signed 32-bit integer.
    """
    value = _column(row, column)
    if value is None:
        return 0
    if isinstance(value, (bytes, bytearray)):
        if len(value) < 4:
            raise TypeMismatchError(column, "4 bytes", value)
        return int.from_bytes(value[:4], "big", signed=False)
    if isinstance(value, int) and not isinstance(value, bool):
        return value & 0xFFFFFFFF
    raise TypeMismatchError(column, "int", value)
