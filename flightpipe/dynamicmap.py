"""Rows of named columns holding raw big-endian encoded values."""

from __future__ import annotations

import struct
from typing import Iterable, MutableMapping


class DynamicMap:
    """A row whose columns map names to raw bytes, decoded on demand."""

    def __init__(self, cols: MutableMapping[str, bytes] | None = None) -> None:
        self._cols: MutableMapping[str, bytes] = cols if cols is not None else {}

    def __repr__(self) -> str:
        return f"DynamicMap({dict(self._cols)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicMap):
            return NotImplemented
        return dict(self._cols) == dict(other._cols)

    def _column(self, column: str) -> bytes:
        try:
            return self._cols[column]
        except KeyError:
            raise KeyError(f"column {column} does not exist") from None

    def get_as_int(self, column: str) -> int:
        """Decode the column as a big-endian unsigned 32-bit integer."""
        return struct.unpack_from(">I", self._column(column))[0]

    def get_as_float(self, column: str) -> float:
        """Decode the column as a big-endian 32-bit float."""
        return struct.unpack_from(">f", self._column(column))[0]

    def get_as_string(self, column: str) -> str:
        """Decode the column as UTF-8 text."""
        return bytes(self._column(column)).decode("utf-8", errors="replace")

    def get_as_bytes(self, column: str) -> bytes:
        """Return the raw bytes of the column."""
        return self._column(column)

    def reduce_to_columns(self, columns: Iterable[str]) -> DynamicMap:
        """Return a new row holding only the given columns."""
        return DynamicMap({col: self._column(col) for col in columns})

    def column_count(self) -> int:
        """Number of columns in the row."""
        return len(self._cols)

    def as_dict(self) -> MutableMapping[str, bytes]:
        """The underlying column mapping."""
        return self._cols

    def add_column(self, key: str, value: bytes) -> None:
        """Add or replace a column."""
        self._cols[key] = value