"""Comparisons of row columns against typed values."""

from __future__ import annotations

import operator
import struct
from typing import Callable

from flightpipe.dynamicmap import DynamicMap


def _to_float32(value: float) -> float:
    return struct.unpack(">f", struct.pack(">f", value))[0]


class Filter:
    """Compares a column of a row with a value; the value's type picks the decoding."""

    @staticmethod
    def _compare(
        row: DynamicMap,
        value: object,
        column: str,
        op: Callable[[object, object], bool],
    ) -> bool:
        if isinstance(value, bool):
            raise TypeError("type of comparison value is not valid")
        if isinstance(value, int):
            return op(row.get_as_int(column), value)
        if isinstance(value, str):
            return op(row.get_as_string(column), value)
        if isinstance(value, float):
            return op(row.get_as_float(column), _to_float32(value))
        raise TypeError("type of comparison value is not valid")

    def equals(self, row: DynamicMap, value: object, column: str) -> bool:
        return self._compare(row, value, column, operator.eq)

    def greater(self, row: DynamicMap, value: object, column: str) -> bool:
        """True when the column value is greater than the given value."""
        return self._compare(row, value, column, operator.gt)

    def less(self, row: DynamicMap, value: object, column: str) -> bool:
        """True when the column value is less than the given value."""
        return self._compare(row, value, column, operator.lt)

    def greater_or_equals(self, row: DynamicMap, value: object, column: str) -> bool:
        eq = self.equals(row, value, column)
        gr = self.greater(row, value, column)
        return eq or gr

    def less_or_equals(self, row: DynamicMap, value: object, column: str) -> bool:
        eq = self.equals(row, value, column)
        less = self.less(row, value, column)
        return eq or less