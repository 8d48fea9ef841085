"""Partial sums of prices and rows accumulated per client."""

from __future__ import annotations

import logging
import math
import re
import struct
from dataclasses import dataclass

log = logging.getLogger(__name__)

PARTIAL_SUM_FIELDS = 3

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _format_float32(value: float) -> str:
    """Shortest decimal text that reads back as the same 32-bit float."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    text = f"{value:.8e}"
    for precision in range(9):
        candidate = f"{value:.{precision}e}"
        if _to_float32(float(candidate)) == value:
            text = candidate
            break
    mantissa, exp_text = text.split("e")
    exponent = int(exp_text)
    sign = "-" if mantissa.startswith("-") else ""
    digits = mantissa.lstrip("-").replace(".", "").rstrip("0") or "0"
    if exponent < -4 or exponent >= 21:
        body = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        exp_sign = "-" if exponent < 0 else "+"
        return f"{sign}{body}e{exp_sign}{abs(exponent):02d}"
    if exponent < 0:
        return f"{sign}0.{'0' * (-exponent - 1)}{digits}"
    whole = digits[: exponent + 1].ljust(exponent + 1, "0")
    fraction = digits[exponent + 1 :]
    return sign + whole + ("." + fraction if fraction else "")


def _parse_float32(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(f"invalid float: {text!r}")
    value = float(text)
    result = _to_float32(value)
    if math.isinf(result) and not math.isinf(value):
        raise ValueError(f"value out of range: {text!r}")
    return result


def _parse_int(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


@dataclass(frozen=True)
class PartialSum:
    """Sum of prices (a 32-bit float), rows counted and savers heard from."""

    sum_of_prices: float = 0.0
    sum_of_rows: int = 0
    num_of_savers: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "sum_of_prices", _to_float32(float(self.sum_of_prices)))

    def serialize(self) -> str:
        """Text of the form ``prices,rows,savers``."""
        return f"{_format_float32(self.sum_of_prices)},{self.sum_of_rows},{self.num_of_savers}"

    @classmethod
    def deserialize(cls, text: str) -> PartialSum:
        """Parse the text written by ``serialize``.

        Raises ValueError if the text is malformed.
        """
        parts = text.split(",")
        if len(parts) != PARTIAL_SUM_FIELDS:
            raise ValueError(f"got different format for partial sum {parts}")
        try:
            sum_of_prices = _parse_float32(parts[0])
        except ValueError as err:
            log.error("PartialSum | Error converting sum of prices to float32 | %s", err)
            raise
        try:
            sum_of_rows = _parse_int(parts[1])
        except ValueError as err:
            log.error("PartialSum | Error converting row sum to int | %s", err)
            raise
        try:
            num_of_savers = _parse_int(parts[2])
        except ValueError as err:
            log.error("PartialSum | Error converting savers count to int | %s", err)
            raise
        return cls(sum_of_prices, sum_of_rows, num_of_savers)