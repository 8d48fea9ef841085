import struct

import pytest

from flightpipe.dynamicmap import DynamicMap
from flightpipe.filters import Filter


def _row(data):
    return DynamicMap({"test_column": data, "test_col2": b"test_not_pass_string"})


def _int_row(value):
    return _row(struct.pack(">I", value))


def _float_row(value):
    return _row(struct.pack(">f", value))


def test_equals_raises_when_column_not_found():
    row = DynamicMap({"test_column": b"test_string", "test_col2": b"test_not_pass_string"})
    with pytest.raises(KeyError):
        Filter().equals(row, "test_string_shall not pass", "test_column_not_ex")


def test_equals_with_string():
    row = _row(b"test_string")
    assert Filter().equals(row, "test_string", "test_column") is True


def test_equals_is_false_with_string():
    row = _row(b"test_string")
    assert Filter().equals(row, "test_string_shall not pass", "test_column") is False


@pytest.mark.parametrize(
    "method, value, expected",
    [
        ("greater", "strinf", True),
        ("greater", "string", False),
        ("greater", "strinh", False),
        ("less", "strinh", True),
        ("less", "string", False),
        ("less", "strinf", False),
        ("less_or_equals", "strinh", True),
        ("less_or_equals", "string", True),
        ("less_or_equals", "strinf", False),
        ("greater_or_equals", "strinf", True),
        ("greater_or_equals", "string", True),
        ("greater_or_equals", "strinh", False),
    ],
)
def test_string_comparisons(method, value, expected):
    row = _row(b"string")
    assert getattr(Filter(), method)(row, value, "test_column") is expected


def test_equals_with_float_is_true():
    assert Filter().equals(_float_row(5.3252), 5.3252, "test_column") is True


def test_equals_with_float_is_false():
    assert Filter().equals(_float_row(5.3252 + 1.5432), 5.3252, "test_column") is False


@pytest.mark.parametrize(
    "stored, method, value, expected",
    [
        (6.1234, "greater", 6.1234 - 2, True),
        (6.4242, "greater", 6.4242, False),
        (6.4242, "greater", 6.4242 + 2, False),
        (6.1234, "less", 6.1234 + 2, True),
        (6.4242, "less", 6.4242, False),
        (6.4242, "less", 6.4242 - 2, False),
        (6.1234, "less_or_equals", 6.1234 + 2, True),
        (6.1234, "less_or_equals", 6.1234, True),
        (6.4242, "less_or_equals", 6.4242 - 2, False),
        (6.1234, "greater_or_equals", 6.1234 - 2, True),
        (6.1234, "greater_or_equals", 6.1234, True),
        (6.4242, "greater_or_equals", 6.4242 + 2, False),
    ],
)
def test_float_comparisons(stored, method, value, expected):
    row = _float_row(stored)
    assert getattr(Filter(), method)(row, value, "test_column") is expected


def test_equals_with_int_is_true():
    assert Filter().equals(_int_row(6), 6, "test_column") is True


def test_equals_with_int_is_false():
    assert Filter().equals(_int_row(7), 6, "test_column") is False


@pytest.mark.parametrize(
    "method, value, expected",
    [
        ("greater", 4, True),
        ("greater", 6, False),
        ("greater", 8, False),
        ("less", 8, True),
        ("less", 6, False),
        ("less", 4, False),
        ("greater_or_equals", 4, True),
        ("greater_or_equals", 6, True),
        ("greater_or_equals", 8, False),
        ("less_or_equals", 8, True),
        ("less_or_equals", 6, True),
        ("less_or_equals", 4, False),
    ],
)
def test_int_comparisons(method, value, expected):
    row = _int_row(6)
    assert getattr(Filter(), method)(row, value, "test_column") is expected


@pytest.mark.parametrize("value", [b"bytes", [1], True, None])
def test_unsupported_value_type_raises(value):
    with pytest.raises(TypeError):
        Filter().equals(_int_row(6), value, "test_column")


def test_or_equals_propagates_missing_column():
    with pytest.raises(KeyError):
        Filter().less_or_equals(_int_row(6), 6, "missing")