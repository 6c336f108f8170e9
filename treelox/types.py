"""Runtime value helpers for treelox.

Values are represented directly by Python objects: `None` is nil, `bool`
is a boolean, `float` is a number and `str` is a string. Functions are
instances of `LoxCallable`. This module holds the rules that the language
defines over those values: truthiness, equality and the display form used
by `print`.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any


def is_truthy(value: Any) -> bool:
    """nil and false are falsy, every other value is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    """Equality as seen by `==` and `!=`.

    Values of different kinds are never equal. This matters in Python,
    where `True == 1.0` holds but `true == 1` must be false here.
    """
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    if type(a) is not type(b):
        return False
    if isinstance(a, (bool, float, str)):
        return a == b
    return a is b


def format_number(value: float) -> str:
    """Shortest decimal form of a number, never in exponent notation."""
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if 'e' in text:
        # repr picks the shortest digits; Decimal lays them out positionally.
        return format(Decimal(text), 'f')
    return text


def to_string(value: Any) -> str:
    """Convert a value to the text written by `print`."""
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    return str(value)


def type_name(value: Any) -> str:
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    return 'function'
