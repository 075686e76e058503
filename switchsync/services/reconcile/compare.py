"""
Value Comparison

Explicit, typed "loose equality" between desired and reported values.
The remote API is inconsistent about types (numbers arrive as text, switch
states as strings or booleans), so values are compared by meaning.
"""

import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

_NUMERIC_TEXT = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

_TRUE_WORDS = frozenset(("true", "on", "1", "yes"))
_FALSE_WORDS = frozenset(("false", "off", "0", "no"))


def is_numeric_text(value: Any) -> bool:
    """True for a str holding a decimal or float literal"""
    return isinstance(value, str) and bool(_NUMERIC_TEXT.match(value))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _to_decimal(value: Any) -> Decimal | None:
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        return None


def _bool_word(value: str) -> bool | None:
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def loose_equals(desired: Any, live: Any) -> bool:
    """
    Compare a desired value with a live value by meaning.

    Rules, first match wins:
    1. Enum members compare by their value.
    2. None equals only None.
    3. bool vs bool, or bool vs a bool word ("on", "false", ...).
       bools never equal plain numbers.
    4. number/numeric text vs number/numeric text by Decimal magnitude.
    5. str vs str exactly.
    6. list vs list and dict vs dict element-wise.
    7. any other value vs str by its text form.
    """
    if isinstance(desired, Enum):
        desired = desired.value
    if isinstance(live, Enum):
        live = live.value

    if desired is None or live is None:
        return desired is None and live is None

    if isinstance(desired, bool) or isinstance(live, bool):
        if isinstance(desired, bool) and isinstance(live, bool):
            return desired == live
        other = live if isinstance(desired, bool) else desired
        flag = desired if isinstance(desired, bool) else live
        if isinstance(other, str):
            return _bool_word(other) is flag
        return False

    desired_numeric = _is_number(desired) or is_numeric_text(desired)
    live_numeric = _is_number(live) or is_numeric_text(live)
    if desired_numeric and live_numeric:
        left, right = _to_decimal(desired), _to_decimal(live)
        if left is not None and right is not None:
            return left == right

    if isinstance(desired, str) and isinstance(live, str):
        return desired == live

    if isinstance(desired, list) and isinstance(live, list):
        return len(desired) == len(live) and all(
            loose_equals(d, l) for d, l in zip(desired, live)
        )

    if isinstance(desired, dict) and isinstance(live, dict):
        return desired.keys() == live.keys() and all(
            loose_equals(desired[k], live[k]) for k in desired
        )

    if isinstance(desired, str) and not isinstance(live, (list, dict)):
        return desired == str(live)
    if isinstance(live, str) and not isinstance(desired, (list, dict)):
        return live == str(desired)

    return desired == live


def format_value(value: Any) -> str:
    """Render a value for audit messages"""
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)
