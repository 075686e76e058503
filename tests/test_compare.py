"""
Unit tests for loose equality and numeric-text detection.
"""

from decimal import Decimal
from enum import Enum

import pytest

from switchsync.services.reconcile.compare import format_value, is_numeric_text, loose_equals


class Power(Enum):
    ON = "on"
    OFF = "off"


class TestLooseEquals:

    @pytest.mark.parametrize("desired, live", [
        ("on", "on"),
        ("1", 1),
        (1, "1"),
        ("1.0", 1),
        (153, Decimal("153")),
        ("on", Power.ON),
        (Power.OFF, "off"),
        (True, "on"),
        ("false", False),
        (None, None),
        ([{"outlet": 0, "switch": "on"}], [{"outlet": 0, "switch": "on"}]),
        ({"r": "255"}, {"r": 255}),
    ])
    def test_equal(self, desired, live):
        assert loose_equals(desired, live)

    @pytest.mark.parametrize("desired, live", [
        ("on", "off"),
        ("2", 1),
        ("on", Power.OFF),
        (True, 1),
        (None, "off"),
        ("", None),
        ("01a", 1),
        ([1, 2], [1]),
        ({"r": 1}, {"g": 1}),
    ])
    def test_not_equal(self, desired, live):
        assert not loose_equals(desired, live)


class TestNumericText:

    @pytest.mark.parametrize("value", ["1", " 42 ", "-3.5", ".5", "1e3"])
    def test_numeric(self, value):
        assert is_numeric_text(value)

    @pytest.mark.parametrize("value", [1, 1.5, "on", "", "1.2.3", "0x10", None])
    def test_not_numeric(self, value):
        assert not is_numeric_text(value)


def test_format_value():
    assert format_value(True) == "true"
    assert format_value(None) == "null"
    assert format_value(Power.ON) == "on"
    assert format_value(12) == "12"
