"""
Tests for money helpers in paybook_kernel.db.types.

Covers:
- Half-up rounding on the exact decimal value
- Float conversion through the shortest repr
"""

from decimal import Decimal

import pytest

from paybook_kernel.db.types import ZERO, round_money, to_decimal


class TestRoundMoney:
    """round_money is the only sanctioned rounding function."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1.005", "1.01"),
            ("1.004", "1.00"),
            ("2.675", "2.68"),
            ("-2.675", "-2.68"),
            ("0.125", "0.13"),
            ("100", "100.00"),
        ],
    )
    def test_half_up(self, value, expected):
        assert round_money(Decimal(value)) == Decimal(expected)

    def test_result_has_two_places(self):
        assert round_money(Decimal("7")).as_tuple().exponent == -2

    def test_float_input_is_not_binary_rounded(self):
        # 1.005 as a binary float is 1.00499999999999989..., but its repr is 1.005
        assert round_money(1.005) == Decimal("1.01")

    def test_custom_places(self):
        assert round_money(Decimal("1.23456"), decimal_places=4) == Decimal("1.2346")


class TestToDecimal:

    def test_none_uses_default(self):
        assert to_decimal(None) == ZERO
        assert to_decimal(None, Decimal("1.5")) == Decimal("1.5")

    def test_decimal_passthrough(self):
        value = Decimal("3.14")
        assert to_decimal(value) is value

    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int_and_str(self):
        assert to_decimal(5) == Decimal("5")
        assert to_decimal("12.50") == Decimal("12.50")

