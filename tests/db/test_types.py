"""Tests for monetary helpers (bookkeeping_kernel/db/types.py)."""

from decimal import Decimal

import pytest

from bookkeeping_kernel.db.types import round_money, to_decimal


class TestToDecimal:

    def test_string_and_int(self):
        assert to_decimal(" 12.50 ") == Decimal("12.50")
        assert to_decimal(3) == Decimal("3")

    @pytest.mark.parametrize("value", [1.5, True, "abc", "NaN", "Infinity", None, [1]])
    def test_rejected(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)

    def test_non_finite_decimal_rejected(self):
        with pytest.raises(ValueError):
            to_decimal(Decimal("NaN"))


class TestRoundMoney:

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("0.005", "0.01"),
            ("0.004", "0.00"),
            ("-0.005", "-0.01"),
            ("2.675", "2.68"),
        ],
    )
    def test_half_up(self, value, expected):
        assert round_money(Decimal(value)) == Decimal(expected)

    def test_zero_places(self):
        assert round_money(Decimal("2.5"), 0) == Decimal("3")
