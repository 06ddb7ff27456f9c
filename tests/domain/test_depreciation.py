"""Tests for depreciation amounts (bookkeeping_kernel/domain/depreciation.py)."""

from decimal import Decimal

from bookkeeping_kernel.domain.depreciation import DepreciationMethod, depreciation_for_months


class TestStraightLine:

    def test_one_month(self):
        # (12000 - 2000) / 5 / 12 = 166.666...
        assert depreciation_for_months(Decimal("12000"), Decimal("2000"), 5) == Decimal("166.67")

    def test_several_months(self):
        assert depreciation_for_months(
            Decimal("12000"), Decimal("0"), 1, months=3
        ) == Decimal("3000.00")

    def test_capped_at_remaining_base(self):
        amount = depreciation_for_months(
            Decimal("1200"), Decimal("0"), 1, months=1, accumulated=Decimal("1150")
        )

        assert amount == Decimal("50")

    def test_fully_depreciated(self):
        assert depreciation_for_months(
            Decimal("1200"), Decimal("0"), 1, accumulated=Decimal("1200")
        ) == Decimal("0")

    def test_invalid_inputs_yield_zero(self):
        assert depreciation_for_months(Decimal("100"), Decimal("200"), 5) == Decimal("0")
        assert depreciation_for_months(Decimal("100"), Decimal("0"), 0) == Decimal("0")
        assert depreciation_for_months(Decimal("100"), Decimal("0"), 5, months=0) == Decimal("0")


class TestAccelerated:

    def test_double_the_straight_line_rate(self):
        amount = depreciation_for_months(
            Decimal("12000"), Decimal("0"), 5, method=DepreciationMethod.ACCELERATED
        )

        assert amount == Decimal("400.00")

    def test_method_as_string(self):
        assert depreciation_for_months(
            Decimal("12000"), Decimal("0"), 5, method="accelerated"
        ) == Decimal("400.00")
