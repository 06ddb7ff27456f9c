"""Tests for calendar month helpers (bookkeeping_kernel/domain/periods.py)."""

from datetime import date

import pytest

from bookkeeping_kernel.domain.periods import month_bounds, month_ranges, ranges_overlap


class TestMonthRanges:

    def test_calendar_year(self):
        months = month_ranges(date(2025, 1, 1), date(2025, 12, 31))

        assert len(months) == 12
        assert months[0].name == "January 2025"
        assert months[1].end_date == date(2025, 2, 28)
        assert months[-1].start_date == date(2025, 12, 1)

    def test_leap_february(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_year_spanning_fiscal_year(self):
        months = month_ranges(date(2024, 7, 1), date(2025, 6, 30))

        assert [(m.year, m.month) for m in months][:7] == [
            (2024, 7), (2024, 8), (2024, 9), (2024, 10), (2024, 11), (2024, 12), (2025, 1),
        ]
        assert len(months) == 12

    def test_mid_month_bounds_get_full_months(self):
        months = month_ranges(date(2025, 1, 15), date(2025, 2, 10))

        assert months[0].start_date == date(2025, 1, 1)
        assert months[-1].end_date == date(2025, 2, 28)

    def test_inverted_range(self):
        with pytest.raises(ValueError):
            month_ranges(date(2025, 2, 1), date(2025, 1, 1))


class TestRangesOverlap:

    def test_touching_ranges_overlap(self):
        assert ranges_overlap(date(2025, 1, 1), date(2025, 6, 30), date(2025, 6, 30), date(2025, 12, 31))

    def test_adjacent_ranges_do_not_overlap(self):
        assert not ranges_overlap(
            date(2024, 1, 1), date(2024, 12, 31), date(2025, 1, 1), date(2025, 12, 31)
        )
