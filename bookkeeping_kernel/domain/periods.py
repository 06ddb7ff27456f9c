"""
Calendar helpers for accounting periods.

Pure functions that derive monthly periods from a fiscal year's date range.
Months are aligned to calendar boundaries: the 1st through the last day.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class MonthRange:
    year: int
    month: int
    start_date: date
    end_date: date

    @property
    def name(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_ranges(start_date: date, end_date: date) -> list[MonthRange]:
    """
    Calendar months touched by ``[start_date, end_date]``.

    A fiscal year that starts or ends mid-month still gets the full month;
    monthly periods never start on any day but the 1st.
    """
    if start_date > end_date:
        raise ValueError(f"start_date {start_date} is after end_date {end_date}")

    ranges = []
    year, month = start_date.year, start_date.month
    while (year, month) <= (end_date.year, end_date.month):
        first, last = month_bounds(year, month)
        ranges.append(MonthRange(year=year, month=month, start_date=first, end_date=last))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return ranges


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and b_start <= a_end
