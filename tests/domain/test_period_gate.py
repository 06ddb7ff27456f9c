"""Tests for the period gate (bookkeeping_kernel/domain/period_gate.py)."""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from bookkeeping_kernel.domain.dtos import PeriodInfo
from bookkeeping_kernel.domain.period_gate import (
    GateOutcome,
    as_calendar_date,
    find_period_for_date,
    validate_date_in_period,
)
from bookkeeping_kernel.domain.periods import month_bounds


def _month(year, month, **kwargs):
    start, end = month_bounds(year, month)
    return PeriodInfo(
        id=uuid4(),
        name=f"{year}-{month:02d}",
        start_date=start,
        end_date=end,
        fiscal_year_id=uuid4(),
        **kwargs,
    )


TODAY = date(2025, 3, 15)


class TestOutcomeTable:
    """Every outcome of the gate with today = 2025-03-15."""

    @pytest.mark.parametrize(
        "entry_date, period, outcome, valid",
        [
            (date(2025, 3, 10), (2025, 3), GateOutcome.ACCEPTED_CURRENT_PERIOD, True),
            (date(2025, 3, 15), (2025, 3), GateOutcome.ACCEPTED_CURRENT_PERIOD, True),
            (date(2025, 3, 16), (2025, 3), GateOutcome.REJECTED_FUTURE_DATE, False),
            (date(2025, 3, 10), (2025, 4), GateOutcome.REJECTED_FUTURE_PERIOD, False),
            (date(2025, 2, 10), (2025, 2), GateOutcome.ACCEPTED_PREVIOUS_PERIOD, True),
            (date(2025, 3, 15), (2025, 1), GateOutcome.ACCEPTED_PREVIOUS_PERIOD, True),
            (date(2025, 2, 28), (2025, 3), GateOutcome.ACCEPTED_OUT_OF_RANGE, True),
        ],
    )
    def test_outcome(self, entry_date, period, outcome, valid):
        result = validate_date_in_period(entry_date, _month(*period), TODAY)

        assert result.outcome == outcome
        assert result.valid is valid
        assert bool(result) is valid

    def test_current_period_has_no_message(self):
        result = validate_date_in_period(date(2025, 3, 1), _month(2025, 3), TODAY)

        assert result.message is None
        assert result.is_previous_period is None
        assert not result.is_warning

    def test_previous_period_is_flagged(self):
        result = validate_date_in_period(date(2025, 1, 31), _month(2025, 1), TODAY)

        assert result.is_previous_period is True
        assert result.is_warning
        assert "previous period" in result.message

    def test_previous_period_out_of_range_mentions_both(self):
        result = validate_date_in_period(date(2024, 12, 31), _month(2025, 1), TODAY)

        assert result.outcome == GateOutcome.ACCEPTED_PREVIOUS_PERIOD
        assert "previous period" in result.message
        assert "before the start" in result.message

    def test_today_posted_two_months_back(self):
        result = validate_date_in_period(TODAY, _month(2025, 1), TODAY)

        assert result.valid
        assert result.outcome == GateOutcome.ACCEPTED_PREVIOUS_PERIOD
        assert result.is_previous_period is True
        assert "after the end" in result.message

    def test_out_of_range_is_not_previous(self):
        result = validate_date_in_period(date(2025, 2, 28), _month(2025, 3), TODAY)

        assert result.is_previous_period is None
        assert "before the start" in result.message

    def test_future_date_beats_future_period(self):
        result = validate_date_in_period(date(2025, 4, 1), _month(2025, 4), TODAY)

        assert result.outcome == GateOutcome.REJECTED_FUTURE_DATE


class TestClosedPeriods:
    """Closed or inactive periods, and periods of a closed fiscal year."""

    @pytest.mark.parametrize(
        "flags",
        [
            {"is_closed": True},
            {"is_active": False},
            {"fiscal_year_closed": True},
            {"fiscal_year_active": False},
        ],
    )
    def test_rejected(self, flags):
        result = validate_date_in_period(date(2025, 3, 10), _month(2025, 3, **flags), TODAY)

        assert result.outcome == GateOutcome.REJECTED_CLOSED_PERIOD
        assert not result.valid

    def test_fiscal_year_reason_in_message(self):
        result = validate_date_in_period(
            date(2025, 3, 10), _month(2025, 3, fiscal_year_closed=True), TODAY
        )

        assert "fiscal year" in result.message


class TestDateNormalization:
    """Only calendar dates are compared."""

    def test_iso_string_dates(self):
        result = validate_date_in_period("2025-03-10", _month(2025, 3), "2025-03-15")

        assert result.outcome == GateOutcome.ACCEPTED_CURRENT_PERIOD

    def test_datetime_is_truncated(self):
        late_evening = datetime(2025, 3, 15, 23, 59, tzinfo=timezone.utc)
        result = validate_date_in_period(late_evening, _month(2025, 3), TODAY)

        assert result.outcome == GateOutcome.ACCEPTED_CURRENT_PERIOD

    def test_string_with_time_part(self):
        assert as_calendar_date("2025-03-15T08:00:00") == date(2025, 3, 15)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            as_calendar_date("15/03/2025")


class TestFindPeriodForDate:

    def test_matches_year_and_month(self):
        periods = [_month(2025, m) for m in (1, 2, 3)]

        assert find_period_for_date(periods, date(2025, 2, 14)) is periods[1]

    def test_no_match(self):
        assert find_period_for_date([_month(2025, 1)], date(2025, 2, 1)) is None
