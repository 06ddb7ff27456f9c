"""
Period Gate -- may an entry dated D be posted into period P today?

Responsibility:
    Pure evaluation of an entry date against the metadata of its target
    accounting period and the current calendar date.  Hard failures block;
    advisories pass with a message the caller should show for confirmation.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  "today" is passed in
    by the caller (services take it from their injected Clock).

Invariants enforced:
    - No entry is ever dated after today.
    - No posting into a period whose (year, month) is after today's.
    - No posting into a closed or inactive period, or one whose fiscal year
      is closed or inactive.
    - Dates are compared as calendar dates only.  Strings are parsed as
      ``YYYY-MM-DD``; datetimes are truncated to their date.  No time zone
      conversion ever happens here.

Failure modes:
    - None raised for rule violations; see ``PeriodGateResult``.
    - ValueError from ``as_calendar_date`` on an unparseable date string.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from bookkeeping_kernel.domain.dtos import PeriodInfo


class GateOutcome(str, Enum):
    """Every state a date-vs-period evaluation can land in."""

    REJECTED_FUTURE_DATE = "rejected_future_date"
    REJECTED_FUTURE_PERIOD = "rejected_future_period"
    REJECTED_CLOSED_PERIOD = "rejected_closed_period"
    ACCEPTED_CURRENT_PERIOD = "accepted_current_period"
    ACCEPTED_PREVIOUS_PERIOD = "accepted_previous_period"
    ACCEPTED_OUT_OF_RANGE = "accepted_out_of_range"


@dataclass(frozen=True)
class PeriodGateResult:
    """
    Outcome of ``validate_date_in_period``.

    Guarantees:
        - ``valid`` is False only for REJECTED_* outcomes.
        - ``message`` is None only for ACCEPTED_CURRENT_PERIOD.
        - ``is_previous_period`` is True for an elapsed period, None otherwise.
    """

    valid: bool
    outcome: GateOutcome
    message: str | None = None
    is_previous_period: bool | None = None

    @property
    def is_warning(self) -> bool:
        return self.valid and self.message is not None

    def __bool__(self) -> bool:
        return self.valid


def as_calendar_date(value: date | datetime | str) -> date:
    """Normalize a date-like value to a plain ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Cannot interpret {value!r} as a date")


def _month_key(d: date) -> tuple[int, int]:
    return (d.year, d.month)


def validate_date_in_period(
    entry_date: date | datetime | str,
    period: PeriodInfo,
    today: date | datetime | str,
) -> PeriodGateResult:
    """
    Decide whether ``entry_date`` may be posted into ``period``.

    Checks, in order: future date, closed period, future period; then the
    advisories (previous period, date outside the period's range).
    """
    entry_date = as_calendar_date(entry_date)
    today = as_calendar_date(today)

    if entry_date > today:
        return PeriodGateResult(
            valid=False,
            outcome=GateOutcome.REJECTED_FUTURE_DATE,
            message=f"Entry date {entry_date.isoformat()} is in the future",
        )

    if not period.accepts_postings:
        if period.fiscal_year_closed or not period.fiscal_year_active:
            reason = "its fiscal year is closed or inactive"
        elif period.is_closed:
            reason = "it is closed"
        else:
            reason = "it is inactive"
        return PeriodGateResult(
            valid=False,
            outcome=GateOutcome.REJECTED_CLOSED_PERIOD,
            message=f"Period {period.name} does not accept postings: {reason}",
        )

    current_month = _month_key(today)
    if _month_key(period.start_date) > current_month:
        return PeriodGateResult(
            valid=False,
            outcome=GateOutcome.REJECTED_FUTURE_PERIOD,
            message=f"Period {period.name} has not started yet",
        )

    out_of_range_message = None
    if entry_date < period.start_date:
        out_of_range_message = (
            f"Entry date {entry_date.isoformat()} is before the start of "
            f"period {period.name} ({period.start_date.isoformat()})"
        )
    elif entry_date > period.end_date:
        out_of_range_message = (
            f"Entry date {entry_date.isoformat()} is after the end of "
            f"period {period.name} ({period.end_date.isoformat()})"
        )

    if _month_key(period.end_date) < current_month:
        message = f"Period {period.name} is a previous period; confirm the posting"
        if out_of_range_message:
            message = f"{message}. {out_of_range_message}"
        return PeriodGateResult(
            valid=True,
            outcome=GateOutcome.ACCEPTED_PREVIOUS_PERIOD,
            message=message,
            is_previous_period=True,
        )

    if out_of_range_message:
        return PeriodGateResult(
            valid=True,
            outcome=GateOutcome.ACCEPTED_OUT_OF_RANGE,
            message=out_of_range_message,
        )

    return PeriodGateResult(valid=True, outcome=GateOutcome.ACCEPTED_CURRENT_PERIOD)


def find_period_for_date(
    periods: Iterable[PeriodInfo],
    entry_date: date | datetime | str,
) -> PeriodInfo | None:
    """Monthly period whose year and month match ``entry_date``."""
    key = _month_key(as_calendar_date(entry_date))
    for period in periods:
        if _month_key(period.start_date) == key:
            return period
    return None
