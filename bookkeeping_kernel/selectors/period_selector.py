"""
PeriodSelector -- read-only access to fiscal years and monthly periods.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from bookkeeping_kernel.domain.dtos import ClosingHistoryEntry, PeriodInfo
from bookkeeping_kernel.models.activity_log import ActivityAction, ActivityLog
from bookkeeping_kernel.models.fiscal_period import FiscalYear, MonthlyPeriod
from bookkeeping_kernel.selectors.base import BaseSelector


class PeriodSelector(BaseSelector):
    """Period queries returning PeriodInfo snapshots."""

    def fetch_period(self, period_id: UUID) -> PeriodInfo | None:
        """
        Monthly period by id, with its fiscal year's flags folded in.

        Falls back to a fiscal year with that id, so callers can ask for
        either kind of period.
        """
        period = self.session.get(MonthlyPeriod, period_id)
        if period is not None:
            return PeriodInfo.from_monthly_model(period)
        fiscal_year = self.session.get(FiscalYear, period_id)
        if fiscal_year is not None:
            return PeriodInfo.from_fiscal_year_model(fiscal_year)
        return None

    def list_fiscal_years(self) -> list[PeriodInfo]:
        stmt = select(FiscalYear).order_by(FiscalYear.start_date)
        return [PeriodInfo.from_fiscal_year_model(fy) for fy in self.session.scalars(stmt)]

    def list_monthly_periods(self, fiscal_year_id: UUID | None = None) -> list[PeriodInfo]:
        stmt = (
            select(MonthlyPeriod)
            .options(selectinload(MonthlyPeriod.fiscal_year))
            .order_by(MonthlyPeriod.start_date)
        )
        if fiscal_year_id is not None:
            stmt = stmt.where(MonthlyPeriod.fiscal_year_id == fiscal_year_id)
        return [PeriodInfo.from_monthly_model(p) for p in self.session.scalars(stmt)]

    def find_monthly_period_for_date(self, on: date) -> PeriodInfo | None:
        """Monthly period matching the year and month of ``on``."""
        stmt = (
            select(MonthlyPeriod)
            .where(MonthlyPeriod.year == on.year, MonthlyPeriod.month == on.month)
            .order_by(MonthlyPeriod.start_date)
        )
        period = self.session.scalars(stmt).first()
        return PeriodInfo.from_monthly_model(period) if period else None

    def closing_history(self, period_id: UUID) -> list[ClosingHistoryEntry]:
        """Close, reopen and closing-entry events of one period, oldest first."""
        actions = (
            ActivityAction.PERIOD_CLOSED.value,
            ActivityAction.PERIOD_REOPENED.value,
            ActivityAction.CLOSING_ENTRY_GENERATED.value,
        )
        stmt = (
            select(ActivityLog)
            .where(ActivityLog.entity_id == period_id, ActivityLog.action.in_(actions))
            .order_by(ActivityLog.occurred_at, ActivityLog.id)
        )
        return [ClosingHistoryEntry.from_model(row) for row in self.session.scalars(stmt)]
