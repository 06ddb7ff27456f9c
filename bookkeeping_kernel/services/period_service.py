"""
PeriodService -- fiscal year and monthly period lifecycle.

Responsibility:
    Creates fiscal years and their calendar months, closes and reopens
    them, posts closing entries that transfer the period result to equity,
    deletes unused periods and answers "may this date be posted into
    that period today?" through the period gate.

Architecture position:
    Kernel > Services -- imperative shell.
    Delegates date-vs-period decisions to ``domain.period_gate``.

Invariants enforced:
    - Fiscal years never overlap.
    - Monthly periods are whole calendar months.
    - A period with pending entries cannot be closed.
    - Closing a fiscal year closes its months; reopening it reopens them.
    - A month cannot be reopened while its fiscal year is closed.
    - A period referenced by any entry cannot be deleted.
    - At most one non-voided closing entry per period.

Failure modes:
    - PeriodNotFoundError, PeriodOverlapError, InvalidPeriodRangeError,
      PeriodAlreadyClosedError, PeriodNotClosedError,
      PendingEntriesInPeriodError, FiscalYearClosedError,
      PeriodHasEntriesError, ClosingEntryError, AuthorizationError.

Audit relevance:
    Close, reopen and closing-entry generation write activity rows, which
    form the period's closing history.  Close and reopen take row locks,
    so a close cannot interleave with an approval in the same period.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookkeeping_config.schema import Settings
from bookkeeping_kernel.domain.authorization import Permission
from bookkeeping_kernel.domain.clock import Clock
from bookkeeping_kernel.domain.dtos import (
    AccountType,
    ClosingHistoryEntry,
    EntryStatus,
    JournalEntryInfo,
    PeriodInfo,
)
from bookkeeping_kernel.domain.period_gate import (
    PeriodGateResult,
    as_calendar_date,
    validate_date_in_period,
)
from bookkeeping_kernel.domain.periods import month_ranges, ranges_overlap
from bookkeeping_kernel.domain.statements import compute_closing_lines
from bookkeeping_kernel.exceptions import (
    AccountNotFoundError,
    ClosingEntryError,
    FiscalYearClosedError,
    InvalidPeriodRangeError,
    PendingEntriesInPeriodError,
    PeriodAlreadyClosedError,
    PeriodHasEntriesError,
    PeriodNotClosedError,
    PeriodNotFoundError,
    PeriodOverlapError,
)
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.activity_log import ActivityAction
from bookkeeping_kernel.models.fiscal_period import FiscalYear, MonthlyPeriod
from bookkeeping_kernel.selectors.account_selector import AccountSelector
from bookkeeping_kernel.selectors.journal_selector import JournalSelector
from bookkeeping_kernel.selectors.ledger_selector import LedgerSelector
from bookkeeping_kernel.selectors.period_selector import PeriodSelector
from bookkeeping_kernel.services.activity_recorder import ActivityRecorder
from bookkeeping_kernel.services.base import BaseService
from bookkeeping_kernel.services.journal_service import JournalService

logger = get_logger("services.period")


@dataclass(frozen=True)
class ClosingResult:
    """Outcome of ``PeriodService.generate_closing_entry``."""

    period_id: UUID
    entry: JournalEntryInfo
    total_revenue: Decimal
    total_costs: Decimal
    total_expenses: Decimal
    net_result: Decimal


class PeriodService(BaseService):
    """
    Manages accounting periods.

    Contract:
        Every mutating method takes the acting user's id and role, checks the
        role first, flushes, and never commits.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ):
        super().__init__(session, clock, settings)
        self._periods = PeriodSelector(session)
        self._journal = JournalSelector(session)
        self._activity = ActivityRecorder(session, self._clock)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_fiscal_year(
        self,
        name: str,
        start_date: date,
        end_date: date,
        actor_id: UUID,
        role: str,
        *,
        generate_months: bool = True,
    ) -> PeriodInfo:
        """
        Create a fiscal year, and by default its monthly periods.

        Raises:
            InvalidPeriodRangeError: start_date after end_date.
            PeriodOverlapError: Range intersects an existing fiscal year.
        """
        self._authorize(role, Permission.MANAGE_PERIODS, actor_id)
        start_date = as_calendar_date(start_date)
        end_date = as_calendar_date(end_date)
        if start_date > end_date:
            raise InvalidPeriodRangeError(start_date.isoformat(), end_date.isoformat())

        self._validate_no_overlap(name, start_date, end_date)

        fiscal_year = FiscalYear(
            name=name,
            start_date=start_date,
            end_date=end_date,
            created_by_id=actor_id,
        )
        self.session.add(fiscal_year)
        self.session.flush()

        self._activity.record(
            "FiscalYear", fiscal_year.id, ActivityAction.PERIOD_CREATED, actor_id,
            {"name": name, "start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )
        logger.info(
            "fiscal_year_created",
            extra={
                "period_id": str(fiscal_year.id),
                "period_name": name,
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
            },
        )

        if generate_months:
            self._generate_months(fiscal_year, actor_id)
            self.session.flush()

        return PeriodInfo.from_fiscal_year_model(fiscal_year)

    def _validate_no_overlap(self, name: str, start_date: date, end_date: date) -> None:
        for existing in self.session.scalars(select(FiscalYear)):
            if ranges_overlap(start_date, end_date, existing.start_date, existing.end_date):
                raise PeriodOverlapError(
                    name,
                    existing.name,
                    max(start_date, existing.start_date).isoformat(),
                    min(end_date, existing.end_date).isoformat(),
                )

    def generate_monthly_periods(
        self,
        fiscal_year_id: UUID,
        actor_id: UUID,
        role: str,
    ) -> list[PeriodInfo]:
        """
        Create the calendar months of a fiscal year that do not exist yet.

        Returns:
            All monthly periods of the fiscal year, ordered by start date.
        """
        self._authorize(role, Permission.MANAGE_PERIODS, actor_id)
        fiscal_year = self.session.get(FiscalYear, fiscal_year_id)
        if fiscal_year is None:
            raise PeriodNotFoundError(str(fiscal_year_id))
        self._generate_months(fiscal_year, actor_id)
        self.session.flush()
        return self._periods.list_monthly_periods(fiscal_year_id)

    def _generate_months(self, fiscal_year: FiscalYear, actor_id: UUID) -> int:
        existing = {(p.year, p.month) for p in fiscal_year.monthly_periods}
        created = 0
        for month in month_ranges(fiscal_year.start_date, fiscal_year.end_date):
            if (month.year, month.month) in existing:
                continue
            fiscal_year.monthly_periods.append(MonthlyPeriod(
                name=month.name,
                year=month.year,
                month=month.month,
                start_date=month.start_date,
                end_date=month.end_date,
                is_closed=False,
                is_active=True,
                created_by_id=actor_id,
            ))
            created += 1
        logger.info(
            "monthly_periods_generated",
            extra={"period_id": str(fiscal_year.id), "months_created": created},
        )
        return created

    # ------------------------------------------------------------------
    # Close / reopen
    # ------------------------------------------------------------------

    def close_monthly_period(self, period_id: UUID, actor_id: UUID, role: str) -> PeriodInfo:
        """
        Close a monthly period.

        Uses SELECT FOR UPDATE so a concurrent approval in the same period
        either lands before the close or sees the period closed.

        Raises:
            PeriodNotFoundError, PeriodAlreadyClosedError,
            PendingEntriesInPeriodError.
        """
        self._authorize(role, Permission.CLOSE_PERIODS, actor_id)
        period = self._lock_monthly(period_id)
        if period.is_closed:
            raise PeriodAlreadyClosedError(period.name)

        pending = self._journal.count_entries(
            monthly_period_id=period.id, status=EntryStatus.PENDING
        )
        if pending:
            raise PendingEntriesInPeriodError(period.name, pending)

        self._mark_closed(period, actor_id)
        self.session.flush()

        self._activity.record("MonthlyPeriod", period.id, ActivityAction.PERIOD_CLOSED, actor_id)
        logger.info("period_closed", extra={"period_id": str(period.id), "period_name": period.name})
        return PeriodInfo.from_monthly_model(period)

    def close_fiscal_year(self, fiscal_year_id: UUID, actor_id: UUID, role: str) -> PeriodInfo:
        """
        Close a fiscal year and every month in it that is still open.

        Raises:
            PeriodNotFoundError, PeriodAlreadyClosedError,
            PendingEntriesInPeriodError.
        """
        self._authorize(role, Permission.CLOSE_PERIODS, actor_id)
        fiscal_year = self._lock_fiscal_year(fiscal_year_id)
        if fiscal_year.is_closed:
            raise PeriodAlreadyClosedError(fiscal_year.name)

        pending = self._journal.count_entries(
            fiscal_year_id=fiscal_year.id, status=EntryStatus.PENDING
        )
        if pending:
            raise PendingEntriesInPeriodError(fiscal_year.name, pending)

        months_closed = 0
        for month in self._lock_months_of(fiscal_year.id):
            if not month.is_closed:
                self._mark_closed(month, actor_id)
                months_closed += 1
        self._mark_closed(fiscal_year, actor_id)
        self.session.flush()

        self._activity.record(
            "FiscalYear", fiscal_year.id, ActivityAction.PERIOD_CLOSED, actor_id,
            {"months_closed": months_closed},
        )
        logger.info(
            "fiscal_year_closed",
            extra={
                "period_id": str(fiscal_year.id),
                "period_name": fiscal_year.name,
                "months_closed": months_closed,
            },
        )
        return PeriodInfo.from_fiscal_year_model(fiscal_year)

    def reopen_monthly_period(self, period_id: UUID, actor_id: UUID, role: str) -> PeriodInfo:
        """
        Reopen a closed monthly period.

        Raises:
            PeriodNotFoundError, PeriodNotClosedError, FiscalYearClosedError.
        """
        self._authorize(role, Permission.CLOSE_PERIODS, actor_id)
        period = self._lock_monthly(period_id)
        if not period.is_closed:
            raise PeriodNotClosedError(period.name)
        if period.fiscal_year.is_closed:
            raise FiscalYearClosedError(period.fiscal_year.name, period.name)

        self._mark_open(period, actor_id)
        self.session.flush()

        self._activity.record("MonthlyPeriod", period.id, ActivityAction.PERIOD_REOPENED, actor_id)
        logger.info("period_reopened", extra={"period_id": str(period.id), "period_name": period.name})
        return PeriodInfo.from_monthly_model(period)

    def reopen_fiscal_year(self, fiscal_year_id: UUID, actor_id: UUID, role: str) -> PeriodInfo:
        """Reopen a closed fiscal year and all of its months."""
        self._authorize(role, Permission.CLOSE_PERIODS, actor_id)
        fiscal_year = self._lock_fiscal_year(fiscal_year_id)
        if not fiscal_year.is_closed:
            raise PeriodNotClosedError(fiscal_year.name)

        self._mark_open(fiscal_year, actor_id)
        months_reopened = 0
        for month in self._lock_months_of(fiscal_year.id):
            if month.is_closed:
                self._mark_open(month, actor_id)
                months_reopened += 1
        self.session.flush()

        self._activity.record(
            "FiscalYear", fiscal_year.id, ActivityAction.PERIOD_REOPENED, actor_id,
            {"months_reopened": months_reopened},
        )
        logger.info(
            "fiscal_year_reopened",
            extra={
                "period_id": str(fiscal_year.id),
                "period_name": fiscal_year.name,
                "months_reopened": months_reopened,
            },
        )
        return PeriodInfo.from_fiscal_year_model(fiscal_year)

    def _mark_closed(self, period: FiscalYear | MonthlyPeriod, actor_id: UUID) -> None:
        now: datetime = self._clock.now()
        period.is_closed = True
        period.closed_at = now
        period.closed_by_id = actor_id
        period.updated_by_id = actor_id

    def _mark_open(self, period: FiscalYear | MonthlyPeriod, actor_id: UUID) -> None:
        period.is_closed = False
        period.closed_at = None
        period.closed_by_id = None
        period.updated_by_id = actor_id

    # ------------------------------------------------------------------
    # Closing entries
    # ------------------------------------------------------------------

    def generate_closing_entry(
        self,
        period_id: UUID,
        equity_account_id: UUID,
        actor_id: UUID,
        role: str,
        *,
        notes: str | None = None,
    ) -> ClosingResult:
        """
        Post and approve the entry that brings every revenue, cost and
        expense leaf of a monthly period or fiscal year to zero, booking
        the result to ``equity_account_id``.

        The entry is dated on the period's last day and assigned to its
        last month, so the period gate refuses it until that day has come.
        A period holds at most one closing entry that is not voided; void
        it to generate a new one.

        Raises:
            PeriodNotFoundError, AccountNotFoundError,
            PeriodAlreadyClosedError, PendingEntriesInPeriodError.
            ClosingEntryError: Closing entry already present, equity account
                unusable, or nothing to close.
            FuturePeriodError: The period has not ended yet.
        """
        self._authorize(role, Permission.CLOSE_PERIODS, actor_id)
        period = self.get_period(period_id)
        if period.is_closed:
            raise PeriodAlreadyClosedError(period.name)

        if period.is_fiscal_year:
            scope = {"fiscal_year_id": period.id}
            months = self._periods.list_monthly_periods(period.id)
            if not months:
                raise ClosingEntryError(period.name, "fiscal year has no monthly periods")
            target = months[-1]
        else:
            scope = {"monthly_period_id": period.id}
            target = period

        pending = self._journal.count_entries(status=EntryStatus.PENDING, **scope)
        if pending:
            raise PendingEntriesInPeriodError(period.name, pending)
        existing = [
            entry for entry in self._journal.list_entries(closing_only=True, **scope)
            if entry.status != EntryStatus.VOIDED
        ]
        if existing:
            raise ClosingEntryError(
                period.name, f"closing entry {existing[0].entry_number} already exists"
            )

        accounts = AccountSelector(self.session)
        equity = accounts.get(equity_account_id)
        if equity is None:
            raise AccountNotFoundError(str(equity_account_id))
        if equity.account_type != AccountType.EQUITY or not equity.is_leaf or not equity.is_active:
            raise ClosingEntryError(
                period.name, f"account {equity.code} is not an active equity leaf account"
            )

        decimal_places = self._settings.balance.decimal_places
        ledger = LedgerSelector(self.session, decimal_places)
        if period.is_fiscal_year:
            period_lines = ledger.fetch_lines_for_fiscal_year(period.id)
        else:
            period_lines = ledger.fetch_lines_for_period(period.id)
        computation = compute_closing_lines(
            accounts.fetch_accounts(), period_lines, equity.id, decimal_places=decimal_places
        )
        if not computation.lines:
            raise ClosingEntryError(period.name, "no revenue, cost or expense balances to close")

        journal = JournalService(self.session, self._clock, self._settings)
        entry = journal.create_entry(
            period.end_date,
            f"Closing entry {period.name}",
            list(computation.lines),
            actor_id,
            role,
            monthly_period_id=target.id,
            notes=notes,
            is_closing_entry=True,
        )
        entry = journal.approve_entry(entry.id, actor_id, role)

        self._activity.record(
            "FiscalYear" if period.is_fiscal_year else "MonthlyPeriod",
            period.id,
            ActivityAction.CLOSING_ENTRY_GENERATED,
            actor_id,
            {
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "total_revenue": str(computation.total_revenue),
                "total_costs": str(computation.total_costs),
                "total_expenses": str(computation.total_expenses),
                "net_result": str(computation.net_result),
                "notes": notes,
            },
        )
        self.session.flush()
        logger.info(
            "closing_entry_generated",
            extra={
                "period_id": str(period.id),
                "period_name": period.name,
                "entry_id": str(entry.id),
                "line_count": len(computation.lines),
                "net_result": str(computation.net_result),
            },
        )
        return ClosingResult(
            period_id=period.id,
            entry=entry,
            total_revenue=computation.total_revenue,
            total_costs=computation.total_costs,
            total_expenses=computation.total_expenses,
            net_result=computation.net_result,
        )

    def closing_history(self, period_id: UUID) -> list[ClosingHistoryEntry]:
        """Close, reopen and closing-entry events of a period, oldest first."""
        self.get_period(period_id)
        return self._periods.closing_history(period_id)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_period(self, period_id: UUID, actor_id: UUID, role: str) -> None:
        """
        Delete a monthly period or a fiscal year (with its months).

        Raises:
            PeriodNotFoundError: No period with that id.
            PeriodHasEntriesError: Entries reference the period.
        """
        self._authorize(role, Permission.MANAGE_PERIODS, actor_id)

        period = self.session.get(MonthlyPeriod, period_id)
        if period is not None:
            count = self._journal.count_entries(monthly_period_id=period.id)
            if count:
                raise PeriodHasEntriesError(period.name, count)
            entity_type, name = "MonthlyPeriod", period.name
            self.session.delete(period)
        else:
            fiscal_year = self.session.get(FiscalYear, period_id)
            if fiscal_year is None:
                raise PeriodNotFoundError(str(period_id))
            count = self._journal.count_entries(fiscal_year_id=fiscal_year.id)
            if count:
                raise PeriodHasEntriesError(fiscal_year.name, count)
            entity_type, name = "FiscalYear", fiscal_year.name
            self.session.delete(fiscal_year)

        self._activity.record(
            entity_type, period_id, ActivityAction.PERIOD_DELETED, actor_id, {"name": name}
        )
        self.session.flush()
        logger.info("period_deleted", extra={"period_id": str(period_id), "period_name": name})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_period(self, period_id: UUID) -> PeriodInfo:
        period = self._periods.fetch_period(period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    def find_monthly_period_for_date(self, on: date) -> PeriodInfo | None:
        return self._periods.find_monthly_period_for_date(as_calendar_date(on))

    def validate_entry_date(self, entry_date: date | str, period_id: UUID) -> PeriodGateResult:
        """Run the period gate for ``entry_date`` against ``period_id`` as of today."""
        return validate_date_in_period(entry_date, self.get_period(period_id), self._clock.today())

    # ------------------------------------------------------------------
    # Locking helpers
    # ------------------------------------------------------------------

    def _lock_monthly(self, period_id: UUID) -> MonthlyPeriod:
        period = self.session.scalars(
            select(MonthlyPeriod).where(MonthlyPeriod.id == period_id).with_for_update()
        ).first()
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    def _lock_fiscal_year(self, fiscal_year_id: UUID) -> FiscalYear:
        fiscal_year = self.session.scalars(
            select(FiscalYear).where(FiscalYear.id == fiscal_year_id).with_for_update()
        ).first()
        if fiscal_year is None:
            raise PeriodNotFoundError(str(fiscal_year_id))
        return fiscal_year

    def _lock_months_of(self, fiscal_year_id: UUID) -> list[MonthlyPeriod]:
        return list(self.session.scalars(
            select(MonthlyPeriod)
            .where(MonthlyPeriod.fiscal_year_id == fiscal_year_id)
            .order_by(MonthlyPeriod.start_date)
            .with_for_update()
        ))
