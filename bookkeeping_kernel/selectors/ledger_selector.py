"""
Module: bookkeeping_kernel.selectors.ledger_selector
Responsibility: Fetch posted journal lines for ledger aggregation and
    reporting.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - By default only lines of APPROVED entries are returned.  VOIDED and
      PENDING entries never reach the aggregator through this selector.
    - Date filters use inclusive calendar dates.
    - Period filters follow the entry's assigned monthly period, not its
      date.  An entry lands in the opening balance of every period that
      starts after the period it was assigned to, whatever its date.
    - Line amounts come back rounded to the configured money precision.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookkeeping_kernel.db.types import MONEY_DECIMAL_PLACES, round_money
from bookkeeping_kernel.domain.dtos import EntryStatus, LedgerLine
from bookkeeping_kernel.models.fiscal_period import MonthlyPeriod
from bookkeeping_kernel.models.journal import JournalEntry, JournalLine
from bookkeeping_kernel.selectors.base import BaseSelector


class LedgerSelector(BaseSelector):
    """
    Line-level queries for the ledger.

    Guarantees:
        - Returned lines are ordered by entry date, entry sequence, line
          sequence.
    """

    def __init__(self, session: Session, decimal_places: int = MONEY_DECIMAL_PLACES):
        super().__init__(session)
        self.decimal_places = decimal_places

    def _base_query(
        self,
        *,
        approved_only: bool = True,
        exclude_voided: bool = True,
        exclude_closing: bool = False,
    ):
        stmt = (
            select(JournalLine, JournalEntry)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .order_by(JournalEntry.entry_date, JournalEntry.entry_seq, JournalLine.line_seq)
        )
        if approved_only:
            stmt = stmt.where(JournalEntry.status == EntryStatus.APPROVED.value)
        elif exclude_voided:
            stmt = stmt.where(JournalEntry.status != EntryStatus.VOIDED.value)
        if exclude_closing:
            stmt = stmt.where(JournalEntry.is_closing_entry.is_(False))
        return stmt

    def _to_lines(self, stmt) -> list[LedgerLine]:
        return [
            LedgerLine(
                entry_id=entry.id,
                account_id=line.account_id,
                entry_date=entry.entry_date,
                is_debit=line.is_debit,
                amount=round_money(line.amount, self.decimal_places),
                entry_number=entry.entry_number,
                description=line.description or entry.description,
            )
            for line, entry in self.session.execute(stmt)
        ]

    def fetch_lines_for_period(
        self,
        monthly_period_id: UUID,
        *,
        approved_only: bool = True,
        exclude_voided: bool = True,
        exclude_closing: bool = False,
    ) -> list[LedgerLine]:
        """Lines of entries assigned to one monthly period."""
        stmt = self._base_query(
            approved_only=approved_only,
            exclude_voided=exclude_voided,
            exclude_closing=exclude_closing,
        ).where(JournalEntry.monthly_period_id == monthly_period_id)
        return self._to_lines(stmt)

    def fetch_lines_for_fiscal_year(
        self,
        fiscal_year_id: UUID,
        *,
        exclude_closing: bool = False,
    ) -> list[LedgerLine]:
        """Approved lines of entries assigned to any month of one fiscal year."""
        stmt = self._base_query(exclude_closing=exclude_closing).where(
            JournalEntry.fiscal_year_id == fiscal_year_id
        )
        return self._to_lines(stmt)

    def fetch_lines_before_period(self, period_start: date) -> list[LedgerLine]:
        """
        Approved lines of entries assigned to a monthly period that starts
        before ``period_start``.

        This is the opening side of a period ledger.  An entry dated after
        its own period's end (or before its start) still counts exactly
        once: in the movements of its period and in the opening balance of
        every later one.
        """
        stmt = (
            self._base_query()
            .join(MonthlyPeriod, JournalEntry.monthly_period_id == MonthlyPeriod.id)
            .where(MonthlyPeriod.start_date < period_start)
        )
        return self._to_lines(stmt)

    def fetch_lines_before_date(
        self,
        before: date,
        account_id: UUID | None = None,
    ) -> list[LedgerLine]:
        """Approved lines dated strictly before ``before``."""
        stmt = self._base_query().where(JournalEntry.entry_date < before)
        if account_id is not None:
            stmt = stmt.where(JournalLine.account_id == account_id)
        return self._to_lines(stmt)

    def fetch_lines_between(
        self,
        start: date,
        end: date,
        account_id: UUID | None = None,
    ) -> list[LedgerLine]:
        """Approved lines dated within ``[start, end]``."""
        stmt = self._base_query().where(
            JournalEntry.entry_date >= start,
            JournalEntry.entry_date <= end,
        )
        if account_id is not None:
            stmt = stmt.where(JournalLine.account_id == account_id)
        return self._to_lines(stmt)
