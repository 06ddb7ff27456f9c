"""
JournalSelector -- read-only access to journal entries.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from bookkeeping_kernel.domain.dtos import EntryStatus, JournalEntryInfo
from bookkeeping_kernel.models.journal import JournalEntry
from bookkeeping_kernel.selectors.base import BaseSelector


class JournalSelector(BaseSelector):
    """Journal entry queries."""

    def get_entry(self, entry_id: UUID) -> JournalEntryInfo | None:
        entry = self.session.get(JournalEntry, entry_id)
        return JournalEntryInfo.from_model(entry) if entry else None

    def list_entries(
        self,
        *,
        monthly_period_id: UUID | None = None,
        fiscal_year_id: UUID | None = None,
        status: EntryStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        adjustments_only: bool = False,
        closing_only: bool = False,
    ) -> list[JournalEntryInfo]:
        """Entries ordered by date, then sequence number."""
        stmt = select(JournalEntry).order_by(JournalEntry.entry_date, JournalEntry.entry_seq)
        if monthly_period_id is not None:
            stmt = stmt.where(JournalEntry.monthly_period_id == monthly_period_id)
        if fiscal_year_id is not None:
            stmt = stmt.where(JournalEntry.fiscal_year_id == fiscal_year_id)
        if status is not None:
            stmt = stmt.where(JournalEntry.status == status.value)
        if start_date is not None:
            stmt = stmt.where(JournalEntry.entry_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(JournalEntry.entry_date <= end_date)
        if adjustments_only:
            stmt = stmt.where(JournalEntry.is_adjustment.is_(True))
        if closing_only:
            stmt = stmt.where(JournalEntry.is_closing_entry.is_(True))
        return [JournalEntryInfo.from_model(e) for e in self.session.scalars(stmt)]

    def count_entries(
        self,
        *,
        monthly_period_id: UUID | None = None,
        fiscal_year_id: UUID | None = None,
        status: EntryStatus | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(JournalEntry)
        if monthly_period_id is not None:
            stmt = stmt.where(JournalEntry.monthly_period_id == monthly_period_id)
        if fiscal_year_id is not None:
            stmt = stmt.where(JournalEntry.fiscal_year_id == fiscal_year_id)
        if status is not None:
            stmt = stmt.where(JournalEntry.status == status.value)
        return self.session.scalar(stmt) or 0

    def last_entry_seq(self) -> int:
        return self.session.scalar(select(func.max(JournalEntry.entry_seq))) or 0
