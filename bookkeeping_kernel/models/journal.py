"""
Module: bookkeeping_kernel.models.journal
Responsibility: ORM persistence for journal entries and their lines.
Architecture position: Kernel > Models.  May import from db/ and the domain
    enumerations only.
Invariants enforced:
    - entry_seq (and the entry_number derived from it) is unique.
    - Line amounts are positive; the side is carried by is_debit.
    - total_debit == total_credit within tolerance once status is APPROVED
      (enforced by JournalService at approval; the totals are frozen there).
Failure modes:
    - IntegrityError on a duplicate entry_seq (two writers numbering at once).
Audit relevance:
    Approved and voided entries are never deleted.  Voiding keeps the lines
    and the approval columns; the ledger excludes voided entries by status.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookkeeping_kernel.db.base import TrackedBase, UUIDString
from bookkeeping_kernel.domain.dtos import AdjustmentType, EntryStatus

if TYPE_CHECKING:
    from bookkeeping_kernel.models.account import Account
    from bookkeeping_kernel.models.fiscal_period import FiscalYear, MonthlyPeriod


class JournalEntry(TrackedBase):
    """
    Journal entry header.

    Contract:
        Created PENDING.  Only PENDING entries may be edited or deleted.
        APPROVED entries may only be voided.  VOIDED is terminal.

    Non-goals:
        - This model does NOT enforce balance; JournalService runs the
          balance validator on every write and again at approval.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("entry_seq", name="uq_journal_entry_seq"),
        Index("idx_journal_entry_date", "entry_date"),
        Index("idx_journal_status", "status"),
        Index("idx_journal_monthly_period", "monthly_period_id"),
    )

    # Sequential number; entry_number is its display form
    entry_seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    entry_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    fiscal_year_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_years.id"),
        nullable=False,
    )

    monthly_period_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("monthly_periods.id"),
        nullable=False,
    )

    status: Mapped[EntryStatus] = mapped_column(
        String(10),
        default=EntryStatus.PENDING.value,
        nullable=False,
    )

    is_approved: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_adjustment: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Generated by PeriodService to transfer the period result to equity
    is_closing_entry: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    adjustment_type: Mapped[AdjustmentType | None] = mapped_column(
        String(20),
        nullable=True,
    )

    # Entry being corrected, for adjustment_type == correction
    adjusted_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    # Cached for display; frozen at approval
    total_debit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        default=Decimal("0"),
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        String(4000),
        nullable=True,
    )

    approved_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    voided_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    voided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    void_reason: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalLine.line_seq",
    )

    fiscal_year: Mapped["FiscalYear"] = relationship()

    monthly_period: Mapped["MonthlyPeriod"] = relationship()

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} status={self.status}>"


class JournalLine(TrackedBase):
    """
    Individual debit or credit line within a journal entry.

    Contract:
        amount > 0.  is_debit gives the side.  account_id points at a leaf
        account.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    is_debit: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    line_seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    entry: Mapped[JournalEntry] = relationship(
        back_populates="lines",
    )

    account: Mapped["Account"] = relationship(
        back_populates="journal_lines",
    )

    def __repr__(self) -> str:
        side = "Dr" if self.is_debit else "Cr"
        return f"<JournalLine {side} {self.amount}>"
