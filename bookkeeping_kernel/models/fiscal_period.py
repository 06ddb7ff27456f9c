"""
Module: bookkeeping_kernel.models.fiscal_period
Responsibility: ORM persistence for accounting periods: fiscal years and the
    calendar months inside them.
Architecture position: Kernel > Models.  May import from db/ only.
Invariants enforced:
    - Fiscal years do not overlap (PeriodService at creation time).
    - Monthly periods belong to exactly one fiscal year and are unique per
      (fiscal_year_id, year, month).
    - Monthly period start/end align to calendar month boundaries when
      generated by PeriodService.
Failure modes:
    - IntegrityError on a duplicate month within a fiscal year.
Audit relevance:
    is_closed is authoritative at write time.  Closing records who closed the
    period and when; reopening clears both and is written to the activity log.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookkeeping_kernel.db.base import TrackedBase, UUIDString


class FiscalYear(TrackedBase):
    """
    Accounting period spanning a fiscal year.

    Contract:
        Closing a fiscal year closes all of its monthly periods.  Reopening it
        reopens them.
    """

    __tablename__ = "fiscal_years"

    __table_args__ = (
        UniqueConstraint("name", name="uq_fiscal_year_name"),
        Index("idx_fiscal_year_dates", "start_date", "end_date"),
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    is_closed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    closed_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    monthly_periods: Mapped[list["MonthlyPeriod"]] = relationship(
        back_populates="fiscal_year",
        cascade="all, delete-orphan",
        order_by="MonthlyPeriod.start_date",
    )

    def __repr__(self) -> str:
        return f"<FiscalYear {self.name}: {self.start_date} to {self.end_date}>"


class MonthlyPeriod(TrackedBase):
    """
    One calendar month of a fiscal year; the period entries are posted into.

    Contract:
        A monthly period cannot be reopened while its fiscal year is closed.
    """

    __tablename__ = "monthly_periods"

    __table_args__ = (
        UniqueConstraint("fiscal_year_id", "year", "month", name="uq_monthly_period_month"),
        Index("idx_monthly_period_dates", "start_date", "end_date"),
    )

    fiscal_year_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_years.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    month: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    is_closed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    closed_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    fiscal_year: Mapped[FiscalYear] = relationship(
        back_populates="monthly_periods",
    )

    def __repr__(self) -> str:
        return f"<MonthlyPeriod {self.name}>"
