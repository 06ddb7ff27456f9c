"""
Module: bookkeeping_kernel.models.activity_log
Responsibility: Append-only record of every state change made through the
    services: entry lifecycle, period close/reopen, account changes.
Architecture position: Kernel > Models.  Written only by ActivityRecorder.
Invariants enforced:
    - Rows are never updated or deleted by kernel code.
Audit relevance:
    Deleting a pending entry removes it from journal_entries; its activity
    rows are the only trace left that it existed.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from bookkeeping_kernel.db.base import Base, UUIDString


class ActivityAction(str, Enum):
    """Types of recorded actions."""

    ENTRY_CREATED = "entry_created"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_APPROVED = "entry_approved"
    ENTRY_VOIDED = "entry_voided"
    ENTRY_DELETED = "entry_deleted"
    ENTRY_MARKED_ADJUSTMENT = "entry_marked_adjustment"

    PERIOD_CREATED = "period_created"
    PERIOD_CLOSED = "period_closed"
    PERIOD_REOPENED = "period_reopened"
    PERIOD_DELETED = "period_deleted"
    CLOSING_ENTRY_GENERATED = "closing_entry_generated"

    ACCOUNT_CREATED = "account_created"
    ACCOUNT_DEACTIVATED = "account_deactivated"


class ActivityLog(Base):
    """
    One recorded action.

    Contract:
        Append-only.  ``details`` holds action-specific data (void reason,
        frozen totals, cascade counts) as JSON.
    """

    __tablename__ = "activity_logs"

    __table_args__ = (
        Index("idx_activity_entity", "entity_type", "entity_id"),
        Index("idx_activity_action", "action"),
        Index("idx_activity_occurred", "occurred_at"),
    )

    # "JournalEntry", "FiscalYear", "MonthlyPeriod", "Account"
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    entity_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    action: Mapped[ActivityAction] = mapped_column(
        String(50),
        nullable=False,
    )

    actor_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    details: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ActivityLog {self.action} {self.entity_type}:{self.entity_id}>"
