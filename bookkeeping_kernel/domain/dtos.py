"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the enumerations and immutable data structures shared by the
    validators, the ledger aggregator and the service layer: account and
    period snapshots, line inputs, ledger lines and journal entry records.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of database access.  from_model() class methods exist as boundary
    converters but are only invoked from the service and selector layers.

Invariants enforced:
    - Domain logic accepts/returns DTOs, never ORM entities.
    - An account's nature is fixed by its type unless set explicitly
      (nature_for_type).

Failure modes:
    - ValueError from nature_for_type on an unknown account type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from bookkeeping_kernel.models.account import Account as AccountModel
    from bookkeeping_kernel.models.activity_log import ActivityLog as ActivityLogModel
    from bookkeeping_kernel.models.fiscal_period import (
        FiscalYear as FiscalYearModel,
        MonthlyPeriod as MonthlyPeriodModel,
    )
    from bookkeeping_kernel.models.journal import JournalEntry as JournalEntryModel


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    COST = "cost"
    EXPENSE = "expense"
    ORDER_ACCOUNT = "order_account"


class NormalBalance(str, Enum):
    """
    Nature of an account: the side on which it naturally increases.

    Debit-normal accounts increase with debits, credit-normal accounts with
    credits.  The ledger expresses every balance in the account's natural
    positive direction.
    """

    DEBIT = "debit"
    CREDIT = "credit"


_CREDIT_NORMAL_TYPES = frozenset({
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
})


def nature_for_type(account_type: AccountType | str) -> NormalBalance:
    """
    Default nature for an account type.

    Liabilities, equity and revenue are credit-normal; everything else
    (assets, costs, expenses, order accounts) is debit-normal.
    """
    account_type = AccountType(account_type)
    if account_type in _CREDIT_NORMAL_TYPES:
        return NormalBalance.CREDIT
    return NormalBalance.DEBIT


class EntryStatus(str, Enum):
    """
    Status of a journal entry.

    Contract:
        Lifecycle: PENDING -> APPROVED -> VOIDED.
        Only PENDING entries are mutable or deletable.
    """

    PENDING = "pending"
    APPROVED = "approved"
    VOIDED = "voided"


class AdjustmentType(str, Enum):
    """Classification of a non-routine adjustment entry."""

    DEPRECIATION = "depreciation"
    AMORTIZATION = "amortization"
    ACCRUAL = "accrual"
    DEFERRED = "deferred"
    INVENTORY = "inventory"
    CORRECTION = "correction"
    PROVISION = "provision"
    VALUATION = "valuation"
    OTHER = "other"


# =============================================================================
# Accounts
# =============================================================================


@dataclass(frozen=True)
class AccountInfo:
    """
    Pure domain representation of an account.

    Contract:
        Immutable snapshot of account state.  Used by the balance validator
        and ledger aggregator without ORM access.

    Guarantees:
        - ``is_leaf`` is True iff the account may receive postings.
    """

    id: UUID
    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    is_parent: bool = False
    is_active: bool = True
    parent_id: UUID | None = None

    @property
    def is_leaf(self) -> bool:
        return not self.is_parent

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            account_type=AccountType(model.account_type),
            normal_balance=NormalBalance(model.normal_balance),
            is_parent=model.is_parent,
            is_active=model.is_active,
            parent_id=model.parent_id,
        )


# =============================================================================
# Periods
# =============================================================================


@dataclass(frozen=True)
class PeriodInfo:
    """
    Pure domain representation of an accounting period.

    Contract:
        Describes either a monthly period (``fiscal_year_id`` set) or a fiscal
        year (``fiscal_year_id`` is None).  For a monthly period the parent
        year's closed/active flags are copied in so the period gate can
        decide without another lookup.

    Non-goals:
        - Does NOT enforce period locks (PeriodService does that).
    """

    id: UUID
    name: str
    start_date: date
    end_date: date
    is_closed: bool = False
    is_active: bool = True
    fiscal_year_id: UUID | None = None
    fiscal_year_closed: bool = False
    fiscal_year_active: bool = True
    closed_at: datetime | None = None
    closed_by_id: UUID | None = None

    @property
    def is_fiscal_year(self) -> bool:
        return self.fiscal_year_id is None

    @property
    def accepts_postings(self) -> bool:
        """Open and active, and so is the enclosing fiscal year."""
        return (
            not self.is_closed
            and self.is_active
            and not self.fiscal_year_closed
            and self.fiscal_year_active
        )

    def contains_date(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date

    @classmethod
    def from_monthly_model(cls, model: MonthlyPeriodModel) -> PeriodInfo:
        fiscal_year = model.fiscal_year
        return cls(
            id=model.id,
            name=model.name,
            start_date=model.start_date,
            end_date=model.end_date,
            is_closed=model.is_closed,
            is_active=model.is_active,
            fiscal_year_id=model.fiscal_year_id,
            fiscal_year_closed=fiscal_year.is_closed,
            fiscal_year_active=fiscal_year.is_active,
            closed_at=model.closed_at,
            closed_by_id=model.closed_by_id,
        )

    @classmethod
    def from_fiscal_year_model(cls, model: FiscalYearModel) -> PeriodInfo:
        return cls(
            id=model.id,
            name=model.name,
            start_date=model.start_date,
            end_date=model.end_date,
            is_closed=model.is_closed,
            is_active=model.is_active,
            closed_at=model.closed_at,
            closed_by_id=model.closed_by_id,
        )


# =============================================================================
# Lines and entries
# =============================================================================


@dataclass(frozen=True)
class LineInput:
    """
    A journal line as submitted by a caller.

    Either ``is_debit`` + ``amount`` or an explicit ``debit``/``credit`` pair
    (exactly one non-zero).  Values are not validated here; the balance
    validator reports every problem at once.
    """

    account_id: UUID | None
    is_debit: bool | None = None
    amount: Any = None
    debit: Any = None
    credit: Any = None
    description: str | None = None

    @classmethod
    def debit_line(cls, account_id: UUID, amount: Any, description: str | None = None) -> LineInput:
        return cls(account_id=account_id, is_debit=True, amount=amount, description=description)

    @classmethod
    def credit_line(cls, account_id: UUID, amount: Any, description: str | None = None) -> LineInput:
        return cls(account_id=account_id, is_debit=False, amount=amount, description=description)


@dataclass(frozen=True)
class LedgerLine:
    """
    A posted line as read back for ledger aggregation.

    Only lines of approved, non-voided entries are ever turned into
    LedgerLines.
    """

    entry_id: UUID
    account_id: UUID
    entry_date: date
    is_debit: bool
    amount: Decimal
    entry_number: str = ""
    description: str | None = None

    @property
    def debit(self) -> Decimal:
        return self.amount if self.is_debit else Decimal("0")

    @property
    def credit(self) -> Decimal:
        return Decimal("0") if self.is_debit else self.amount


@dataclass(frozen=True)
class JournalLineInfo:
    id: UUID
    account_id: UUID
    is_debit: bool
    amount: Decimal
    line_seq: int
    description: str | None = None


@dataclass(frozen=True)
class JournalEntryInfo:
    """
    Immutable snapshot of a journal entry and its lines.

    Guarantees:
        - ``lines`` are ordered by ``line_seq``.
        - For APPROVED and VOIDED entries ``total_debit`` and
          ``total_credit`` are the values frozen at approval.
    """

    id: UUID
    entry_number: str
    entry_date: date
    description: str
    status: EntryStatus
    fiscal_year_id: UUID
    monthly_period_id: UUID
    is_approved: bool
    is_adjustment: bool
    total_debit: Decimal
    total_credit: Decimal
    adjustment_type: AdjustmentType | None = None
    adjusted_entry_id: UUID | None = None
    notes: str | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    voided_by_id: UUID | None = None
    voided_at: datetime | None = None
    void_reason: str | None = None
    is_closing_entry: bool = False
    lines: tuple[JournalLineInfo, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> JournalEntryInfo:
        return cls(
            id=model.id,
            entry_number=model.entry_number,
            entry_date=model.entry_date,
            description=model.description,
            status=EntryStatus(model.status),
            fiscal_year_id=model.fiscal_year_id,
            monthly_period_id=model.monthly_period_id,
            is_approved=model.is_approved,
            is_adjustment=model.is_adjustment,
            total_debit=model.total_debit,
            total_credit=model.total_credit,
            adjustment_type=(
                AdjustmentType(model.adjustment_type) if model.adjustment_type else None
            ),
            adjusted_entry_id=model.adjusted_entry_id,
            notes=model.notes,
            approved_by_id=model.approved_by_id,
            approved_at=model.approved_at,
            voided_by_id=model.voided_by_id,
            voided_at=model.voided_at,
            void_reason=model.void_reason,
            is_closing_entry=model.is_closing_entry,
            lines=tuple(
                JournalLineInfo(
                    id=line.id,
                    account_id=line.account_id,
                    is_debit=line.is_debit,
                    amount=line.amount,
                    line_seq=line.line_seq,
                    description=line.description,
                )
                for line in sorted(model.lines, key=lambda l: l.line_seq)
            ),
        )


# =============================================================================
# Closing history
# =============================================================================


@dataclass(frozen=True)
class ClosingHistoryEntry:
    """One close, reopen or closing-entry event recorded for a period."""

    period_id: UUID
    action: str
    actor_id: UUID
    occurred_at: datetime
    details: dict[str, Any] | None = None

    @classmethod
    def from_model(cls, model: ActivityLogModel) -> ClosingHistoryEntry:
        return cls(
            period_id=model.entity_id,
            action=str(model.action),
            actor_id=model.actor_id,
            occurred_at=model.occurred_at,
            details=model.details,
        )
