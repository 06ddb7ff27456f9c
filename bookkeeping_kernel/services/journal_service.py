"""
JournalService -- journal entry lifecycle.

Responsibility:
    Creates, edits, approves, voids and deletes journal entries.  Every
    write runs the period gate and the balance validator first, and every
    status change goes through the journal entry workflow.

Architecture position:
    Kernel > Services -- imperative shell.
    Delegates balance rules to ``domain.balance``, date rules to
    ``domain.period_gate`` and legal transitions to ``domain.workflow``.

Invariants enforced:
    - Only PENDING entries are edited, re-classified or deleted.
    - An entry is approved only while balanced and while its period accepts
      postings; approval freezes ``total_debit`` and ``total_credit``.
    - VOIDED is terminal and requires a reason.
    - Entry and period rows are locked (SELECT ... FOR UPDATE) before any
      transition, so a close and an approval cannot interleave.

Failure modes:
    - EntryNotFoundError, PeriodNotFoundError.
    - ClosedPeriodError: target period closed or inactive.
    - FuturePeriodError: entry date after today, or period not started.
    - EntryValidationError: balance or structural violations.
    - InvalidEntryTransitionError, VoidReasonRequiredError,
      AuthorizationError.

Audit relevance:
    Each transition writes an ActivityLog row and a structured log event
    in the same transaction as the state change.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookkeeping_config.schema import Settings
from bookkeeping_kernel.db.types import ZERO
from bookkeeping_kernel.domain.authorization import Permission
from bookkeeping_kernel.domain.balance import BalanceResult, resolve_line, validate_balance
from bookkeeping_kernel.domain.clock import Clock
from bookkeeping_kernel.domain.depreciation import DepreciationMethod, depreciation_for_months
from bookkeeping_kernel.domain.dtos import (
    AdjustmentType,
    EntryStatus,
    JournalEntryInfo,
    LineInput,
    PeriodInfo,
)
from bookkeeping_kernel.domain.period_gate import (
    GateOutcome,
    PeriodGateResult,
    as_calendar_date,
    validate_date_in_period,
)
from bookkeeping_kernel.domain.workflow import JOURNAL_ENTRY_WORKFLOW, EntryAction
from bookkeeping_kernel.exceptions import (
    ClosedPeriodError,
    EntryNotFoundError,
    EntryValidationError,
    FuturePeriodError,
    InvalidEntryTransitionError,
    PeriodNotFoundError,
    VoidReasonRequiredError,
)
from bookkeeping_kernel.logging_config import LogContext, get_logger
from bookkeeping_kernel.models.activity_log import ActivityAction
from bookkeeping_kernel.models.fiscal_period import MonthlyPeriod
from bookkeeping_kernel.models.journal import JournalEntry, JournalLine
from bookkeeping_kernel.selectors.account_selector import AccountSelector
from bookkeeping_kernel.selectors.journal_selector import JournalSelector
from bookkeeping_kernel.services.activity_recorder import ActivityRecorder
from bookkeeping_kernel.services.base import BaseService

logger = get_logger("services.journal")

_ACTION_PERMISSIONS: dict[EntryAction, Permission] = {
    t.action: t.permission for t in JOURNAL_ENTRY_WORKFLOW.transitions
}


@dataclass(frozen=True)
class EntryCheck:
    """Result of a dry-run validation: balance rules plus the period gate."""

    balance: BalanceResult
    period: PeriodGateResult | None

    @property
    def valid(self) -> bool:
        return self.balance.valid and self.period is not None and self.period.valid

    @property
    def warnings(self) -> tuple[str, ...]:
        if self.period is not None and self.period.is_warning:
            return (self.period.message,)
        return ()


class JournalService(BaseService):
    """
    Journal entry write operations.

    Contract:
        Every method takes the acting user's id and role, checks the role
        before touching state, flushes, and never commits.

    Guarantees:
        - A stored entry always passed ``validate_balance`` with the
          configured tolerance at its last write.
        - ``entry_number`` is the previous highest sequence plus one.

    Non-goals:
        - Does NOT read ledgers or balances (see LedgerService).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ):
        super().__init__(session, clock, settings)
        self._accounts = AccountSelector(session)
        self._journal = JournalSelector(session)
        self._activity = ActivityRecorder(session, self._clock)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_entry(
        self,
        entry_date: date | str,
        lines: Sequence[LineInput],
        *,
        monthly_period_id: UUID | None = None,
        is_adjustment: bool = False,
        adjustment_type: AdjustmentType | str | None = None,
        adjusted_entry_id: UUID | None = None,
    ) -> EntryCheck:
        """
        Check an entry without persisting it.

        ``period`` is None when no monthly period covers ``entry_date``.
        """
        entry_date = as_calendar_date(entry_date)
        balance = self._check_balance(
            lines,
            is_adjustment=is_adjustment,
            adjustment_type=adjustment_type,
            adjusted_entry_id=adjusted_entry_id,
        )
        period = self._find_period(entry_date, monthly_period_id)
        gate = None
        if period is not None:
            gate = validate_date_in_period(
                entry_date, PeriodInfo.from_monthly_model(period), self._clock.today()
            )
        return EntryCheck(balance=balance, period=gate)

    def _check_balance(
        self,
        lines: Sequence,
        *,
        is_adjustment: bool = False,
        adjustment_type: AdjustmentType | str | None = None,
        adjusted_entry_id: UUID | None = None,
    ) -> BalanceResult:
        account_ids = {
            line.account_id for line in lines if getattr(line, "account_id", None)
        }
        return validate_balance(
            lines,
            accounts=self._accounts.accounts_by_id(account_ids),
            is_adjustment=is_adjustment,
            adjustment_type=adjustment_type,
            adjusted_entry_id=adjusted_entry_id,
            tolerance=self._settings.balance.tolerance,
            decimal_places=self._settings.balance.decimal_places,
        )

    def _require_balanced(self, lines: Sequence, entry_id: UUID | None = None, **kwargs) -> BalanceResult:
        result = self._check_balance(lines, **kwargs)
        if not result.valid:
            logger.warning(
                "entry_validation_failed",
                extra={
                    "entry_id": str(entry_id) if entry_id else None,
                    "violations": [v.code for v in result.violations],
                    "total_debit": str(result.totals.debit),
                    "total_credit": str(result.totals.credit),
                },
            )
            raise EntryValidationError(result)
        return result

    def _enforce_gate(self, entry_date: date, period: MonthlyPeriod) -> PeriodGateResult:
        result = validate_date_in_period(
            entry_date, PeriodInfo.from_monthly_model(period), self._clock.today()
        )
        if result.outcome == GateOutcome.REJECTED_CLOSED_PERIOD:
            raise ClosedPeriodError(period.name, entry_date.isoformat())
        if not result.valid:
            raise FuturePeriodError(period.name, entry_date.isoformat(), result.message)
        if result.is_warning:
            logger.info(
                "period_gate_advisory",
                extra={
                    "period_id": str(period.id),
                    "outcome": result.outcome.value,
                    "entry_date": entry_date.isoformat(),
                    "advisory": result.message,
                },
            )
        return result

    def _require_open(self, period: MonthlyPeriod) -> None:
        if not PeriodInfo.from_monthly_model(period).accepts_postings:
            raise ClosedPeriodError(period.name)

    # ------------------------------------------------------------------
    # Create / edit
    # ------------------------------------------------------------------

    def create_entry(
        self,
        entry_date: date | str,
        description: str,
        lines: Sequence[LineInput],
        actor_id: UUID,
        role: str,
        *,
        monthly_period_id: UUID | None = None,
        is_adjustment: bool = False,
        adjustment_type: AdjustmentType | str | None = None,
        adjusted_entry_id: UUID | None = None,
        notes: str | None = None,
        is_closing_entry: bool = False,
    ) -> JournalEntryInfo:
        """
        Validate and store a new PENDING entry.

        The monthly period is ``monthly_period_id`` when given, otherwise
        the period covering ``entry_date``.

        Raises:
            PeriodNotFoundError: No period given and none covers the date.
            ClosedPeriodError, FuturePeriodError: Period gate rejection.
            EntryValidationError: Lines fail the balance validator.
        """
        self._authorize(role, Permission.CREATE_ENTRIES, actor_id)
        entry_date = as_calendar_date(entry_date)

        period = self._find_period(entry_date, monthly_period_id, lock=True)
        if period is None:
            raise PeriodNotFoundError(
                str(monthly_period_id) if monthly_period_id else entry_date.isoformat()
            )
        self._enforce_gate(entry_date, period)

        if adjusted_entry_id is not None and self._journal.get_entry(adjusted_entry_id) is None:
            raise EntryNotFoundError(str(adjusted_entry_id))
        result = self._require_balanced(
            lines,
            is_adjustment=is_adjustment,
            adjustment_type=adjustment_type,
            adjusted_entry_id=adjusted_entry_id,
        )

        seq = self._journal.last_entry_seq() + 1
        entry = JournalEntry(
            entry_seq=seq,
            entry_number=str(seq),
            entry_date=entry_date,
            description=description,
            fiscal_year_id=period.fiscal_year_id,
            monthly_period_id=period.id,
            status=EntryStatus.PENDING.value,
            is_approved=False,
            is_adjustment=is_adjustment,
            adjustment_type=AdjustmentType(adjustment_type).value if adjustment_type else None,
            is_closing_entry=is_closing_entry,
            adjusted_entry_id=adjusted_entry_id,
            total_debit=result.totals.debit,
            total_credit=result.totals.credit,
            notes=notes,
            created_by_id=actor_id,
        )
        entry.lines = self._build_lines(lines, actor_id)
        self.session.add(entry)
        self.session.flush()

        self._activity.record(
            "JournalEntry", entry.id, ActivityAction.ENTRY_CREATED, actor_id,
            {"entry_number": entry.entry_number, "line_count": len(entry.lines)},
        )
        with LogContext.bind(entry_id=str(entry.id), actor_id=str(actor_id)):
            logger.info(
                "entry_created",
                extra={
                    "entry_number": entry.entry_number,
                    "entry_date": entry_date.isoformat(),
                    "period_id": str(period.id),
                    "line_count": len(entry.lines),
                    "total_debit": str(result.totals.debit),
                    "total_credit": str(result.totals.credit),
                    "is_adjustment": is_adjustment,
                },
            )
        return JournalEntryInfo.from_model(entry)

    def persist_entry(self, *args, **kwargs) -> UUID:
        """``create_entry`` returning only the new entry's id."""
        return self.create_entry(*args, **kwargs).id

    def create_adjustment_entry(
        self,
        entry_date: date | str,
        description: str,
        lines: Sequence[LineInput],
        adjustment_type: AdjustmentType | str,
        actor_id: UUID,
        role: str,
        *,
        adjusted_entry_id: UUID | None = None,
        monthly_period_id: UUID | None = None,
        notes: str | None = None,
    ) -> JournalEntryInfo:
        return self.create_entry(
            entry_date,
            description,
            lines,
            actor_id,
            role,
            monthly_period_id=monthly_period_id,
            is_adjustment=True,
            adjustment_type=adjustment_type,
            adjusted_entry_id=adjusted_entry_id,
            notes=notes,
        )

    def create_depreciation_entry(
        self,
        entry_date: date | str,
        expense_account_id: UUID,
        accumulated_account_id: UUID,
        cost: Decimal,
        residual_value: Decimal,
        useful_life_years: int,
        actor_id: UUID,
        role: str,
        *,
        months: int = 1,
        method: DepreciationMethod | str = DepreciationMethod.STRAIGHT_LINE,
        accumulated: Decimal = ZERO,
        description: str | None = None,
    ) -> JournalEntryInfo:
        """
        Post a depreciation adjustment: debit expense, credit accumulated
        depreciation.

        A fully depreciated asset yields a zero amount, which the balance
        validator rejects.
        """
        amount = depreciation_for_months(
            cost,
            residual_value,
            useful_life_years,
            months=months,
            method=method,
            accumulated=accumulated,
        )
        logger.info(
            "depreciation_computed",
            extra={
                "amount": str(amount),
                "method": DepreciationMethod(method).value,
                "months": months,
            },
        )
        return self.create_adjustment_entry(
            entry_date,
            description or "Depreciation",
            [
                LineInput.debit_line(expense_account_id, amount),
                LineInput.credit_line(accumulated_account_id, amount),
            ],
            AdjustmentType.DEPRECIATION,
            actor_id,
            role,
        )

    def update_entry(
        self,
        entry_id: UUID,
        actor_id: UUID,
        role: str,
        *,
        entry_date: date | str | None = None,
        description: str | None = None,
        lines: Sequence[LineInput] | None = None,
        notes: str | None = None,
    ) -> JournalEntryInfo:
        """
        Edit a PENDING entry.  ``lines`` replaces every existing line.

        Moving the date re-resolves the monthly period, and the gate is
        re-run against it.
        """
        self._authorize(role, _ACTION_PERMISSIONS[EntryAction.EDIT], actor_id)
        entry = self._lock_entry(entry_id)
        self._require_transition(entry, EntryAction.EDIT)

        new_date = as_calendar_date(entry_date) if entry_date is not None else entry.entry_date
        if new_date != entry.entry_date:
            period = self._find_period(new_date, None, lock=True)
            if period is None:
                raise PeriodNotFoundError(new_date.isoformat())
        else:
            period = self._lock_period(entry.monthly_period_id)
        self._enforce_gate(new_date, period)

        new_lines = lines if lines is not None else entry.lines
        result = self._require_balanced(
            new_lines,
            entry_id=entry.id,
            is_adjustment=entry.is_adjustment,
            adjustment_type=entry.adjustment_type,
            adjusted_entry_id=entry.adjusted_entry_id,
        )

        changed = []
        if new_date != entry.entry_date:
            entry.entry_date = new_date
            entry.monthly_period_id = period.id
            entry.fiscal_year_id = period.fiscal_year_id
            changed.append("entry_date")
        if description is not None and description != entry.description:
            entry.description = description
            changed.append("description")
        if notes is not None and notes != entry.notes:
            entry.notes = notes
            changed.append("notes")
        if lines is not None:
            entry.lines.clear()
            self.session.flush()
            entry.lines.extend(self._build_lines(lines, actor_id))
            changed.append("lines")
        entry.total_debit = result.totals.debit
        entry.total_credit = result.totals.credit
        entry.updated_by_id = actor_id
        self.session.flush()

        self._activity.record(
            "JournalEntry", entry.id, ActivityAction.ENTRY_UPDATED, actor_id,
            {"changed": changed},
        )
        with LogContext.bind(entry_id=str(entry.id), actor_id=str(actor_id)):
            logger.info(
                "entry_updated",
                extra={"entry_number": entry.entry_number, "changed": changed},
            )
        return JournalEntryInfo.from_model(entry)

    def mark_as_adjustment(
        self,
        entry_id: UUID,
        adjustment_type: AdjustmentType | str,
        actor_id: UUID,
        role: str,
        *,
        adjusted_entry_id: UUID | None = None,
    ) -> JournalEntryInfo:
        """Re-classify a PENDING entry as an adjustment."""
        self._authorize(role, _ACTION_PERMISSIONS[EntryAction.MARK_ADJUSTMENT], actor_id)
        entry = self._lock_entry(entry_id)
        self._require_transition(entry, EntryAction.MARK_ADJUSTMENT)
        self._require_open(self._lock_period(entry.monthly_period_id))

        if adjusted_entry_id is not None and self._journal.get_entry(adjusted_entry_id) is None:
            raise EntryNotFoundError(str(adjusted_entry_id))
        self._require_balanced(
            entry.lines,
            entry_id=entry.id,
            is_adjustment=True,
            adjustment_type=adjustment_type,
            adjusted_entry_id=adjusted_entry_id,
        )

        entry.is_adjustment = True
        entry.adjustment_type = AdjustmentType(adjustment_type).value
        entry.adjusted_entry_id = adjusted_entry_id
        entry.updated_by_id = actor_id
        self.session.flush()

        self._activity.record(
            "JournalEntry", entry.id, ActivityAction.ENTRY_MARKED_ADJUSTMENT, actor_id,
            {"adjustment_type": entry.adjustment_type},
        )
        logger.info(
            "entry_marked_adjustment",
            extra={
                "entry_id": str(entry.id),
                "adjustment_type": entry.adjustment_type,
            },
        )
        return JournalEntryInfo.from_model(entry)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def approve_entry(self, entry_id: UUID, actor_id: UUID, role: str) -> JournalEntryInfo:
        """
        PENDING -> APPROVED.

        Re-validates the stored lines and re-runs the period gate with the
        current date, then freezes the totals.
        """
        self._authorize(role, _ACTION_PERMISSIONS[EntryAction.APPROVE], actor_id)
        entry = self._lock_entry(entry_id)
        self._require_transition(entry, EntryAction.APPROVE)
        period = self._lock_period(entry.monthly_period_id)
        self._enforce_gate(entry.entry_date, period)

        result = self._require_balanced(
            entry.lines,
            entry_id=entry.id,
            is_adjustment=entry.is_adjustment,
            adjustment_type=entry.adjustment_type,
            adjusted_entry_id=entry.adjusted_entry_id,
        )

        entry.status = EntryStatus.APPROVED.value
        entry.is_approved = True
        entry.total_debit = result.totals.debit
        entry.total_credit = result.totals.credit
        entry.approved_by_id = actor_id
        entry.approved_at = self._clock.now()
        entry.updated_by_id = actor_id
        self.session.flush()

        self._activity.record(
            "JournalEntry", entry.id, ActivityAction.ENTRY_APPROVED, actor_id,
            {"total_debit": str(result.totals.debit), "total_credit": str(result.totals.credit)},
        )
        with LogContext.bind(entry_id=str(entry.id), actor_id=str(actor_id)):
            logger.info(
                "entry_approved",
                extra={
                    "entry_number": entry.entry_number,
                    "period_id": str(period.id),
                    "total_debit": str(result.totals.debit),
                    "total_credit": str(result.totals.credit),
                },
            )
        return JournalEntryInfo.from_model(entry)

    def void_entry(
        self,
        entry_id: UUID,
        actor_id: UUID,
        role: str,
        reason: str | None,
    ) -> JournalEntryInfo:
        """
        APPROVED -> VOIDED.

        Lines and approval columns are kept; the ledger drops the entry by
        status.  ``VOIDED: <reason>`` is appended to the notes.
        """
        self._authorize(role, _ACTION_PERMISSIONS[EntryAction.VOID], actor_id)
        if not reason or not reason.strip():
            raise VoidReasonRequiredError(str(entry_id))
        entry = self._lock_entry(entry_id)
        self._require_transition(entry, EntryAction.VOID)
        self._require_open(self._lock_period(entry.monthly_period_id))

        reason = reason.strip()
        void_note = f"VOIDED: {reason}"
        entry.notes = f"{entry.notes}\n{void_note}" if entry.notes else void_note
        entry.status = EntryStatus.VOIDED.value
        entry.voided_by_id = actor_id
        entry.voided_at = self._clock.now()
        entry.void_reason = reason
        entry.updated_by_id = actor_id
        self.session.flush()

        self._activity.record(
            "JournalEntry", entry.id, ActivityAction.ENTRY_VOIDED, actor_id,
            {"reason": reason},
        )
        with LogContext.bind(entry_id=str(entry.id), actor_id=str(actor_id)):
            logger.info(
                "entry_voided",
                extra={"entry_number": entry.entry_number, "reason": reason},
            )
        return JournalEntryInfo.from_model(entry)

    def update_entry_status(
        self,
        entry_id: UUID,
        status: EntryStatus | str,
        actor_id: UUID,
        role: str,
        reason: str | None = None,
    ) -> JournalEntryInfo:
        """Move an entry to ``status`` through the matching transition."""
        status = EntryStatus(status)
        if status == EntryStatus.APPROVED:
            return self.approve_entry(entry_id, actor_id, role)
        if status == EntryStatus.VOIDED:
            return self.void_entry(entry_id, actor_id, role, reason)
        entry = self._journal.get_entry(entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        raise InvalidEntryTransitionError(str(entry_id), entry.status.value, status.value)

    def delete_entry(self, entry_id: UUID, actor_id: UUID, role: str) -> None:
        """Remove a PENDING entry and its lines."""
        self._authorize(role, _ACTION_PERMISSIONS[EntryAction.DELETE], actor_id)
        entry = self._lock_entry(entry_id)
        self._require_transition(entry, EntryAction.DELETE)
        self._require_open(self._lock_period(entry.monthly_period_id))

        entry_number = entry.entry_number
        self._activity.record(
            "JournalEntry", entry.id, ActivityAction.ENTRY_DELETED, actor_id,
            {"entry_number": entry_number},
        )
        self.session.delete(entry)
        self.session.flush()
        logger.info(
            "entry_deleted",
            extra={"entry_id": str(entry_id), "entry_number": entry_number},
        )

    def _require_transition(self, entry: JournalEntry, action: EntryAction) -> None:
        status = EntryStatus(entry.status)
        if JOURNAL_ENTRY_WORKFLOW.find(status, action) is None:
            logger.warning(
                "entry_transition_rejected",
                extra={
                    "entry_id": str(entry.id),
                    "status": status.value,
                    "action": action.value,
                },
            )
            raise InvalidEntryTransitionError(str(entry.id), status.value, action.value)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_lines(self, lines: Sequence, actor_id: UUID) -> list[JournalLine]:
        built = []
        for index, line in enumerate(lines):
            is_debit, amount, _ = resolve_line(line, index)
            built.append(JournalLine(
                account_id=line.account_id,
                is_debit=is_debit,
                amount=amount,
                description=getattr(line, "description", None),
                line_seq=index + 1,
                created_by_id=actor_id,
            ))
        return built

    def _find_period(
        self,
        entry_date: date,
        monthly_period_id: UUID | None,
        *,
        lock: bool = False,
    ) -> MonthlyPeriod | None:
        if monthly_period_id is not None:
            stmt = select(MonthlyPeriod).where(MonthlyPeriod.id == monthly_period_id)
        else:
            stmt = (
                select(MonthlyPeriod)
                .where(
                    MonthlyPeriod.year == entry_date.year,
                    MonthlyPeriod.month == entry_date.month,
                )
                .order_by(MonthlyPeriod.start_date)
            )
        if lock:
            stmt = stmt.with_for_update()
        return self.session.scalars(stmt).first()

    def _lock_period(self, period_id: UUID) -> MonthlyPeriod:
        period = self.session.scalars(
            select(MonthlyPeriod).where(MonthlyPeriod.id == period_id).with_for_update()
        ).first()
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    def _lock_entry(self, entry_id: UUID) -> JournalEntry:
        entry = self.session.scalars(
            select(JournalEntry).where(JournalEntry.id == entry_id).with_for_update()
        ).first()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry
