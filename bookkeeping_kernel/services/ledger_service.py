"""
LedgerService -- reads posted lines and hands them to the ledger aggregator.

Responsibility:
    Fetches the chart of accounts and the approved lines around a reporting
    window, builds the hierarchical ledger, the trial balance, the
    financial statements and per-account movement listings.

Architecture position:
    Kernel > Services -- read-only shell around ``domain.ledger`` and
    ``domain.statements``.

Invariants enforced:
    - For a monthly period or fiscal year, movements are the approved lines
      of entries assigned to it and the opening balance is every approved
      line assigned to an earlier monthly period.  Assignment decides, not
      the entry date, so no line lands in both sums and a period's opening
      balance equals the previous period's closing balance.
    - For a free date range, the entry date decides.
    - Pending and voided entries never reach the aggregator.
    - Amounts are rounded to the configured money precision on the way in.

Failure modes:
    - PeriodNotFoundError, AccountNotFoundError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from bookkeeping_kernel.db.types import ZERO
from bookkeeping_kernel.domain.dtos import AccountInfo
from bookkeeping_kernel.domain.ledger import (
    BalanceAnomaly,
    LedgerNode,
    Movement,
    TrialBalance,
    account_movements,
    build_account_tree,
    build_ledger,
    collect_anomalies,
    compute_trial_balance,
    natural_amount,
)
from bookkeeping_kernel.domain.period_gate import as_calendar_date
from bookkeeping_kernel.domain.statements import (
    BalanceSheet,
    IncomeStatement,
    balance_sheet,
    income_statement,
)
from bookkeeping_kernel.exceptions import AccountNotFoundError, PeriodNotFoundError
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.selectors.account_selector import AccountSelector
from bookkeeping_kernel.selectors.ledger_selector import LedgerSelector
from bookkeeping_kernel.selectors.period_selector import PeriodSelector
from bookkeeping_kernel.services.base import BaseService

logger = get_logger("services.ledger")


@dataclass(frozen=True)
class AccountLedger:
    """Movements of one account (or a summary account's subtree) over a window."""

    account: AccountInfo
    start_date: date
    end_date: date
    opening_balance: Decimal
    movements: tuple[Movement, ...]
    closing_balance: Decimal


class LedgerService(BaseService):
    """Ledger, trial balance, statement and account movement reports."""

    def _lines(self) -> LedgerSelector:
        return LedgerSelector(self.session, self._settings.balance.decimal_places)

    def build_period_ledger(
        self,
        period_id: UUID,
        *,
        exclude_closing: bool = False,
    ) -> list[LedgerNode]:
        """
        Ledger for a monthly period or a whole fiscal year.

        The period's own entries are the movements.  Entries assigned to
        any monthly period starting before it form the opening balance.
        ``exclude_closing`` leaves the period's closing entry out of the
        movements.
        """
        period = PeriodSelector(self.session).fetch_period(period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))

        lines = self._lines()
        accounts = AccountSelector(self.session).fetch_accounts()
        prior = lines.fetch_lines_before_period(period.start_date)
        if period.is_fiscal_year:
            current = lines.fetch_lines_for_fiscal_year(
                period.id, exclude_closing=exclude_closing
            )
        else:
            current = lines.fetch_lines_for_period(period.id, exclude_closing=exclude_closing)
        forest = build_ledger(accounts, prior, current)
        logger.info(
            "period_ledger_built",
            extra={
                "period_id": str(period.id),
                "period_name": period.name,
                "is_fiscal_year": period.is_fiscal_year,
                "prior_line_count": len(prior),
                "current_line_count": len(current),
            },
        )
        return forest

    def build_ledger_between(self, start: date, end: date) -> list[LedgerNode]:
        """Ledger over an arbitrary inclusive date range."""
        start, end = as_calendar_date(start), as_calendar_date(end)
        lines = self._lines()
        accounts = AccountSelector(self.session).fetch_accounts()
        prior = lines.fetch_lines_before_date(start)
        current = lines.fetch_lines_between(start, end)
        forest = build_ledger(accounts, prior, current)
        logger.info(
            "range_ledger_built",
            extra={
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "prior_line_count": len(prior),
                "current_line_count": len(current),
            },
        )
        return forest

    def trial_balance(self, period_id: UUID) -> TrialBalance:
        result = compute_trial_balance(
            self.build_period_ledger(period_id),
            tolerance=self._settings.balance.tolerance,
        )
        if not result.is_balanced:
            logger.warning(
                "trial_balance_out_of_balance",
                extra={
                    "period_id": str(period_id),
                    "total_debits": str(result.total_debits),
                    "total_credits": str(result.total_credits),
                    "difference": str(result.difference),
                },
            )
        return result

    def anomalies(self, period_id: UUID) -> list[BalanceAnomaly]:
        return collect_anomalies(self.build_period_ledger(period_id))

    def balance_sheet(self, period_id: UUID, *, show_zero_balances: bool = True) -> BalanceSheet:
        """Position at the end of a monthly period or fiscal year."""
        result = balance_sheet(
            self.build_period_ledger(period_id),
            tolerance=self._settings.balance.tolerance,
            show_zero_balances=show_zero_balances,
        )
        logger.info(
            "balance_sheet_built",
            extra={
                "period_id": str(period_id),
                "total_assets": str(result.assets.total),
                "total_liabilities_and_equity": str(result.total_liabilities_and_equity),
                "net_income": str(result.net_income),
                "is_balanced": result.is_balanced,
            },
        )
        return result

    def income_statement(
        self,
        period_id: UUID,
        *,
        show_zero_balances: bool = True,
    ) -> IncomeStatement:
        """
        Result of a monthly period or fiscal year.

        The closing entry is left out, otherwise every closed period would
        report a zero result.
        """
        result = income_statement(
            self.build_period_ledger(period_id, exclude_closing=True),
            show_zero_balances=show_zero_balances,
        )
        logger.info(
            "income_statement_built",
            extra={
                "period_id": str(period_id),
                "total_revenue": str(result.revenue.total),
                "total_costs": str(result.costs.total),
                "total_expenses": str(result.expenses.total),
                "net_income": str(result.net_income),
            },
        )
        return result

    def account_ledger(self, account_id: UUID, start: date, end: date) -> AccountLedger:
        """
        Movements of one account between ``start`` and ``end`` inclusive.

        For a summary account the listing covers every descendant, signed
        by the summary account's nature.
        """
        start, end = as_calendar_date(start), as_calendar_date(end)
        accounts = AccountSelector(self.session).fetch_accounts()
        account = next((a for a in accounts if a.id == account_id), None)
        if account is None:
            raise AccountNotFoundError(str(account_id))

        account_ids = self._subtree_ids(accounts, account_id)
        lines = self._lines()
        opening = ZERO
        for line in lines.fetch_lines_before_date(start):
            if line.account_id in account_ids:
                opening += natural_amount(account.normal_balance, line.debit, line.credit)
        movements = account_movements(
            account, opening, lines.fetch_lines_between(start, end), account_ids
        )
        closing = movements[-1].running_balance if movements else opening
        return AccountLedger(
            account=account,
            start_date=start,
            end_date=end,
            opening_balance=opening,
            movements=tuple(movements),
            closing_balance=closing,
        )

    @staticmethod
    def _subtree_ids(accounts: list[AccountInfo], account_id: UUID) -> set[UUID]:
        for root in build_account_tree(accounts):
            for node in root.walk():
                if node.account_id == account_id:
                    return {n.account_id for n in node.walk()}
        return {account_id}
