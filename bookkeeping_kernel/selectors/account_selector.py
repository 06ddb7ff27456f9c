"""
AccountSelector -- read-only access to the chart of accounts.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select

from bookkeeping_kernel.domain.dtos import AccountInfo
from bookkeeping_kernel.models.account import Account
from bookkeeping_kernel.models.journal import JournalLine
from bookkeeping_kernel.selectors.base import BaseSelector


class AccountSelector(BaseSelector):
    """Chart of accounts queries."""

    def fetch_accounts(self, *, active_only: bool = False) -> list[AccountInfo]:
        """All accounts ordered by code."""
        stmt = select(Account).order_by(Account.code)
        if active_only:
            stmt = stmt.where(Account.is_active.is_(True))
        return [AccountInfo.from_model(a) for a in self.session.scalars(stmt)]

    def get(self, account_id: UUID) -> AccountInfo | None:
        account = self.session.get(Account, account_id)
        return AccountInfo.from_model(account) if account else None

    def get_by_code(self, code: str) -> AccountInfo | None:
        account = self.session.scalars(
            select(Account).where(Account.code == code)
        ).first()
        return AccountInfo.from_model(account) if account else None

    def accounts_by_id(self, account_ids: set[UUID] | None = None) -> dict[UUID, AccountInfo]:
        stmt = select(Account)
        if account_ids is not None:
            if not account_ids:
                return {}
            stmt = stmt.where(Account.id.in_(account_ids))
        return {a.id: AccountInfo.from_model(a) for a in self.session.scalars(stmt)}

    def child_count(self, account_id: UUID) -> int:
        return self.session.scalar(
            select(func.count()).select_from(Account).where(Account.parent_id == account_id)
        ) or 0

    def line_count(self, account_id: UUID) -> int:
        return self.session.scalar(
            select(func.count()).select_from(JournalLine).where(JournalLine.account_id == account_id)
        ) or 0
