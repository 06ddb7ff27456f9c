"""
AccountService -- chart of accounts maintenance.

Responsibility:
    Creates accounts under the hierarchy rules the ledger depends on and
    deactivates accounts that are no longer used.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Account codes are unique.
    - A child account has the same type as its parent.
    - An account that already carries journal lines never becomes a parent,
      so leaf-only posting holds for every existing line.
    - Accounts with children or lines are deactivated, never deleted, and
      only when they have neither.

Failure modes:
    - DuplicateAccountCodeError, AccountNotFoundError,
      AccountTypeMismatchError, AccountInUseError, AuthorizationError.
"""

from __future__ import annotations

from uuid import UUID

from bookkeeping_kernel.domain.authorization import Permission
from bookkeeping_kernel.domain.dtos import AccountInfo, AccountType, NormalBalance, nature_for_type
from bookkeeping_kernel.exceptions import (
    AccountInUseError,
    AccountNotFoundError,
    AccountTypeMismatchError,
    DuplicateAccountCodeError,
)
from bookkeeping_kernel.logging_config import get_logger
from bookkeeping_kernel.models.account import Account
from bookkeeping_kernel.models.activity_log import ActivityAction
from bookkeeping_kernel.selectors.account_selector import AccountSelector
from bookkeeping_kernel.services.activity_recorder import ActivityRecorder
from bookkeeping_kernel.services.base import BaseService

logger = get_logger("services.account")


class AccountService(BaseService):
    """Create and retire accounts."""

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType | str,
        actor_id: UUID,
        role: str,
        *,
        parent_id: UUID | None = None,
        normal_balance: NormalBalance | str | None = None,
        is_parent: bool = False,
    ) -> AccountInfo:
        """
        Add an account to the chart.

        The nature defaults from the account type.  Attaching a child to a
        leaf turns that leaf into a summary account, which is refused when
        the leaf already has postings.
        """
        self._authorize(role, Permission.MANAGE_ACCOUNTS, actor_id)
        selector = AccountSelector(self.session)
        account_type = AccountType(account_type)

        if selector.get_by_code(code) is not None:
            raise DuplicateAccountCodeError(code)

        parent = None
        if parent_id is not None:
            parent = self.session.get(Account, parent_id)
            if parent is None:
                raise AccountNotFoundError(str(parent_id))
            if parent.account_type != account_type:
                raise AccountTypeMismatchError(code, account_type.value, parent.account_type)
            if not parent.is_parent and selector.line_count(parent.id):
                raise AccountInUseError(
                    parent.code, "it has journal lines and cannot become a summary account"
                )

        nature = NormalBalance(normal_balance) if normal_balance else nature_for_type(account_type)
        account = Account(
            code=code,
            name=name,
            account_type=account_type.value,
            normal_balance=nature.value,
            is_parent=is_parent,
            is_active=True,
            parent_id=parent_id,
            created_by_id=actor_id,
        )
        self.session.add(account)
        if parent is not None and not parent.is_parent:
            parent.is_parent = True
            parent.updated_by_id = actor_id
        self.session.flush()

        ActivityRecorder(self.session, self._clock).record(
            "Account", account.id, ActivityAction.ACCOUNT_CREATED, actor_id,
            {"code": code, "account_type": account_type.value},
        )
        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "account_code": code,
                "account_type": account_type.value,
                "normal_balance": nature.value,
            },
        )
        return AccountInfo.from_model(account)

    def deactivate_account(self, account_id: UUID, actor_id: UUID, role: str) -> AccountInfo:
        self._authorize(role, Permission.MANAGE_ACCOUNTS, actor_id)
        selector = AccountSelector(self.session)
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        if selector.child_count(account.id):
            raise AccountInUseError(account.code, "it has child accounts")
        if selector.line_count(account.id):
            raise AccountInUseError(account.code, "it has journal lines")

        account.is_active = False
        account.updated_by_id = actor_id
        self.session.flush()

        ActivityRecorder(self.session, self._clock).record(
            "Account", account.id, ActivityAction.ACCOUNT_DEACTIVATED, actor_id
        )
        logger.info(
            "account_deactivated",
            extra={"account_id": str(account.id), "account_code": account.code},
        )
        return AccountInfo.from_model(account)
