"""Tests for AccountService: chart of accounts rules."""

from datetime import date
from uuid import uuid4

import pytest

from bookkeeping_kernel.domain.dtos import AccountType, NormalBalance
from bookkeeping_kernel.exceptions import (
    AccountInUseError,
    AccountNotFoundError,
    AccountTypeMismatchError,
    AuthorizationError,
    DuplicateAccountCodeError,
)
from bookkeeping_kernel.selectors.account_selector import AccountSelector


class TestCreateAccount:

    def test_nature_defaults_from_type(self, standard_accounts):
        assert standard_accounts["1-01"].normal_balance == NormalBalance.DEBIT
        assert standard_accounts["2-01"].normal_balance == NormalBalance.CREDIT
        assert standard_accounts["4-01"].normal_balance == NormalBalance.CREDIT
        assert standard_accounts["5-01"].normal_balance == NormalBalance.DEBIT

    def test_explicit_nature(self, standard_accounts):
        assert standard_accounts["6"].account_type == AccountType.ASSET
        assert standard_accounts["6"].normal_balance == NormalBalance.CREDIT

    def test_child_turns_leaf_into_parent(self, account_service, standard_accounts, session, test_actor_id):
        account_service.create_account(
            "1-01-001", "Petty cash", AccountType.ASSET, test_actor_id, "admin",
            parent_id=standard_accounts["1-01"].id,
        )

        assert AccountSelector(session).get(standard_accounts["1-01"].id).is_parent

    def test_duplicate_code(self, account_service, standard_accounts, test_actor_id):
        with pytest.raises(DuplicateAccountCodeError):
            account_service.create_account("1-01", "Cash again", "asset", test_actor_id, "admin")

    def test_type_must_match_parent(self, account_service, standard_accounts, test_actor_id):
        with pytest.raises(AccountTypeMismatchError) as exc_info:
            account_service.create_account(
                "1-09", "Loan", AccountType.LIABILITY, test_actor_id, "admin",
                parent_id=standard_accounts["1"].id,
            )

        assert exc_info.value.parent_type == "asset"

    def test_missing_parent(self, account_service, test_actor_id):
        with pytest.raises(AccountNotFoundError):
            account_service.create_account(
                "9-01", "Orphan", AccountType.ASSET, test_actor_id, "admin", parent_id=uuid4()
            )

    def test_leaf_with_lines_cannot_become_parent(
        self, account_service, standard_accounts, post_entry, test_actor_id
    ):
        post_entry(standard_accounts["1-01"].id, standard_accounts["3-01"].id, "10")

        with pytest.raises(AccountInUseError):
            account_service.create_account(
                "1-01-001", "Petty cash", AccountType.ASSET, test_actor_id, "admin",
                parent_id=standard_accounts["1-01"].id,
            )

    def test_viewer_cannot_create(self, account_service, test_actor_id):
        with pytest.raises(AuthorizationError):
            account_service.create_account("7", "Nope", AccountType.ASSET, test_actor_id, "viewer")

    def test_creation_is_logged(self, account_service, test_actor_id, captured_logs):
        account_service.create_account("7", "Suspense", AccountType.ASSET, test_actor_id, "admin")

        record = next(r for r in captured_logs() if r["message"] == "account_created")
        assert record["account_code"] == "7"
        assert record["normal_balance"] == "debit"


class TestDeactivateAccount:

    def test_unused_leaf(self, account_service, standard_accounts, test_actor_id):
        account = account_service.deactivate_account(
            standard_accounts["1-02"].id, test_actor_id, "admin"
        )

        assert not account.is_active

    def test_parent_with_children(self, account_service, standard_accounts, test_actor_id):
        with pytest.raises(AccountInUseError):
            account_service.deactivate_account(standard_accounts["1"].id, test_actor_id, "admin")

    def test_leaf_with_lines(self, account_service, standard_accounts, post_entry, test_actor_id):
        post_entry(standard_accounts["1-01"].id, standard_accounts["3-01"].id, "10", date(2024, 1, 2))

        with pytest.raises(AccountInUseError):
            account_service.deactivate_account(standard_accounts["1-01"].id, test_actor_id, "admin")
