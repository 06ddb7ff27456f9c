"""
Module: bookkeeping_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- the target of
    every journal line and the node set of the ledger hierarchy.
Architecture position: Kernel > Models.  May import from db/ and the
    domain enumerations only.
Invariants enforced:
    - code is unique.
    - Only accounts with is_parent = False receive journal lines (enforced by
      the balance validator and JournalService, not this model).
    - A child's account_type equals its parent's (enforced by AccountService).
Failure modes:
    - IntegrityError on a duplicate code.
Audit relevance:
    parent_id links define the ledger rollup.  Changing them re-shapes every
    summary balance, so AccountService refuses to re-parent accounts with lines.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookkeeping_kernel.db.base import TrackedBase, UUIDString
from bookkeeping_kernel.domain.dtos import AccountType, NormalBalance

if TYPE_CHECKING:
    from bookkeeping_kernel.models.journal import JournalLine


class Account(TrackedBase):
    """
    Chart of accounts entry -- a single node in the ledger hierarchy.

    Contract:
        Account.code is unique and lexically sortable ("1-01-001").  Its
        position in the hierarchy (level) is derived from parent_id links,
        never stored.

    Guarantees:
        - normal_balance is DEBIT or CREDIT, defaulted from account_type.
        - is_parent is True for summary accounts.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_parent", "parent_id"),
        Index("idx_account_active", "is_active"),
    )

    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    # Nature: side on which the account increases
    normal_balance: Mapped[NormalBalance] = mapped_column(
        String(10),
        nullable=False,
    )

    # Summary accounts aggregate children and never receive lines
    is_parent: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    journal_lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="account",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"
