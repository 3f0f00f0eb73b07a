"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- the target of
    every journal line and the holder of each account's running balance.
Architecture position: Kernel > Models.  May import from db/ and the pure
    enums of domain/chart.py only.

Invariants enforced:
    - code is unique per company code (uq_account_code_company).
    - system_role is unique per company code when set
      (uq_account_role_company; NULLs do not collide).
    - balance is stored normal-side-positive and is written only by
      LedgerService as a side effect of a journal commit.
    - category and normal_balance are derived from account_type, never
      stored.

Failure modes:
    - IntegrityError on duplicate code or role (mapped to
      DuplicateAccountCodeError by AccountService).
    - IntegrityError when deleting an account referenced by journal lines.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import StrictEnum
from ledger_kernel.domain.chart import (
    AccountCategory,
    AccountType,
    NormalBalance,
    SystemRole,
    category_for,
    normal_balance_for,
)


class Account(TrackedBase):
    """
    Chart of accounts entry.

    Contract:
        Account.code starts with the prefix of its category and is unique
        within the company code.  Only name, description and is_active may
        be edited after creation; balance moves only through postings.

    Guarantees:
        - account_type is one of the 14 AccountType members (strict parse).
        - is_open_item_managed accounts get an open-item status on every
          line posted to them.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", "company_code_id", name="uq_account_code_company"),
        UniqueConstraint("company_code_id", "system_role", name="uq_account_role_company"),
        Index("idx_account_type", "account_type"),
        Index("idx_account_active", "is_active"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("company_codes.id", ondelete="CASCADE"),
        nullable=False,
    )

    # No ON DELETE action: a referenced chart cannot be deleted on its own
    chart_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("charts_of_accounts.id"),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(
        StrictEnum(AccountType, length=40),
        nullable=False,
    )

    system_role: Mapped[SystemRole | None] = mapped_column(
        StrictEnum(SystemRole),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Normal-side-positive running balance in base currency
    balance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    is_open_item_managed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def category(self) -> AccountCategory:
        return category_for(self.account_type)

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.category)
