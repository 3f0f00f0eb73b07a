"""
Module: ledger_kernel.models.tenant
Responsibility: ORM persistence for the ownership scopes of the ledger --
    the tenant (owning user of a local ledger), its company codes, and its
    named charts of accounts.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Deleting a tenant cascades (ON DELETE CASCADE) to its company codes,
      charts, accounts, journal entries, partners and documents.
    - A chart of accounts cannot be deleted while an account references it
      (accounts.chart_id has no ON DELETE action, so SQLite rejects the
      delete at statement end unless the accounts go in the same statement).
    - Company code is unique per tenant (uq_company_code_tenant).

Failure modes:
    - IntegrityError on duplicate (tenant_id, code).
    - IntegrityError when deleting a referenced chart of accounts.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString


class Tenant(TrackedBase):
    """Owning user of a local ledger."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Tenant {self.name}>"


class ChartOfAccounts(TrackedBase):
    """Named chart that groups a tenant's accounts."""

    __tablename__ = "charts_of_accounts"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_chart_code_tenant"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<ChartOfAccounts {self.code}>"


class CompanyCode(TrackedBase):
    """
    Legal/bookkeeping unit inside a tenant.

    Accounts and journal entries are scoped to a company code; the base
    currency is the currency balances are kept in.
    """

    __tablename__ = "company_codes"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_company_code_tenant"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    base_currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
    )

    # Chart the company code posts against
    chart_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("charts_of_accounts.id"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CompanyCode {self.code} ({self.base_currency})>"


