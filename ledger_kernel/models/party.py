"""
Module: ledger_kernel.models.party
Responsibility: ORM persistence for business partners -- the customers and
    vendors that sales, purchases and payments are posted against.
Architecture position: Kernel > Models.  May import from db/ and the pure
    enums of domain/ only.

Invariants enforced:
    - partner_code is unique per tenant (uq_partner_code_tenant).
    - balance is mutated only by the document posting services: for a
      customer it is the amount owed to us, for a vendor the amount we owe.
      It is never edited directly.

Failure modes:
    - IntegrityError on duplicate partner_code.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import StrictEnum


class PartnerType(str, Enum):
    """Classification of business partners.

    Contract: BOTH partners can appear on sales and on purchases.
    """

    CUSTOMER = "Customer"
    VENDOR = "Vendor"
    BOTH = "Both"

    @property
    def code_prefix(self) -> str:
        return {"Customer": "CUS", "Vendor": "VEN", "Both": "BP"}[self.value]


class BusinessPartner(TrackedBase):
    """
    Customer or vendor the tenant transacts with.

    Contract:
        reconciliation_account_id, when set, is used instead of the
        receivable/payable role account when documents for this partner are
        posted.
    """

    __tablename__ = "business_partners"

    __table_args__ = (
        UniqueConstraint("tenant_id", "partner_code", name="uq_partner_code_tenant"),
        Index("idx_partner_type", "partner_type"),
        Index("idx_partner_active", "is_active"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    partner_code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    partner_type: Mapped[PartnerType] = mapped_column(
        StrictEnum(PartnerType, length=10),
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    last_transaction_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    reconciliation_account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Contact
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tax_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    vat_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Terms
    credit_limit: Mapped[Decimal | None] = mapped_column(nullable=True)
    payment_terms_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    discount_percent: Mapped[Decimal | None] = mapped_column(nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    def __repr__(self) -> str:
        return f"<BusinessPartner {self.partner_code}: {self.name}>"

    @property
    def is_customer(self) -> bool:
        return self.partner_type in (PartnerType.CUSTOMER, PartnerType.BOTH)

    @property
    def is_vendor(self) -> bool:
        return self.partner_type in (PartnerType.VENDOR, PartnerType.BOTH)
