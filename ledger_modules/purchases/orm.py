"""
Purchase ORM Models (``ledger_modules.purchases.orm``).

Responsibility
--------------
SQLAlchemy persistence for purchases and their items.

Architecture position
---------------------
**Modules layer** -- persistence.  MUST NOT be imported by
``ledger_kernel``.

Invariants enforced
-------------------
* purchase_number is unique per company code.
* Items are owned by their purchase (cascade delete).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import ZERO, StrictEnum
from ledger_modules.purchases.models import PurchaseInfo, PurchaseItemInfo, PurchaseStatus


class Purchase(TrackedBase):
    """Vendor purchase header with totals and payment progress."""

    __tablename__ = "purchases"

    __table_args__ = (
        UniqueConstraint("company_code_id", "purchase_number", name="uq_purchase_number_company"),
        Index("idx_purchase_vendor", "vendor_id"),
    )

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("company_codes.id", ondelete="CASCADE"),
        nullable=False,
    )
    purchase_number: Mapped[str] = mapped_column(String(30), nullable=False)
    vendor_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("business_partners.id"), nullable=False
    )
    vendor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[PurchaseStatus] = mapped_column(StrictEnum(PurchaseStatus), nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)

    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    journal_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("journal_entries.id", ondelete="SET NULL"), nullable=True
    )
    open_item_line_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("journal_lines.id", ondelete="SET NULL"), nullable=True
    )

    items: Mapped[list["PurchaseItem"]] = relationship(
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseItem.line_number",
        lazy="selectin",
    )

    def to_dto(self) -> PurchaseInfo:
        return PurchaseInfo(
            id=self.id,
            purchase_number=self.purchase_number,
            vendor_id=self.vendor_id,
            vendor_name=self.vendor_name,
            purchase_date=self.purchase_date,
            status=self.status,
            subtotal=self.subtotal,
            discount_amount=self.discount_amount,
            tax_amount=self.tax_amount,
            total_amount=self.total_amount,
            paid_amount=self.paid_amount,
            journal_entry_id=self.journal_entry_id,
            items=tuple(item.to_dto() for item in self.items),
            due_date=self.due_date,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<Purchase {self.purchase_number}: {self.total_amount}>"


class PurchaseItem(TrackedBase):
    __tablename__ = "purchase_items"

    __table_args__ = (
        UniqueConstraint("purchase_id", "line_number", name="uq_purchase_item_line"),
    )

    purchase_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    inventory_item_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("inventory_items.id"), nullable=True
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_price: Mapped[Decimal] = mapped_column(nullable=False)

    purchase: Mapped[Purchase] = relationship(back_populates="items")

    def to_dto(self) -> PurchaseItemInfo:
        return PurchaseItemInfo(
            id=self.id,
            line_number=self.line_number,
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            tax_rate=self.tax_rate,
            discount_percent=self.discount_percent,
            subtotal=self.subtotal,
            discount_amount=self.discount_amount,
            tax_amount=self.tax_amount,
            total_price=self.total_price,
            inventory_item_id=self.inventory_item_id,
        )
