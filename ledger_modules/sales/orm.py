"""
Sales ORM Models (``ledger_modules.sales.orm``).

Responsibility
--------------
SQLAlchemy persistence for sales and their items.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ledger_kernel.db`` and
sibling ``models.py``.  MUST NOT be imported by ``ledger_kernel``.

Invariants enforced
-------------------
* sale_number is unique per company code (uq_sale_number_company).
* Items are owned by their sale (cascade delete).
* journal_entry_id and open_item_line_id point at the INV posting and its
  receivable line; paid_amount only grows through linked payments.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import ZERO, StrictEnum
from ledger_modules.sales.models import SaleInfo, SaleItemInfo, SaleStatus


class Sale(TrackedBase):
    """Customer sale header with totals and payment progress."""

    __tablename__ = "sales"

    __table_args__ = (
        UniqueConstraint("company_code_id", "sale_number", name="uq_sale_number_company"),
        Index("idx_sale_customer", "customer_id"),
        Index("idx_sale_status", "status"),
    )

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("company_codes.id", ondelete="CASCADE"),
        nullable=False,
    )
    sale_number: Mapped[str] = mapped_column(String(30), nullable=False)
    customer_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("business_partners.id"), nullable=False
    )
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[SaleStatus] = mapped_column(StrictEnum(SaleStatus), nullable=False)

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

    items: Mapped[list["SaleItem"]] = relationship(
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.line_number",
        lazy="selectin",
    )

    def to_dto(self) -> SaleInfo:
        return SaleInfo(
            id=self.id,
            sale_number=self.sale_number,
            customer_id=self.customer_id,
            customer_name=self.customer_name,
            sale_date=self.sale_date,
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
        return f"<Sale {self.sale_number}: {self.total_amount}>"


class SaleItem(TrackedBase):
    __tablename__ = "sale_items"

    __table_args__ = (
        UniqueConstraint("sale_id", "line_number", name="uq_sale_item_line"),
    )

    sale_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False
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

    sale: Mapped[Sale] = relationship(back_populates="items")

    def to_dto(self) -> SaleItemInfo:
        return SaleItemInfo(
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
