"""
Inventory ORM Models (``ledger_modules.inventory.orm``).

Responsibility
--------------
SQLAlchemy persistence for valuation classes and stock items.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ledger_kernel.db`` and
sibling ``models.py``.  MUST NOT be imported by ``ledger_kernel``.

Invariants enforced
-------------------
* class_code and product_code are unique per company code.
* available_quantity changes only through InventoryService.adjust_stock().
* A valuation class cannot be deleted while items reference it, and its
  accounts cannot be deleted while it references them (no ON DELETE
  action).
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import ZERO


class ValuationClass(TrackedBase):
    """
    Account assignment for a group of stock items.

    Guarantees:
        - inventory_account_id is the asset account that carries stock value.
        - cogs_account_id receives the cost of items sold.
    """

    __tablename__ = "valuation_classes"

    __table_args__ = (
        UniqueConstraint("company_code_id", "class_code", name="uq_valuation_class_code"),
    )

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("company_codes.id", ondelete="CASCADE"),
        nullable=False,
    )
    class_code: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    inventory_account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("accounts.id"), nullable=False
    )
    cogs_account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("accounts.id"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def to_dto(self):
        from ledger_modules.inventory.models import ValuationClassInfo

        return ValuationClassInfo(
            id=self.id,
            class_code=self.class_code,
            name=self.name,
            inventory_account_id=self.inventory_account_id,
            cogs_account_id=self.cogs_account_id,
            is_active=self.is_active,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<ValuationClass {self.class_code}: {self.name}>"


class InventoryItem(TrackedBase):
    """A stock-keeping item with its current available quantity."""

    __tablename__ = "inventory_items"

    __table_args__ = (
        UniqueConstraint("company_code_id", "product_code", name="uq_inventory_product_code"),
        Index("idx_inventory_valuation_class", "valuation_class_id"),
    )

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("company_codes.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    unit: Mapped[str] = mapped_column(String(20), default="pcs", nullable=False)
    valuation_class_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("valuation_classes.id"), nullable=True
    )
    sales_price: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    purchase_price: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    available_quantity: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)

    valuation_class: Mapped[ValuationClass | None] = relationship(lazy="joined")

    def to_dto(self):
        from ledger_modules.inventory.models import InventoryItemInfo

        return InventoryItemInfo(
            id=self.id,
            product_code=self.product_code,
            name=self.name,
            display_name=self.display_name,
            unit=self.unit,
            sales_price=self.sales_price,
            purchase_price=self.purchase_price,
            available_quantity=self.available_quantity,
            valuation_class_id=self.valuation_class_id,
            description=self.description,
        )

    def __repr__(self) -> str:
        return f"<InventoryItem {self.product_code}: {self.available_quantity}>"
