"""
Inventory Domain Models (``ledger_modules.inventory.models``).

Responsibility
--------------
Frozen dataclasses for the nouns of the inventory module: valuation
classes (which GL accounts carry an item's stock value and its cost of
sales) and stock items.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary and quantity fields use ``Decimal`` -- never ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class ValuationClassSpec:
    class_code: str
    name: str
    inventory_account_id: UUID
    cogs_account_id: UUID
    description: str | None = None


@dataclass(frozen=True)
class ValuationClassInfo:
    id: UUID
    class_code: str
    name: str
    inventory_account_id: UUID
    cogs_account_id: UUID
    is_active: bool
    description: str | None = None


@dataclass(frozen=True)
class InventoryItemSpec:
    """A stock item to create.  Stock starts at zero."""

    product_code: str
    name: str
    sales_price: Decimal
    purchase_price: Decimal
    unit: str = "pcs"
    valuation_class_id: UUID | None = None
    description: str | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class InventoryItemInfo:
    id: UUID
    product_code: str
    name: str
    display_name: str
    unit: str
    sales_price: Decimal
    purchase_price: Decimal
    available_quantity: Decimal
    valuation_class_id: UUID | None = None
    description: str | None = None

    @property
    def stock_value(self) -> Decimal:
        return self.purchase_price * self.available_quantity
