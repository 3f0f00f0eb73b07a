"""
Sales Domain Models (``ledger_modules.sales.models``).

Responsibility
--------------
Frozen dataclasses and the status enum for customer sales (AR invoices
numbered ``INV-AR-00001``).

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``; amounts are ``Decimal``.
* balance_amount = total_amount - paid_amount.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.db.types import ZERO
from ledger_modules._posting_helpers import is_fully_paid


class SaleStatus(str, Enum):
    """Sale lifecycle states."""

    DRAFT = "Draft"
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    SHIPPED = "Shipped"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class SaleItemSpec:
    """
    One sold item.

    When ``inventory_item_id`` is set the item's stock is reduced and, if
    it has a valuation class, its cost is moved from inventory to COGS.
    """

    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = ZERO
    discount_percent: Decimal = ZERO
    inventory_item_id: UUID | None = None


@dataclass(frozen=True)
class SaleSpec:
    customer_id: UUID
    items: tuple[SaleItemSpec, ...]
    sale_date: date | None = None
    due_date: date | None = None
    sale_number: str | None = None
    notes: str | None = None
    payment_method: str | None = None
    reference_number: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class SaleItemInfo:
    id: UUID
    line_number: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount_percent: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_price: Decimal
    inventory_item_id: UUID | None = None


@dataclass(frozen=True)
class SaleInfo:
    id: UUID
    sale_number: str
    customer_id: UUID
    customer_name: str
    sale_date: date
    status: SaleStatus
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    journal_entry_id: UUID | None
    items: tuple[SaleItemInfo, ...] = field(default_factory=tuple)
    due_date: date | None = None
    notes: str | None = None

    @property
    def balance_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount

    @property
    def is_fully_paid(self) -> bool:
        return is_fully_paid(self.total_amount, self.paid_amount)
