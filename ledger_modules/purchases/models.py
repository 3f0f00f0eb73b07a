"""
Purchase Domain Models (``ledger_modules.purchases.models``).

Responsibility
--------------
Frozen dataclasses and the status enum for vendor purchases (AP bills
numbered ``INV-AP-00001``).

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.db.types import ZERO
from ledger_modules._posting_helpers import is_fully_paid


class PurchaseStatus(str, Enum):
    """Purchase lifecycle states."""

    DRAFT = "Draft"
    ORDERED = "Ordered"
    RECEIVED = "Received"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class PurchaseItemSpec:
    """
    One purchased item.

    When ``inventory_item_id`` is set the item's stock grows by
    ``quantity`` and the net amount is debited to its valuation class's
    inventory account.
    """

    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = ZERO
    discount_percent: Decimal = ZERO
    inventory_item_id: UUID | None = None


@dataclass(frozen=True)
class PurchaseSpec:
    vendor_id: UUID
    items: tuple[PurchaseItemSpec, ...]
    purchase_date: date | None = None
    due_date: date | None = None
    purchase_number: str | None = None
    notes: str | None = None
    payment_method: str | None = None
    reference_number: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class PurchaseItemInfo:
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
class PurchaseInfo:
    id: UUID
    purchase_number: str
    vendor_id: UUID
    vendor_name: str
    purchase_date: date
    status: PurchaseStatus
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    journal_entry_id: UUID | None
    items: tuple[PurchaseItemInfo, ...] = field(default_factory=tuple)
    due_date: date | None = None
    notes: str | None = None

    @property
    def balance_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount

    @property
    def is_fully_paid(self) -> bool:
        return is_fully_paid(self.total_amount, self.paid_amount)
