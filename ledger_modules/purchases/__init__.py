"""
Purchases Module.

Vendor purchases (AP bills) posted as BILL entries that receive stock
into inventory and raise accounts payable.
"""

from ledger_modules.purchases.models import (
    PurchaseInfo,
    PurchaseItemInfo,
    PurchaseItemSpec,
    PurchaseSpec,
    PurchaseStatus,
)
from ledger_modules.purchases.service import PurchaseService

__all__ = [
    "PurchaseInfo",
    "PurchaseItemInfo",
    "PurchaseItemSpec",
    "PurchaseService",
    "PurchaseSpec",
    "PurchaseStatus",
]
