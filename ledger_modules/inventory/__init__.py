"""
Inventory Module.

Stock items, valuation classes (inventory and COGS accounts per item
group) and opening-stock capitalization.
"""

from ledger_modules.inventory.models import (
    InventoryItemInfo,
    InventoryItemSpec,
    ValuationClassInfo,
    ValuationClassSpec,
)
from ledger_modules.inventory.service import InventoryService

__all__ = [
    "InventoryItemInfo",
    "InventoryItemSpec",
    "InventoryService",
    "ValuationClassInfo",
    "ValuationClassSpec",
]
