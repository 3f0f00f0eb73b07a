"""
Sales Module.

Customer sales (AR invoices) posted as INV entries: receivable, revenue,
output tax and cost of goods sold for stocked items.
"""

from ledger_modules.sales.models import SaleInfo, SaleItemInfo, SaleItemSpec, SaleSpec, SaleStatus
from ledger_modules.sales.service import SaleService

__all__ = [
    "SaleInfo",
    "SaleItemInfo",
    "SaleItemSpec",
    "SaleService",
    "SaleSpec",
    "SaleStatus",
]
