"""
Purchase Posting Profiles (``ledger_modules.purchases.profiles``).

Profiles:
    VendorBill  -- Dr Inventory (per valuation class, net of discount)
                   Dr VAT Payable (input tax)
                   Cr Accounts Payable (total)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.dtos import EntrySpec, LineSpec
from ledger_kernel.domain.values import TransactionType
from ledger_modules._posting_helpers import DocumentTotals


def purchase_entry(
    *,
    purchase_number: str,
    vendor_name: str,
    totals: DocumentTotals,
    inventory_amounts: dict[UUID, Decimal],
    tax_account_id: UUID | None,
    payable_account_id: UUID,
    entry_date: date | None = None,
) -> EntrySpec | None:
    """Build the BILL posting of a purchase; None when everything is zero."""
    lines: list[LineSpec] = [
        LineSpec.debit(account_id, amount, memo=f"Goods received {purchase_number}")
        for account_id, amount in inventory_amounts.items()
        if amount > ZERO
    ]
    if totals.tax > ZERO:
        lines.append(LineSpec.debit(tax_account_id, totals.tax, memo=f"Input tax {purchase_number}"))
    if totals.total > ZERO:
        lines.append(
            LineSpec.credit(payable_account_id, totals.total, memo=f"Bill from {vendor_name}")
        )
    if not lines:
        return None
    return EntrySpec(
        description=f"Purchase {purchase_number} from {vendor_name}",
        lines=lines,
        entry_date=entry_date,
        transaction_type=TransactionType.VENDOR_BILL,
    )
