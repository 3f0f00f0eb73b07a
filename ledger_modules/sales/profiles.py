"""
Sales Posting Profiles (``ledger_modules.sales.profiles``).

Responsibility
--------------
Pure builder that turns a priced sale plus resolved account ids into an
``EntrySpec`` for the journal engine.

Profiles:
    CustomerInvoice  -- Dr Accounts Receivable (total)
                        Cr Sales Revenue (net of discount)
                        Cr VAT Payable (tax)
                        Dr COGS / Cr Inventory (cost of stock items sold)

Invariants enforced
-------------------
* Zero-amount lines are left out; an all-zero sale yields no entry.
* Debits equal credits because total = net + tax and each cost pair is
  symmetric.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.dtos import EntrySpec, LineSpec
from ledger_kernel.domain.values import TransactionType
from ledger_modules._posting_helpers import DocumentTotals


def sale_entry(
    *,
    sale_number: str,
    customer_name: str,
    totals: DocumentTotals,
    receivable_account_id: UUID | None,
    revenue_account_id: UUID | None,
    tax_account_id: UUID | None,
    cost_moves: dict[tuple[UUID, UUID], Decimal],
    entry_date: date | None = None,
) -> EntrySpec | None:
    """
    Build the INV posting of a sale.

    ``cost_moves`` maps (cogs account id, inventory account id) to the
    cost of the stock leaving that valuation class.
    """
    lines: list[LineSpec] = []
    if totals.total > ZERO:
        lines.append(
            LineSpec.debit(receivable_account_id, totals.total, memo=f"Invoice {sale_number}")
        )
    if totals.net > ZERO:
        lines.append(
            LineSpec.credit(revenue_account_id, totals.net, memo=f"Sales to {customer_name}")
        )
    if totals.tax > ZERO:
        lines.append(LineSpec.credit(tax_account_id, totals.tax, memo=f"Tax on {sale_number}"))
    for (cogs_account_id, inventory_account_id), cost in cost_moves.items():
        if cost > ZERO:
            lines.append(LineSpec.debit(cogs_account_id, cost, memo=f"Cost of sales {sale_number}"))
            lines.append(
                LineSpec.credit(inventory_account_id, cost, memo=f"Stock issued {sale_number}")
            )
    if not lines:
        return None
    return EntrySpec(
        description=f"Sale {sale_number} to {customer_name}",
        lines=lines,
        entry_date=entry_date,
        transaction_type=TransactionType.CUSTOMER_INVOICE,
    )
