"""
Inventory Posting Profiles (``ledger_modules.inventory.profiles``).

Responsibility
--------------
Pure builders that turn a stock movement plus resolved account ids into
an ``EntrySpec`` for the journal engine.

Profiles:
    InitialInventory  -- stock brought in as capital:
                         Dr Inventory (valuation class) / Cr Owner's Equity
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import round_money, to_money
from ledger_kernel.domain.dtos import EntrySpec, LineSpec
from ledger_kernel.domain.values import TransactionType


def initial_inventory_entry(
    *,
    item_name: str,
    quantity: Decimal,
    purchase_price: Decimal,
    inventory_account_id: UUID,
    equity_account_id: UUID,
    entry_date: date | None = None,
) -> EntrySpec:
    """Capitalize ``quantity`` units at purchase price against owner's equity."""
    value = round_money(to_money(purchase_price) * to_money(quantity))
    return EntrySpec(
        description=f"Initial inventory entry for {item_name}",
        entry_date=entry_date,
        transaction_type=TransactionType.STOCK_POSTING,
        lines=(
            LineSpec.debit(
                inventory_account_id,
                value,
                memo=f"Initial inventory: {item_name} (Qty: {quantity})",
            ),
            LineSpec.credit(
                equity_account_id,
                value,
                memo="Initial inventory capital contribution",
            ),
        ),
    )
