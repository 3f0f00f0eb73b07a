"""
Payment Posting Profiles (``ledger_modules.payments.profiles``).

Responsibility
--------------
Pure builders that turn a payment plus resolved account ids into an
``EntrySpec`` for the journal engine.  No I/O, no account lookup.

Profiles:
    PaymentJournal    -- generic adapter: CREDIT -> Dr account / Cr counter;
                         DEBIT -> Dr counter / Cr account
    IncomingPayment   -- Dr Cash/Bank / Cr Accounts Receivable   (REC)
    OutgoingPayment   -- Dr Accounts Payable / Cr Cash/Bank      (PAY)

Invariants enforced
-------------------
* Every profile yields exactly two lines of equal amount.
* A clearing target, when given, is set on the receivable/payable line.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import to_money
from ledger_kernel.domain.dtos import EntrySpec, LineSpec
from ledger_kernel.domain.values import TransactionType
from ledger_modules.payments.models import PaymentDirection


def payment_journal_entry(
    *,
    direction: PaymentDirection,
    amount: Decimal,
    account_id: UUID,
    counter_account_id: UUID,
    description: str,
    transaction_type: TransactionType = TransactionType.JOURNAL_ENTRY,
    entry_date: date | None = None,
    account_memo: str | None = None,
    counter_memo: str | None = None,
    clears_line_id: UUID | None = None,
) -> EntrySpec:
    """
    Map a payment onto two lines.

    ``clears_line_id`` is attached to the counter (receivable/payable)
    line, the one that settles an open item.
    """
    value = to_money(amount)
    account_line = dict(memo=account_memo)
    counter_line = dict(memo=counter_memo, clears_line_id=clears_line_id)
    if direction == PaymentDirection.CREDIT:
        lines = (
            LineSpec.debit(account_id, value, **account_line),
            LineSpec.credit(counter_account_id, value, **counter_line),
        )
    else:
        lines = (
            LineSpec.debit(counter_account_id, value, **counter_line),
            LineSpec.credit(account_id, value, **account_line),
        )
    return EntrySpec(
        description=description,
        lines=lines,
        entry_date=entry_date,
        transaction_type=transaction_type,
    )


def incoming_payment_entry(
    *,
    payment_number: str,
    customer_name: str,
    amount: Decimal,
    cash_account_id: UUID,
    receivable_account_id: UUID,
    entry_date: date | None = None,
    clears_line_id: UUID | None = None,
) -> EntrySpec:
    """Dr cash/bank, Cr accounts receivable."""
    return payment_journal_entry(
        direction=PaymentDirection.CREDIT,
        amount=amount,
        account_id=cash_account_id,
        counter_account_id=receivable_account_id,
        description=f"Incoming payment {payment_number} from {customer_name}",
        transaction_type=TransactionType.INCOMING_PAYMENT,
        entry_date=entry_date,
        account_memo=f"Payment received from {customer_name}",
        counter_memo=f"Payment from {customer_name}",
        clears_line_id=clears_line_id,
    )


def outgoing_payment_entry(
    *,
    payment_number: str,
    vendor_name: str,
    amount: Decimal,
    cash_account_id: UUID,
    payable_account_id: UUID,
    entry_date: date | None = None,
    clears_line_id: UUID | None = None,
) -> EntrySpec:
    """Dr accounts payable, Cr cash/bank."""
    return payment_journal_entry(
        direction=PaymentDirection.DEBIT,
        amount=amount,
        account_id=cash_account_id,
        counter_account_id=payable_account_id,
        description=f"Outgoing payment {payment_number} to {vendor_name}",
        transaction_type=TransactionType.OUTGOING_PAYMENT,
        entry_date=entry_date,
        account_memo=f"Payment to {vendor_name}",
        counter_memo=f"Payment to {vendor_name}",
        clears_line_id=clears_line_id,
    )
