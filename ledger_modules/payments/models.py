"""
Payment Domain Models (``ledger_modules.payments.models``).

Responsibility
--------------
Frozen dataclasses and enums for incoming payments (money received from
customers) and outgoing payments (money paid to vendors).

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``; amounts are ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PaymentDirection(str, Enum):
    """
    Which side the specified account takes in the payment posting.

    CREDIT: incoming -- the specified (cash) account is debited.
    DEBIT: outgoing -- the specified (cash) account is credited.
    """

    CREDIT = "Credit"
    DEBIT = "Debit"


@dataclass(frozen=True)
class PaymentSpec:
    """
    A payment to record.

    ``partner_id`` is the customer (incoming) or vendor (outgoing);
    ``account_id`` is the cash or bank account the money moves through;
    ``document_id`` optionally links the sale (incoming) or purchase
    (outgoing) the payment settles.
    """

    partner_id: UUID
    account_id: UUID
    amount: Decimal
    payment_date: date | None = None
    document_id: UUID | None = None
    payment_number: str | None = None
    notes: str | None = None
    reference_number: str | None = None


@dataclass(frozen=True)
class PaymentInfo:
    id: UUID
    direction: PaymentDirection
    payment_number: str
    amount: Decimal
    payment_date: date
    partner_id: UUID
    partner_name: str
    account_id: UUID
    journal_entry_id: UUID | None
    document_id: UUID | None = None
    notes: str | None = None
    reference_number: str | None = None
