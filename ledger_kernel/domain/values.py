"""
Value enums shared by the journal models, the balance ledger and the
posting generators.

Pure -- no I/O, no ORM imports.
"""

from enum import Enum


class LineSide(str, Enum):
    """Which side of the entry a line is on.

    Contract: Every journal line has exactly one side.  Amount is always
    positive; the side determines the direction of the posting.
    """

    DEBIT = "Debit"
    CREDIT = "Credit"

    @property
    def opposite(self) -> "LineSide":
        return LineSide.CREDIT if self is LineSide.DEBIT else LineSide.DEBIT


class TransactionType(str, Enum):
    """Source document of a journal entry."""

    JOURNAL_ENTRY = "JE"
    VENDOR_BILL = "BILL"
    OUTGOING_PAYMENT = "PAY"
    CUSTOMER_INVOICE = "INV"
    INCOMING_PAYMENT = "REC"
    STOCK_POSTING = "SP"


class OpenItemStatus(str, Enum):
    """Clearing status of a line on an open-item managed account.

    Contract: OPEN -> CLEARED once fully settled; OPEN -> REVALUED when a
    foreign-currency item's base value is adjusted.  A REVALUED item can
    still be cleared.  Removing a clearing line reopens its target.
    """

    OPEN = "Open"
    CLEARED = "Cleared"
    REVALUED = "Revalued"
