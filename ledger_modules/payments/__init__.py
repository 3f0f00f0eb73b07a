"""
Payments Module.

Incoming payments (REC: Dr cash, Cr receivable) and outgoing payments
(PAY: Dr payable, Cr cash), optionally settling a sale or purchase.
"""

from ledger_modules.payments.models import PaymentDirection, PaymentInfo, PaymentSpec
from ledger_modules.payments.service import PaymentService

__all__ = [
    "PaymentDirection",
    "PaymentInfo",
    "PaymentService",
    "PaymentSpec",
]
