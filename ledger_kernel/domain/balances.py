"""
Balances -- the single directional rule for applying a posting.

Responsibility:
    Computes the new stored balance of an account for one debit or credit
    posting, and converts stored balances into the display and
    debit-oriented (trial balance) views.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Called by LedgerService for every line that is posted or unposted, and
    by selectors for reporting.

Storage convention:
    Balances are stored normal-side-positive: an asset that was debited 100
    stores +100, a liability that was credited 100 also stores +100.  The
    display balance is therefore the stored balance; the debit-oriented
    balance flips the sign of credit-normal accounts.

Invariants enforced:
    - apply_posting() is the only place posting direction is decided.
    - unapply_posting(apply_posting(b, ...)) == b for every input.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from ledger_kernel.domain.chart import (
    AccountType,
    NormalBalance,
    normal_balance_for,
)


def apply_posting(
    balance: Decimal,
    normal_balance: NormalBalance,
    amount: Decimal,
    is_debit: bool,
) -> Decimal:
    """
    Return the balance after posting ``amount`` on one side.

    Debit-normal: a debit adds, a credit subtracts.
    Credit-normal: a debit subtracts, a credit adds.
    """
    if normal_balance == NormalBalance.DEBIT:
        return balance + amount if is_debit else balance - amount
    return balance - amount if is_debit else balance + amount


def unapply_posting(
    balance: Decimal,
    normal_balance: NormalBalance,
    amount: Decimal,
    is_debit: bool,
) -> Decimal:
    """Undo a posting: the same amount applied on the opposite side."""
    return apply_posting(balance, normal_balance, amount, not is_debit)


class _HasBalance(Protocol):
    balance: Decimal
    account_type: AccountType


def display_balance(account: _HasBalance) -> Decimal:
    """Balance as shown to a user: positive when on the account's normal side."""
    return account.balance


def debit_oriented_balance(account: _HasBalance) -> Decimal:
    """Balance with debits positive and credits negative, for trial balances."""
    normal = normal_balance_for(account.account_type.category)
    if normal == NormalBalance.DEBIT:
        return account.balance
    return -account.balance
