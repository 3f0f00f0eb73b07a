"""
Calculations -- pure accounting arithmetic.

Responsibility:
    Totals and balance check for a set of lines, category balance from
    raw debit/credit sums, profitability figures and the balance-sheet
    equation check.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Used by JournalService (acceptance check), LedgerService (rebuild)
    and LedgerSelector (reporting).

Invariants enforced:
    - is_balanced() uses BALANCE_TOLERANCE; verify_accounting_equation()
      uses DISPLAY_TOLERANCE.  No other tolerance literals exist.
    - Margin functions return 0 when revenue is not positive.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol

from ledger_kernel.db.types import BALANCE_TOLERANCE, DISPLAY_TOLERANCE, ZERO
from ledger_kernel.domain.chart import AccountCategory, NormalBalance, normal_balance_for
from ledger_kernel.domain.values import LineSide

_HUNDRED = Decimal("100")


class _SidedAmount(Protocol):
    side: LineSide
    amount: Decimal


def total_debits(lines: Iterable[_SidedAmount]) -> Decimal:
    return sum((line.amount for line in lines if line.side == LineSide.DEBIT), ZERO)


def total_credits(lines: Iterable[_SidedAmount]) -> Decimal:
    return sum((line.amount for line in lines if line.side == LineSide.CREDIT), ZERO)


def is_balanced(lines: Iterable[_SidedAmount]) -> bool:
    """True iff |debits - credits| < BALANCE_TOLERANCE."""
    lines = list(lines)
    return abs(total_debits(lines) - total_credits(lines)) < BALANCE_TOLERANCE


def account_balance_from_category(
    category: AccountCategory,
    debits: Decimal,
    credits: Decimal,
) -> Decimal:
    """Normal-side-positive balance of an account from its posting sums."""
    if normal_balance_for(category) == NormalBalance.DEBIT:
        return debits - credits
    return credits - debits


def gross_profit(revenue: Decimal, cogs: Decimal) -> Decimal:
    return revenue - cogs


def gross_margin(revenue: Decimal, cogs: Decimal) -> Decimal:
    """Gross profit as a percentage of revenue."""
    if revenue <= ZERO:
        return ZERO
    return gross_profit(revenue, cogs) / revenue * _HUNDRED


def net_profit(revenue: Decimal, expenses: Decimal, cogs: Decimal) -> Decimal:
    return revenue - expenses - cogs


def net_margin(revenue: Decimal, expenses: Decimal, cogs: Decimal) -> Decimal:
    """Net profit as a percentage of revenue."""
    if revenue <= ZERO:
        return ZERO
    return net_profit(revenue, expenses, cogs) / revenue * _HUNDRED


def verify_accounting_equation(
    assets: Decimal,
    liabilities: Decimal,
    equity: Decimal,
) -> bool:
    """Assets = Liabilities + Equity within DISPLAY_TOLERANCE.

    Advisory reporting check; never used to accept or reject a write.
    """
    return abs(assets - (liabilities + equity)) < DISPLAY_TOLERANCE
