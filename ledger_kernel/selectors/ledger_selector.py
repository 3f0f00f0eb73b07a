"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only ledger reports over stored account balances:
    trial balance, totals per category, profitability figures and the
    accounting equation check.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Stored balances are normal-side-positive; the trial balance turns
      them into debit and credit columns with debit_oriented_balance().
    - Sums happen in Python over Decimal values so no floating point
      aggregate from the store reaches a report.

Failure modes:
    - Returns zero totals and an empty trial balance when the company code
      has no accounts.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain import calculations
from ledger_kernel.domain.balances import debit_oriented_balance
from ledger_kernel.domain.chart import AccountCategory
from ledger_kernel.domain.dtos import TrialBalanceRow
from ledger_kernel.models.account import Account
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class ProfitSummary:
    """Income statement figures of a company code."""

    revenue: Decimal
    cost_of_goods_sold: Decimal
    expenses: Decimal

    @property
    def gross_profit(self) -> Decimal:
        return calculations.gross_profit(self.revenue, self.cost_of_goods_sold)

    @property
    def gross_margin(self) -> Decimal:
        return calculations.gross_margin(self.revenue, self.cost_of_goods_sold)

    @property
    def net_profit(self) -> Decimal:
        return calculations.net_profit(self.revenue, self.expenses, self.cost_of_goods_sold)

    @property
    def net_margin(self) -> Decimal:
        return calculations.net_margin(self.revenue, self.expenses, self.cost_of_goods_sold)


class LedgerSelector(BaseSelector):
    """Balance reports of one company code."""

    def _accounts(self, company_code_id: UUID) -> list[Account]:
        return list(
            self.session.execute(
                select(Account)
                .where(Account.company_code_id == company_code_id)
                .order_by(Account.code)
            ).scalars()
        )

    def trial_balance(self, company_code_id: UUID, include_zero: bool = False) -> list[TrialBalanceRow]:
        """
        One row per account with its balance in the debit or credit column.

        Guarantees:
            sum(debit_balance) == sum(credit_balance) whenever every
            posted entry is balanced.
        """
        rows = []
        for account in self._accounts(company_code_id):
            oriented = debit_oriented_balance(account)
            if oriented == ZERO and not include_zero:
                continue
            rows.append(
                TrialBalanceRow(
                    account_id=account.id,
                    code=account.code,
                    name=account.name,
                    category=account.category,
                    debit_balance=oriented if oriented > ZERO else ZERO,
                    credit_balance=-oriented if oriented < ZERO else ZERO,
                )
            )
        return rows

    def totals_by_category(self, company_code_id: UUID) -> dict[AccountCategory, Decimal]:
        """Sum of stored balances per category; every category is present."""
        totals = {category: ZERO for category in AccountCategory}
        for account in self._accounts(company_code_id):
            totals[account.category] += account.balance
        return totals

    def profit_summary(self, company_code_id: UUID) -> ProfitSummary:
        totals = self.totals_by_category(company_code_id)
        return ProfitSummary(
            revenue=totals[AccountCategory.REVENUE],
            cost_of_goods_sold=totals[AccountCategory.COGS],
            expenses=totals[AccountCategory.EXPENSE],
        )

    def accounting_equation_check(self, company_code_id: UUID) -> bool:
        """
        Assets = Liabilities + Equity + current earnings.

        Revenue, expense and COGS balances are not yet closed into equity,
        so the running profit is added to the equity side.
        """
        totals = self.totals_by_category(company_code_id)
        earnings = calculations.net_profit(
            totals[AccountCategory.REVENUE],
            totals[AccountCategory.EXPENSE],
            totals[AccountCategory.COGS],
        )
        return calculations.verify_accounting_equation(
            totals[AccountCategory.ASSET],
            totals[AccountCategory.LIABILITY],
            totals[AccountCategory.EQUITY] + earnings,
        )
