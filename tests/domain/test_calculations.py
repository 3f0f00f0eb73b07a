"""Tests for pure accounting calculations (ledger_kernel.domain.calculations)."""

from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.domain.calculations import (
    account_balance_from_category,
    gross_margin,
    gross_profit,
    is_balanced,
    net_margin,
    net_profit,
    total_credits,
    total_debits,
    verify_accounting_equation,
)
from ledger_kernel.domain.chart import AccountCategory
from ledger_kernel.domain.values import LineSide


@dataclass
class Line:
    side: LineSide
    amount: Decimal


def lines(*pairs):
    return [Line(LineSide.DEBIT if s == "D" else LineSide.CREDIT, Decimal(a)) for s, a in pairs]


class TestBalanceCheck:
    """abs(debits - credits) must stay below 1e-9."""

    def test_totals(self):
        entry = lines(("D", "100.50"), ("D", "20"), ("C", "120.50"))
        assert total_debits(entry) == Decimal("120.50")
        assert total_credits(entry) == Decimal("120.50")
        assert is_balanced(entry)

    def test_off_by_one_cent_unbalanced(self):
        assert not is_balanced(lines(("D", "100.00"), ("C", "99.99")))

    def test_sub_tolerance_difference_balanced(self):
        assert is_balanced(lines(("D", "100.0000000001"), ("C", "100")))

    def test_tolerance_difference_unbalanced(self):
        assert not is_balanced(lines(("D", "100.000000001"), ("C", "100")))

    def test_empty_is_balanced(self):
        assert is_balanced([])


class TestBalanceFromCategory:
    def test_debit_normal(self):
        assert account_balance_from_category(AccountCategory.ASSET, Decimal("500"), Decimal("200")) == Decimal("300")

    def test_credit_normal(self):
        assert account_balance_from_category(AccountCategory.REVENUE, Decimal("50"), Decimal("800")) == Decimal("750")


class TestProfitability:
    def test_gross_and_net(self):
        revenue, cogs, expenses = Decimal("1000"), Decimal("400"), Decimal("350")
        assert gross_profit(revenue, cogs) == Decimal("600")
        assert gross_margin(revenue, cogs) == Decimal("60")
        assert net_profit(revenue, expenses, cogs) == Decimal("250")
        assert net_margin(revenue, expenses, cogs) == Decimal("25")

    def test_zero_revenue_margins_are_zero(self):
        assert gross_margin(Decimal("0"), Decimal("10")) == Decimal("0")
        assert net_margin(Decimal("0"), Decimal("10"), Decimal("5")) == Decimal("0")


class TestAccountingEquation:
    def test_holds(self):
        assert verify_accounting_equation(Decimal("1000"), Decimal("400"), Decimal("600"))

    def test_within_display_tolerance(self):
        assert verify_accounting_equation(Decimal("1000.005"), Decimal("400"), Decimal("600"))

    def test_violated(self):
        assert not verify_accounting_equation(Decimal("1000.02"), Decimal("400"), Decimal("600"))
