"""
Tests for LedgerSelector and JournalSelector reports.

Balances are stored normal-side-positive; reports turn them into
debit/credit columns and category totals.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.db.engine import read_scope
from ledger_kernel.domain.chart import AccountCategory
from ledger_kernel.domain.values import TransactionType
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector


@pytest.fixture
def trading_month(post):
    """Capital, a cash sale, a credit sale, rent and cost of goods sold."""
    post([("1001", "D", "10000"), ("3001", "C", "10000")], entry_date=date(2024, 3, 1))
    post([("1001", "D", "1500"), ("4001", "C", "1500")], entry_date=date(2024, 3, 5))
    post([("1002", "D", "500"), ("4001", "C", "500")], entry_date=date(2024, 3, 8))
    post([("5002", "D", "800"), ("1001", "C", "800")], entry_date=date(2024, 3, 10))
    post([("6001", "D", "600"), ("1003", "C", "600")], entry_date=date(2024, 3, 12))


class TestTrialBalance:
    def test_columns(self, ctx, trading_month):
        with read_scope() as session:
            rows = {r.code: r for r in LedgerSelector(session).trial_balance(ctx.company_code_id)}

        assert rows["1001"].debit_balance == Decimal("10700")
        assert rows["1001"].credit_balance == Decimal("0")
        assert rows["3001"].credit_balance == Decimal("10000")
        assert rows["4001"].credit_balance == Decimal("2000")
        # Inventory was never stocked, so it sits on the credit side
        assert rows["1003"].credit_balance == Decimal("600")
        assert rows["1003"].debit_balance == Decimal("0")

    def test_columns_agree(self, ctx, trading_month):
        with read_scope() as session:
            rows = LedgerSelector(session).trial_balance(ctx.company_code_id)
        assert sum(r.debit_balance for r in rows) == sum(r.credit_balance for r in rows)

    def test_zero_rows(self, ctx, trading_month):
        with read_scope() as session:
            selector = LedgerSelector(session)
            compact = selector.trial_balance(ctx.company_code_id)
            full = selector.trial_balance(ctx.company_code_id, include_zero=True)
        assert "5001" not in {r.code for r in compact}
        assert len(full) == 17

    def test_empty_company(self, ctx):
        with read_scope() as session:
            assert LedgerSelector(session).trial_balance(ctx.company_code_id) == []


class TestCategoryTotals:
    def test_totals(self, ctx, trading_month):
        with read_scope() as session:
            totals = LedgerSelector(session).totals_by_category(ctx.company_code_id)
        assert set(totals) == set(AccountCategory)
        assert totals[AccountCategory.ASSET] == Decimal("10600")
        assert totals[AccountCategory.LIABILITY] == Decimal("0")
        assert totals[AccountCategory.EQUITY] == Decimal("10000")
        assert totals[AccountCategory.REVENUE] == Decimal("2000")
        assert totals[AccountCategory.EXPENSE] == Decimal("800")
        assert totals[AccountCategory.COGS] == Decimal("600")

    def test_profit_summary(self, ctx, trading_month):
        with read_scope() as session:
            summary = LedgerSelector(session).profit_summary(ctx.company_code_id)
        assert summary.gross_profit == Decimal("1400")
        assert summary.gross_margin == Decimal("70")
        assert summary.net_profit == Decimal("600")
        assert summary.net_margin == Decimal("30")

    def test_accounting_equation_holds(self, ctx, trading_month):
        with read_scope() as session:
            assert LedgerSelector(session).accounting_equation_check(ctx.company_code_id)


class TestJournalQueries:
    def test_list_newest_first(self, ctx, trading_month):
        with read_scope() as session:
            entries = JournalSelector(session).list_entries(ctx.company_code_id)
        assert [e.entry_date.day for e in entries] == [12, 10, 8, 5, 1]
        assert all(e.is_balanced for e in entries)

    def test_list_date_range(self, ctx, trading_month):
        with read_scope() as session:
            entries = JournalSelector(session).list_entries(
                ctx.company_code_id, start_date=date(2024, 3, 5), end_date=date(2024, 3, 10)
            )
        assert len(entries) == 3

    def test_list_by_type(self, ctx, trading_month, post):
        post(
            [("1003", "D", "50"), ("3001", "C", "50")],
            transaction_type=TransactionType.STOCK_POSTING,
        )
        with read_scope() as session:
            entries = JournalSelector(session).list_entries(
                ctx.company_code_id, transaction_type=TransactionType.STOCK_POSTING
            )
        assert len(entries) == 1

    def test_lines_for_account(self, ctx, accounts, trading_month):
        with read_scope() as session:
            lines = JournalSelector(session).lines_for_account(ctx.company_code_id, accounts["1001"])
        assert [line.amount for line in lines] == [Decimal("10000"), Decimal("1500"), Decimal("800")]

    def test_other_company_invisible(self, ctx, other_ctx, post):
        entry_id = post([("1001", "D", "10"), ("3001", "C", "10")])
        with read_scope() as session:
            selector = JournalSelector(session)
            assert selector.get_entry(other_ctx.company_code_id, entry_id) is None
            assert selector.get_entry(ctx.company_code_id, entry_id) is not None

    def test_get_by_number(self, ctx, other_ctx, trading_month):
        with read_scope() as session:
            selector = JournalSelector(session)
            rent = selector.get_by_number(ctx.company_code_id, "JE-0004")
            assert selector.get_by_number(ctx.company_code_id, "JE-0099") is None
            assert selector.get_by_number(other_ctx.company_code_id, "JE-0004") is None
        assert rent.entry_date == date(2024, 3, 10)
        assert rent.total_debits == Decimal("800")
