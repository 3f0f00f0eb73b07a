"""Tests for SequenceService -- monotonic per-company counters."""

import pytest

from ledger_kernel.db.engine import read_scope, write_scope
from ledger_kernel.domain.values import TransactionType
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.sequence_service import SequenceService


class TestNextValue:
    def test_starts_at_one_and_increments(self, ctx):
        with write_scope() as session:
            service = SequenceService(session)
            assert service.next_value(ctx.company_code_id, "test") == 1
            assert service.next_value(ctx.company_code_id, "test") == 2
        with read_scope() as session:
            assert SequenceService(session).current_value(ctx.company_code_id, "test") == 2

    def test_series_are_independent(self, ctx, other_ctx):
        with write_scope() as session:
            service = SequenceService(session)
            service.next_value(ctx.company_code_id, "a")
            service.next_value(ctx.company_code_id, "a")
            assert service.next_value(ctx.company_code_id, "b") == 1
            assert service.next_value(other_ctx.company_code_id, "a") == 1

    def test_unused_series(self, ctx):
        with read_scope() as session:
            assert SequenceService(session).current_value(ctx.company_code_id, "never") is None

    def test_rollback_returns_value(self, ctx):
        with pytest.raises(RuntimeError):
            with write_scope() as session:
                SequenceService(session).next_value(ctx.company_code_id, "test")
                raise RuntimeError("abort")
        with write_scope() as session:
            assert SequenceService(session).next_value(ctx.company_code_id, "test") == 1

    def test_requires_write_scope(self, ctx):
        with read_scope() as session:
            with pytest.raises(RuntimeError):
                SequenceService(session).next_value(ctx.company_code_id, "test")


class TestDocumentNumbers:
    """Journal entries draw document_number from one series per transaction type."""

    def test_per_transaction_type(self, ctx, post):
        first = post([("1001", "D", "10"), ("3001", "C", "10")])
        second = post([("1001", "D", "10"), ("3001", "C", "10")])
        stock = post(
            [("1003", "D", "10"), ("3001", "C", "10")],
            transaction_type=TransactionType.STOCK_POSTING,
        )
        with read_scope() as session:
            selector = JournalSelector(session)
            numbers = [
                selector.get_entry(ctx.company_code_id, entry_id).document_number
                for entry_id in (first, second, stock)
            ]
        assert numbers == [1, 2, 1]

    def test_not_reused_after_delete(self, ctx, post):
        post([("1001", "D", "10"), ("3001", "C", "10")])
        second = post([("1001", "D", "10"), ("3001", "C", "10")])
        with write_scope() as session:
            JournalService(session).delete_entry(ctx, second)
        third = post([("1001", "D", "10"), ("3001", "C", "10")])
        with read_scope() as session:
            assert JournalSelector(session).get_entry(ctx.company_code_id, third).document_number == 3
