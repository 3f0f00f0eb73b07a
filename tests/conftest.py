"""
Pytest fixtures for the ledger test suite.

Provides:
- A fresh SQLite ledger file per test (kernel + module tables)
- A tenant with a company code and the default chart of accounts
- Structured log capture
- Small helpers for posting entries

Each test gets its own database file under pytest's ``tmp_path``, so
tests never share state and may run in any order.
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select

from ledger_kernel.db.engine import init_engine_from_url, read_scope, reset_engine, write_scope
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.dtos import EntrySpec, LineSpec, TenantContext
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.models.account import Account
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.tenant_service import TenantService
from ledger_modules._orm_registry import create_all_tables

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, post):
            post(...)
            logs = captured_logs()
            assert any(r["message"] == "journal_entry_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "ledger.db"


@pytest.fixture
def db_engine(db_path):
    """Engine over a fresh SQLite file with the full schema."""
    engine = init_engine_from_url(f"sqlite:///{db_path}", busy_timeout_ms=5000)
    create_all_tables()
    yield engine
    reset_engine()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def ctx(db_engine) -> TenantContext:
    """A tenant with company code 1000 (USD) and the default chart."""
    with write_scope() as session:
        context = TenantService(session).create_tenant(
            "Test Trading Co",
            email="books@example.com",
            actor_id=TEST_ACTOR_ID,
        )
        AccountService(session).initialize_default_chart(context)
    return context


@pytest.fixture
def other_ctx(db_engine) -> TenantContext:
    """A second, independent tenant with its own default chart."""
    with write_scope() as session:
        context = TenantService(session).create_tenant("Other Co", company_code="2000")
        AccountService(session).initialize_default_chart(context)
    return context


@pytest.fixture
def accounts(ctx) -> dict[str, UUID]:
    """Account code -> account id for the ``ctx`` company code."""
    with read_scope() as session:
        rows = session.execute(
            select(Account.code, Account.id).where(Account.company_code_id == ctx.company_code_id)
        ).all()
    return {code: account_id for code, account_id in rows}


@pytest.fixture
def balance_of(ctx):
    """Read the stored balance of an account by code."""

    def _balance(code: str) -> Decimal:
        with read_scope() as session:
            return session.execute(
                select(Account.balance).where(
                    Account.company_code_id == ctx.company_code_id,
                    Account.code == code,
                )
            ).scalar_one()

    return _balance


@pytest.fixture
def post(ctx, deterministic_clock):
    """
    Post a two-or-more line entry in its own write transaction.

    Usage::

        entry_id = post([("1001", "D", "100"), ("3001", "C", "100")])
    """

    def _post(lines, description="Test entry", entry_date: date | None = None, **kwargs) -> UUID:
        specs = [
            LineSpec.debit(code, Decimal(amount)) if side == "D" else LineSpec.credit(code, Decimal(amount))
            for code, side, amount in lines
        ]
        with write_scope() as session:
            return JournalService(session, clock=deterministic_clock).create_entry(
                ctx,
                EntrySpec(description=description, lines=specs, entry_date=entry_date, **kwargs),
            )

    return _post
