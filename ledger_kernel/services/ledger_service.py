"""
LedgerService -- running account balances.

Responsibility:
    Moves stored account balances as a side effect of journal lines being
    written or removed, and recomputes every balance of a company code
    from its full posting history.

Architecture position:
    Kernel > Services -- imperative shell.
    Called only by JournalService (post/unpost) and by maintenance callers
    (rebuild).  No other code writes Account.balance.

Invariants enforced:
    - Every balance change goes through domain.balances.apply_posting /
      unapply_posting with the line's base-currency amount.
    - After rebuild_balances(), each stored balance equals
      account_balance_from_category(category, sum debits, sum credits)
      over the account's lines.

Failure modes:
    - RuntimeError outside write_scope().
"""

from decimal import Decimal

from sqlalchemy import select

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.balances import apply_posting, unapply_posting
from ledger_kernel.domain.calculations import account_balance_from_category
from ledger_kernel.domain.dtos import TenantContext
from ledger_kernel.domain.values import LineSide
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.tenant_service import TenantService

logger = get_logger("services.ledger")


class LedgerService(BaseService):
    """Applies and reverts the balance effect of journal lines."""

    def post_line(self, line: JournalLine, account: Account) -> Decimal:
        """Apply one line to its account; returns the new balance."""
        self._require_write("post_line")
        before = account.balance
        account.balance = apply_posting(
            before, account.normal_balance, line.amount_base, line.is_debit
        )
        logger.debug(
            "posting_applied",
            extra={
                "account_code": account.code,
                "side": line.side.value,
                "amount": line.amount_base,
                "balance_before": before,
                "balance_after": account.balance,
            },
        )
        return account.balance

    def unpost_line(self, line: JournalLine, account: Account) -> Decimal:
        """Revert the effect of one line on its account; returns the new balance."""
        self._require_write("unpost_line")
        before = account.balance
        account.balance = unapply_posting(
            before, account.normal_balance, line.amount_base, line.is_debit
        )
        logger.debug(
            "posting_reverted",
            extra={
                "account_code": account.code,
                "side": line.side.value,
                "amount": line.amount_base,
                "balance_before": before,
                "balance_after": account.balance,
            },
        )
        return account.balance

    def rebuild_balances(self, ctx: TenantContext) -> dict[str, Decimal]:
        """
        Recompute every balance of the company code from its postings.

        Returns:
            Mapping of account code -> rebuilt balance, for accounts whose
            stored balance changed.
        """
        company = TenantService(self.session).require(ctx, "rebuild_balances")
        self._require_write("rebuild_balances")

        # Summed in Python: SQLite aggregates NUMERIC as floating point
        totals: dict = {}
        rows = self.session.execute(
            select(JournalLine.account_id, JournalLine.side, JournalLine.amount_base)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(JournalEntry.company_code_id == company.id)
        ).all()
        for account_id, side, amount in rows:
            debits, credits = totals.get(account_id, (ZERO, ZERO))
            if side == LineSide.DEBIT:
                debits += amount
            else:
                credits += amount
            totals[account_id] = (debits, credits)

        changed: dict[str, Decimal] = {}
        accounts = self.session.execute(
            select(Account).where(Account.company_code_id == company.id)
        ).scalars()
        for account in accounts:
            debits, credits = totals.get(account.id, (ZERO, ZERO))
            rebuilt = account_balance_from_category(account.category, debits, credits)
            if rebuilt != account.balance:
                changed[account.code] = rebuilt
                account.balance = rebuilt
        self.session.flush()

        logger.info("balances_rebuilt", extra={"changed_accounts": len(changed)})
        return changed
