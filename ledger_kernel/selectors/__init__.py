"""Read-only query selectors of the ledger kernel."""

from ledger_kernel.selectors.base import BaseSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector, ProfitSummary

__all__ = ["BaseSelector", "JournalSelector", "LedgerSelector", "ProfitSummary"]
