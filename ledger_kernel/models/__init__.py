"""ORM models of the ledger kernel."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.models.party import BusinessPartner, PartnerType
from ledger_kernel.models.sequence import SequenceCounter
from ledger_kernel.models.tenant import ChartOfAccounts, CompanyCode, Tenant

__all__ = [
    "Account",
    "BusinessPartner",
    "ChartOfAccounts",
    "CompanyCode",
    "JournalEntry",
    "JournalLine",
    "PartnerType",
    "SequenceCounter",
    "Tenant",
    "import_all_models",
]


def import_all_models() -> None:
    """Register every kernel table on Base.metadata (idempotent).

    Importing this package already does so; the function gives
    create_tables() an explicit hook.
    """
