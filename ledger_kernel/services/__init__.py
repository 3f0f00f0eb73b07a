"""Services of the ledger kernel (write side)."""

from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.ledger_service import LedgerService
from ledger_kernel.services.open_item_service import ClearingRequest, OpenItemService
from ledger_kernel.services.partner_service import PartnerService
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.services.tenant_service import TenantService

__all__ = [
    "AccountService",
    "ClearingRequest",
    "JournalService",
    "LedgerService",
    "OpenItemService",
    "PartnerService",
    "SequenceService",
    "TenantService",
]
