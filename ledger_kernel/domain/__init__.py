"""Pure domain core: chart rules, balance arithmetic, calculations, DTOs."""

from ledger_kernel.domain.chart import (
    AccountCategory,
    AccountSpec,
    AccountType,
    NormalBalance,
    SystemRole,
)
from ledger_kernel.domain.dtos import (
    AccountInfo,
    EntrySpec,
    JournalEntryRecord,
    LineRecord,
    LineSpec,
    TenantContext,
)
from ledger_kernel.domain.values import LineSide, OpenItemStatus, TransactionType

__all__ = [
    "AccountCategory",
    "AccountInfo",
    "AccountSpec",
    "AccountType",
    "EntrySpec",
    "JournalEntryRecord",
    "LineRecord",
    "LineSide",
    "LineSpec",
    "NormalBalance",
    "OpenItemStatus",
    "SystemRole",
    "TenantContext",
    "TransactionType",
]
