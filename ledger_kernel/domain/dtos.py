"""
DTOs -- immutable data crossing the service boundary.

Responsibility:
    Defines the inputs callers hand to the journal engine (TenantContext,
    LineSpec, EntrySpec) and the frozen read-side records returned by
    selectors (JournalEntryRecord, LineRecord, AccountInfo, OpenItemInfo,
    TrialBalanceRow).

Architecture position:
    Kernel > Domain -- pure, zero I/O.  from_model() class methods are the
    ORM -> DTO boundary converters and are only called from selectors and
    services.

Invariants enforced:
    - Callers never receive ORM entities: every read returns a frozen DTO.
    - TenantContext is explicit; there is no ambient "current tenant".

Data flow:
    EntrySpec -> JournalService.create_entry -> JournalEntry (ORM)
    JournalEntry (ORM) -> JournalEntryRecord.from_model -> caller
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_kernel.domain import calculations
from ledger_kernel.domain.chart import (
    AccountCategory,
    AccountSpec,
    AccountType,
    NormalBalance,
    SystemRole,
)
from ledger_kernel.domain.values import LineSide, OpenItemStatus, TransactionType

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account as AccountModel
    from ledger_kernel.models.journal import JournalEntry as JournalEntryModel
    from ledger_kernel.models.journal import JournalLine as JournalLineModel

__all__ = [
    "AccountInfo",
    "AccountSpec",
    "EntrySpec",
    "JournalEntryRecord",
    "LineRecord",
    "LineSpec",
    "OpenItemInfo",
    "PartnerInfo",
    "TenantContext",
    "TrialBalanceRow",
]


@dataclass(frozen=True)
class TenantContext:
    """
    Explicit tenant scope threaded through every engine call.

    Contract:
        tenant_id and company_code_id identify the ledger being read or
        written.  actor_id is recorded as created_by on new rows.
    """

    tenant_id: UUID
    company_code_id: UUID
    actor_id: UUID | None = None


@dataclass(frozen=True)
class LineSpec:
    """
    One requested debit or credit line.

    Either ``account_id`` or ``account_code`` identifies the account; a
    line with neither is rejected by the engine.  ``amount`` is in the
    entry currency; ``amount_base`` defaults to amount x exchange rate.
    """

    side: LineSide
    amount: Decimal
    account_id: UUID | None = None
    account_code: str | None = None
    memo: str | None = None
    cost_center: str | None = None
    profit_center: str | None = None
    business_area: str | None = None
    clears_line_id: UUID | None = None
    amount_base: Decimal | None = None

    @classmethod
    def debit(cls, account: UUID | str, amount: Decimal, **kwargs) -> LineSpec:
        return cls._for(LineSide.DEBIT, account, amount, **kwargs)

    @classmethod
    def credit(cls, account: UUID | str, amount: Decimal, **kwargs) -> LineSpec:
        return cls._for(LineSide.CREDIT, account, amount, **kwargs)

    @classmethod
    def _for(cls, side: LineSide, account: UUID | str, amount: Decimal, **kwargs) -> LineSpec:
        if isinstance(account, UUID):
            return cls(side=side, amount=amount, account_id=account, **kwargs)
        return cls(side=side, amount=amount, account_code=account, **kwargs)

    @property
    def is_debit(self) -> bool:
        return self.side == LineSide.DEBIT


@dataclass(frozen=True)
class EntrySpec:
    """
    A requested journal entry: header fields plus its lines.

    ``entry_number`` is allocated by the engine when omitted.  ``currency``
    defaults to the company code's base currency.
    """

    description: str
    lines: tuple[LineSpec, ...]
    entry_date: date | None = None
    posting_date: date | None = None
    entry_number: str | None = None
    transaction_type: TransactionType = TransactionType.JOURNAL_ENTRY
    currency: str | None = None
    exchange_rate: Decimal = Decimal("1")
    reverses_entry_id: UUID | None = None

    def __post_init__(self) -> None:
        # Accept any iterable of lines but store an immutable tuple
        object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class LineRecord:
    """Read-side view of a persisted journal line."""

    id: UUID
    line_number: int
    account_id: UUID
    account_code: str
    account_name: str
    side: LineSide
    amount: Decimal
    amount_base: Decimal
    memo: str | None = None
    cost_center: str | None = None
    profit_center: str | None = None
    business_area: str | None = None
    clears_line_id: UUID | None = None
    open_item_status: OpenItemStatus | None = None

    @property
    def is_debit(self) -> bool:
        return self.side == LineSide.DEBIT

    @classmethod
    def from_model(cls, model: JournalLineModel) -> LineRecord:
        return cls(
            id=model.id,
            line_number=model.line_number,
            account_id=model.account_id,
            account_code=model.account.code,
            account_name=model.account.name,
            side=model.side,
            amount=model.amount,
            amount_base=model.amount_base,
            memo=model.memo,
            cost_center=model.cost_center,
            profit_center=model.profit_center,
            business_area=model.business_area,
            clears_line_id=model.clears_line_id,
            open_item_status=model.open_item_status,
        )


@dataclass(frozen=True)
class JournalEntryRecord:
    """
    Read-side view of a persisted journal entry.

    Guarantees:
        - Immutable; lines ordered by line_number.
        - total_debits == total_credits within BALANCE_TOLERANCE for every
          record produced from a persisted entry.
    """

    id: UUID
    tenant_id: UUID
    company_code_id: UUID
    entry_number: str
    entry_date: date
    posting_date: date
    description: str
    transaction_type: TransactionType
    document_number: int
    currency: str
    exchange_rate: Decimal
    is_posted: bool
    created_at: datetime
    lines: tuple[LineRecord, ...] = field(default_factory=tuple)
    reverses_entry_id: UUID | None = None
    created_by_id: UUID | None = None

    @property
    def total_debits(self) -> Decimal:
        return calculations.total_debits(self.lines)

    @property
    def total_credits(self) -> Decimal:
        return calculations.total_credits(self.lines)

    @property
    def is_balanced(self) -> bool:
        return calculations.is_balanced(self.lines)

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> JournalEntryRecord:
        lines = tuple(
            LineRecord.from_model(line)
            for line in sorted(model.lines, key=lambda x: x.line_number)
        )
        return cls(
            id=model.id,
            tenant_id=model.tenant_id,
            company_code_id=model.company_code_id,
            entry_number=model.entry_number,
            entry_date=model.entry_date,
            posting_date=model.posting_date,
            description=model.description,
            transaction_type=model.transaction_type,
            document_number=model.document_number,
            currency=model.currency,
            exchange_rate=model.exchange_rate,
            is_posted=model.is_posted,
            created_at=model.created_at,
            lines=lines,
            reverses_entry_id=model.reverses_entry_id,
            created_by_id=model.created_by_id,
        )


@dataclass(frozen=True)
class AccountInfo:
    """Immutable snapshot of an account, including its current balance."""

    id: UUID
    code: str
    name: str
    account_type: AccountType
    category: AccountCategory
    normal_balance: NormalBalance
    balance: Decimal
    is_active: bool
    is_open_item_managed: bool
    level: int = 1
    system_role: SystemRole | None = None
    parent_id: UUID | None = None
    description: str | None = None

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            account_type=model.account_type,
            category=model.category,
            normal_balance=model.normal_balance,
            balance=model.balance,
            is_active=model.is_active,
            is_open_item_managed=model.is_open_item_managed,
            level=model.level,
            system_role=model.system_role,
            parent_id=model.parent_id,
            description=model.description,
        )


@dataclass(frozen=True)
class OpenItemInfo:
    """An uncleared (or partially cleared) line on an open-item account."""

    line_id: UUID
    entry_id: UUID
    entry_number: str
    entry_date: date
    account_id: UUID
    side: LineSide
    amount: Decimal
    amount_base: Decimal
    cleared_amount: Decimal
    status: OpenItemStatus
    revalued_amount_base: Decimal | None = None

    @property
    def remaining(self) -> Decimal:
        return self.amount - self.cleared_amount


@dataclass(frozen=True)
class TrialBalanceRow:
    """One account in a trial balance (debit-oriented)."""

    account_id: UUID
    code: str
    name: str
    category: AccountCategory
    debit_balance: Decimal
    credit_balance: Decimal


@dataclass(frozen=True)
class PartnerInfo:
    """Immutable snapshot of a business partner."""

    id: UUID
    partner_code: str
    name: str
    partner_type: str
    balance: Decimal
    is_active: bool
    email: str | None = None
    phone: str | None = None
    credit_limit: Decimal | None = None
    payment_terms_days: int | None = None
    reconciliation_account_id: UUID | None = None
    last_transaction_date: date | None = None
