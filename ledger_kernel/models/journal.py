"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries (headers) and journal
    lines -- the single source of financial truth.
Architecture position: Kernel > Models.  May import from db/ and the pure
    enums of domain/ only.

Invariants enforced:
    - Balance (debits == credits within BALANCE_TOLERANCE) is checked by
      JournalService before anything is flushed; is_balanced here is a
      read-side convenience.
    - entry_number is unique per company code (uq_journal_number_company).
    - (document_number, company_code_id, transaction_type) is unique
      (uq_journal_document_number).
    - (journal_entry_id, line_number) is unique (uq_journal_line_number).
    - Header and lines are written together: lines cascade with their
      header (ORM delete-orphan and ON DELETE CASCADE).

Failure modes:
    - IntegrityError on duplicate numbers (only reachable when a caller
      supplies an explicit entry_number that is already taken).
    - IntegrityError when deleting a line that another line clears.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import RATE_DECIMAL_PLACES, ZERO, DecimalText, StrictEnum
from ledger_kernel.domain.values import LineSide, OpenItemStatus, TransactionType

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class JournalEntry(TrackedBase):
    """
    Journal entry header.

    Contract:
        A JournalEntry owns two or more lines whose debit and credit totals
        are equal.  A reversal is a new entry pointing at the original via
        reverses_entry_id; the original is never mutated by a reversal.

    Guarantees:
        - entry_number follows the PREFIX-NNNN series of its company code.
        - exchange_rate converts line amounts into base currency
          (amount_base = amount x exchange_rate).
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint(
            "company_code_id", "entry_number", name="uq_journal_number_company"
        ),
        UniqueConstraint(
            "document_number",
            "company_code_id",
            "transaction_type",
            name="uq_journal_document_number",
        ),
        Index("idx_journal_tenant", "tenant_id"),
        Index("idx_journal_entry_date", "entry_date"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("company_codes.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Human-readable number, e.g. JE-0001
    entry_number: Mapped[str] = mapped_column(String(30), nullable=False)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    posting_date: Mapped[date] = mapped_column(Date, nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    transaction_type: Mapped[TransactionType] = mapped_column(
        StrictEnum(TransactionType, length=10),
        nullable=False,
        default=TransactionType.JOURNAL_ENTRY,
    )

    # Counter-allocated number per (company code, transaction type)
    document_number: Mapped[int] = mapped_column(Integer, nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    exchange_rate: Mapped[Decimal] = mapped_column(
        DecimalText(RATE_DECIMAL_PLACES),
        nullable=False,
        default=Decimal("1"),
    )

    is_posted: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Logical link only: the reversed entry is not owned by the reversal
    reverses_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id", ondelete="SET NULL"),
        nullable=True,
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.line_number",
        lazy="selectin",
    )

    reverses: Mapped["JournalEntry | None"] = relationship(
        remote_side="JournalEntry.id",
        foreign_keys=[reverses_entry_id],
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} {self.transaction_type.value}>"

    @property
    def total_debits(self) -> Decimal:
        return sum(
            (line.amount for line in self.lines if line.side == LineSide.DEBIT),
            ZERO,
        )

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (line.amount for line in self.lines if line.side == LineSide.CREDIT),
            ZERO,
        )

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class JournalLine(TrackedBase):
    """
    One debit or credit posting within a journal entry.

    Contract:
        amount is strictly positive and in the entry currency; side gives
        the direction.  clears_line_id, when set, names an open item on the
        same account and the opposite side that this line settles.

    Guarantees:
        - open_item_status is set iff the account is open-item managed.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        UniqueConstraint(
            "journal_entry_id", "line_number", name="uq_journal_line_number"
        ),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
        Index("idx_line_clears", "clears_line_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
    )

    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    side: Mapped[LineSide] = mapped_column(
        StrictEnum(LineSide, length=10),
        nullable=False,
    )

    # Transaction currency
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    # Company base currency
    amount_base: Mapped[Decimal] = mapped_column(nullable=False)

    memo: Mapped[str | None] = mapped_column(String(500), nullable=True)

    cost_center: Mapped[str | None] = mapped_column(String(50), nullable=True)

    profit_center: Mapped[str | None] = mapped_column(String(50), nullable=True)

    business_area: Mapped[str | None] = mapped_column(String(50), nullable=True)

    clears_line_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_lines.id"),
        nullable=True,
    )

    open_item_status: Mapped[OpenItemStatus | None] = mapped_column(
        StrictEnum(OpenItemStatus, length=10),
        nullable=True,
    )

    # Base-currency value after revaluation; amount_base keeps the posted value
    revalued_amount_base: Mapped[Decimal | None] = mapped_column(nullable=True)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<JournalLine {self.line_number} {self.side.value} {self.amount}>"

    @property
    def is_debit(self) -> bool:
        return self.side == LineSide.DEBIT
