"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only access to journal entries and their lines, always
    scoped to one company code.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Every query filters by company_code_id; an id from another company
      code is indistinguishable from a missing one.
    - Listings are ordered by entry_date descending, then entry_number
      descending, so the newest entry comes first.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import JournalEntryRecord, LineRecord
from ledger_kernel.domain.values import TransactionType
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.selectors.base import BaseSelector


class JournalSelector(BaseSelector):
    """Queries over journal entries of one company code."""

    def get_entry(self, company_code_id: UUID, entry_id: UUID) -> JournalEntryRecord | None:
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.id == entry_id,
                JournalEntry.company_code_id == company_code_id,
            )
        ).scalar_one_or_none()
        return JournalEntryRecord.from_model(entry) if entry else None

    def get_by_number(self, company_code_id: UUID, entry_number: str) -> JournalEntryRecord | None:
        entry = self.session.execute(
            select(JournalEntry).where(
                JournalEntry.company_code_id == company_code_id,
                JournalEntry.entry_number == entry_number,
            )
        ).scalar_one_or_none()
        return JournalEntryRecord.from_model(entry) if entry else None

    def list_entries(
        self,
        company_code_id: UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        transaction_type: TransactionType | None = None,
    ) -> list[JournalEntryRecord]:
        """Entries of the company code, newest first, optionally filtered."""
        query = select(JournalEntry).where(JournalEntry.company_code_id == company_code_id)
        if start_date is not None:
            query = query.where(JournalEntry.entry_date >= start_date)
        if end_date is not None:
            query = query.where(JournalEntry.entry_date <= end_date)
        if transaction_type is not None:
            query = query.where(JournalEntry.transaction_type == transaction_type)
        query = query.order_by(JournalEntry.entry_date.desc(), JournalEntry.entry_number.desc())
        return [JournalEntryRecord.from_model(e) for e in self.session.execute(query).scalars()]

    def lines_for_account(self, company_code_id: UUID, account_id: UUID) -> list[LineRecord]:
        """Every line posted to an account, in posting order."""
        lines = self.session.execute(
            select(JournalLine)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.company_code_id == company_code_id,
                JournalLine.account_id == account_id,
            )
            .order_by(JournalEntry.entry_date, JournalEntry.entry_number, JournalLine.line_number)
        ).scalars()
        return [LineRecord.from_model(line) for line in lines]

    def reversal_of(self, entry_id: UUID) -> UUID | None:
        """Id of the entry that reverses ``entry_id``, if any."""
        return self.session.execute(
            select(JournalEntry.id).where(JournalEntry.reverses_entry_id == entry_id)
        ).scalar_one_or_none()
