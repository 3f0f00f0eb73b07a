"""
JournalService -- the journal engine.

Responsibility:
    Validates and persists balanced journal entries (header plus lines),
    replaces and deletes them, creates reversals, and allocates entry
    numbers.  Every persisted line moves its account balance through
    LedgerService and its open-item state through OpenItemService.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by the presentation layer and by the document posting services
    of ledger_modules, always inside write_scope() for mutations.

Invariants enforced:
    - Balance: an entry is accepted only if abs(debits - credits) <
      BALANCE_TOLERANCE on its entry-currency amounts, and again on its
      base amounts.  The engine never adjusts an imbalance; the only
      adjustment is the base-currency rounding remainder of converted
      amounts, which goes to the largest line.
    - Validation precedes writes: line count, positive amounts, account
      resolution, activity, balance and clearing checks all run before the
      header is added to the session.
    - Atomicity: header and lines are flushed inside the caller's write
      transaction; any exception rolls back all of it.
    - Replace-in-place: update_entry removes every old line and inserts the
      new set; it never patches a subset of lines.
    - Entry numbers are max(suffix) + 1 within the company code, computed
      while the write lock is held.
    - Deleting or replacing an entry reverts the balance effect of its
      lines; an entry whose lines are cleared by other entries, or that is
      the posting of a business document, cannot be deleted or replaced.

Failure modes:
    - InvalidEntryError, UnbalancedEntryError, AccountNotFoundError,
      AccountInactiveError, ClearingMismatchError, OpenItemStateError,
      LineNotFoundError, EntryNotFoundError, EntryAlreadyReversedError,
      EntryReferencedError, ValidationFailedError, InvalidCurrencyError.
    - RuntimeError when a mutating method runs outside write_scope().
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import MONEY_DECIMAL_PLACES, ZERO, round_money, to_money, validate_currency
from ledger_kernel.domain.calculations import is_balanced, total_credits, total_debits
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import EntrySpec, JournalEntryRecord, LineSpec, TenantContext
from ledger_kernel.domain.numbering import next_document_number
from ledger_kernel.domain.values import LineSide, OpenItemStatus
from ledger_kernel.exceptions import (
    AccountInactiveError,
    EntryAlreadyReversedError,
    EntryNotFoundError,
    EntryReferencedError,
    InvalidEntryError,
    UnbalancedEntryError,
    ValidationFailedError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.models.tenant import CompanyCode
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.ledger_service import LedgerService
from ledger_kernel.services.open_item_service import ClearingRequest, OpenItemService
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.services.tenant_service import TenantService

logger = get_logger("services.journal")

DEFAULT_ENTRY_PREFIX = "JE"
DEFAULT_NUMBER_WIDTH = 4


@dataclass(frozen=True)
class _ResolvedLine:
    spec: LineSpec
    account: Account
    amount: Decimal
    amount_base: Decimal

    @property
    def side(self) -> LineSide:
        return self.spec.side


class JournalService(BaseService):
    """
    Journal engine for one session.

    Contract:
        Mutations require a session from write_scope().  They flush and
        never commit.  Reads return frozen JournalEntryRecord DTOs.

    Guarantees:
        - Every entry created or updated here is balanced.
        - Balances of the touched accounts reflect exactly the lines that
          exist when the transaction commits.
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        entry_prefix: str = DEFAULT_ENTRY_PREFIX,
        number_width: int = DEFAULT_NUMBER_WIDTH,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._entry_prefix = entry_prefix
        self._number_width = number_width
        self._tenants = TenantService(session)
        self._accounts = AccountService(session)
        self._ledger = LedgerService(session)
        self._open_items = OpenItemService(session)
        self._sequences = SequenceService(session)
        self._selector = JournalSelector(session)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _resolve_account(self, company: CompanyCode, line: LineSpec, index: int) -> Account:
        if line.account_id is not None:
            account = self._accounts.load(company, line.account_id)
        elif line.account_code:
            account = self._accounts.load_by_code(company, line.account_code)
        else:
            raise InvalidEntryError(f"line {index} has no account")
        if not account.is_active:
            raise AccountInactiveError(str(account.id))
        return account

    def _validate(
        self,
        company: CompanyCode,
        spec: EntrySpec,
        exclude_entry_id: UUID | None = None,
    ) -> tuple[str, Decimal, list[_ResolvedLine]]:
        """Run every check; returns (currency, exchange_rate, resolved lines)."""
        if len(spec.lines) < 2:
            raise InvalidEntryError(
                f"an entry needs at least two lines, got {len(spec.lines)}"
            )

        currency = validate_currency(spec.currency or company.base_currency)
        rate = to_money(spec.exchange_rate)
        if rate <= ZERO:
            raise InvalidEntryError(f"exchange rate must be positive, got {rate}")

        resolved: list[_ResolvedLine] = []
        for index, line in enumerate(spec.lines, start=1):
            amount = to_money(line.amount)
            if amount <= ZERO:
                raise InvalidEntryError(f"line {index} amount must be positive, got {amount}")
            account = self._resolve_account(company, line, index)
            if line.amount_base is not None:
                amount_base = to_money(line.amount_base)
                if amount_base <= ZERO:
                    raise InvalidEntryError(
                        f"line {index} base amount must be positive, got {amount_base}"
                    )
            else:
                amount_base = round_money(amount * rate, decimal_places=MONEY_DECIMAL_PLACES)
            resolved.append(_ResolvedLine(line, account, amount, amount_base))

        # INVARIANT: debits == credits within BALANCE_TOLERANCE, in the entry currency
        if not is_balanced(resolved):
            raise UnbalancedEntryError(str(total_debits(resolved)), str(total_credits(resolved)))

        if all(line.amount_base is None for line in spec.lines):
            resolved = absorb_base_remainder(resolved)
        base_sides = resolved_side_amounts(resolved)
        if not is_balanced(base_sides):
            raise UnbalancedEntryError(
                str(total_debits(base_sides)), str(total_credits(base_sides))
            )

        self._open_items.validate_clearings(
            company,
            (
                ClearingRequest(
                    target_id=r.spec.clears_line_id,
                    account_id=r.account.id,
                    is_debit=r.spec.is_debit,
                    amount=r.amount,
                    currency=currency,
                )
                for r in resolved
                if r.spec.clears_line_id is not None
            ),
            exclude_entry_id=exclude_entry_id,
        )
        return currency, rate, resolved

    # ------------------------------------------------------------------
    # Numbering
    # ------------------------------------------------------------------

    def _next_entry_number(self, company: CompanyCode) -> str:
        existing = self.session.execute(
            select(JournalEntry.entry_number).where(
                JournalEntry.company_code_id == company.id
            )
        ).scalars()
        return next_document_number(existing, self._entry_prefix, self._number_width)

    def generate_entry_number(self, ctx: TenantContext) -> str:
        """
        Next entry number of the company code (``JE-0001`` style).

        Only guaranteed unique when called inside the write_scope() that
        also inserts the entry; create_entry() does exactly that.
        """
        company = self._tenants.require(ctx, "generate_entry_number")
        return self._next_entry_number(company)

    # ------------------------------------------------------------------
    # Persistence steps
    # ------------------------------------------------------------------

    def _insert_header(
        self,
        ctx: TenantContext,
        company: CompanyCode,
        spec: EntrySpec,
        currency: str,
        rate: Decimal,
    ) -> JournalEntry:
        if spec.entry_number:
            taken = self.session.execute(
                select(JournalEntry.id).where(
                    JournalEntry.company_code_id == company.id,
                    JournalEntry.entry_number == spec.entry_number,
                )
            ).scalar_one_or_none()
            if taken is not None:
                raise ValidationFailedError(f"Entry number {spec.entry_number} already exists")
            entry_number = spec.entry_number
        else:
            entry_number = self._next_entry_number(company)

        entry_date = spec.entry_date or self._clock.today()
        entry = JournalEntry(
            tenant_id=company.tenant_id,
            company_code_id=company.id,
            entry_number=entry_number,
            entry_date=entry_date,
            posting_date=spec.posting_date or entry_date,
            description=spec.description or "",
            transaction_type=spec.transaction_type,
            document_number=self._sequences.next_value(
                company.id,
                SequenceService.document_series(spec.transaction_type.value),
            ),
            currency=currency,
            exchange_rate=rate,
            is_posted=True,
            reverses_entry_id=spec.reverses_entry_id,
            created_by_id=ctx.actor_id,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def _insert_lines(self, entry: JournalEntry, resolved: list[_ResolvedLine]) -> None:
        for number, r in enumerate(resolved, start=1):
            status = None
            if r.account.is_open_item_managed:
                # A settling line is consumed by its target, not left open
                status = (
                    OpenItemStatus.CLEARED
                    if r.spec.clears_line_id is not None
                    else OpenItemStatus.OPEN
                )
            line = JournalLine(
                line_number=number,
                account_id=r.account.id,
                side=r.spec.side,
                amount=r.amount,
                amount_base=r.amount_base,
                memo=r.spec.memo,
                cost_center=r.spec.cost_center,
                profit_center=r.spec.profit_center,
                business_area=r.spec.business_area,
                clears_line_id=r.spec.clears_line_id,
                open_item_status=status,
                created_by_id=entry.created_by_id,
            )
            line.account = r.account
            entry.lines.append(line)
        self.session.flush()

        for line in entry.lines:
            self._ledger.post_line(line, line.account)
            self._open_items.apply_clearing(line)
        self.session.flush()

    def _remove_lines(self, entry: JournalEntry) -> None:
        """Revert balance and clearing effects, then delete every line."""
        for line in list(entry.lines):
            self._open_items.restore_cleared(line)
            self._ledger.unpost_line(line, line.account)
        entry.lines.clear()
        self.session.flush()

    def _load(self, company: CompanyCode, entry_id: UUID) -> JournalEntry:
        entry = self.session.get(JournalEntry, entry_id)
        if entry is None or entry.company_code_id != company.id:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def _refuse_if_cleared_by_others(self, entry: JournalEntry, action: str) -> None:
        line_ids = [line.id for line in entry.lines]
        clearing = self.session.execute(
            select(JournalLine.id).where(
                JournalLine.clears_line_id.in_(line_ids),
                JournalLine.journal_entry_id != entry.id,
            )
        ).first()
        if clearing is not None:
            raise EntryReferencedError(
                str(entry.id),
                f"cannot {action}: its open items are cleared by line {clearing[0]}",
            )

    def _refuse_if_document_owned(self, entry: JournalEntry, action: str) -> None:
        """
        Refuse when a business-document row (sale, purchase, payment)
        still points at the entry.  Document tables are found through
        their foreign keys to journal_entries, so the kernel needs no
        import of ledger_modules.
        """
        kernel_tables = {JournalEntry.__table__, JournalLine.__table__}
        for table in JournalEntry.metadata.sorted_tables:
            if table in kernel_tables:
                continue
            for fk in table.foreign_keys:
                if not fk.references(JournalEntry.__table__):
                    continue
                owner = self.session.execute(
                    select(fk.parent).where(fk.parent == entry.id).limit(1)
                ).first()
                if owner is not None:
                    raise EntryReferencedError(
                        str(entry.id),
                        f"cannot {action}: it is the posting of a {table.name} row; "
                        "delete the document instead",
                    )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def create_entry(self, ctx: TenantContext, spec: EntrySpec) -> UUID:
        """
        Validate and persist a balanced journal entry.

        Preconditions: session from write_scope().
        Postconditions: header, lines, balance updates and open-item
            updates are flushed; nothing is written if validation fails.

        Returns:
            The id of the new entry.
        """
        with LogContext.bind_tenant(ctx):
            company = self._tenants.require(ctx, "create_entry")
            self._require_write("create_entry")
            currency, rate, resolved = self._validate(company, spec)

            entry = self._insert_header(ctx, company, spec, currency, rate)
            self._insert_lines(entry, resolved)

            logger.info(
                "journal_entry_created",
                extra={
                    "entry_id": str(entry.id),
                    "entry_number": entry.entry_number,
                    "transaction_type": entry.transaction_type.value,
                    "document_number": entry.document_number,
                    "line_count": len(resolved),
                    "total_debits": entry.total_debits,
                },
            )
            return entry.id

    def update_entry(self, ctx: TenantContext, entry_id: UUID, spec: EntrySpec) -> UUID:
        """
        Replace the header fields and all lines of an entry.

        Old lines are unposted and deleted, then the new set is inserted
        and posted, in the caller's single write transaction.  The
        transaction type and document number are kept.
        """
        with LogContext.bind_tenant(ctx, entry_id=entry_id):
            company = self._tenants.require(ctx, "update_entry")
            self._require_write("update_entry")
            entry = self._load(company, entry_id)
            self._refuse_if_document_owned(entry, "update")

            if spec.transaction_type != entry.transaction_type:
                raise InvalidEntryError(
                    f"transaction type cannot change from {entry.transaction_type.value} "
                    f"to {spec.transaction_type.value}"
                )
            currency, rate, resolved = self._validate(company, spec, exclude_entry_id=entry.id)
            self._refuse_if_cleared_by_others(entry, "update")

            if spec.entry_number and spec.entry_number != entry.entry_number:
                taken = self.session.execute(
                    select(JournalEntry.id).where(
                        JournalEntry.company_code_id == company.id,
                        JournalEntry.entry_number == spec.entry_number,
                    )
                ).scalar_one_or_none()
                if taken is not None:
                    raise ValidationFailedError(
                        f"Entry number {spec.entry_number} already exists"
                    )
                entry.entry_number = spec.entry_number

            self._remove_lines(entry)

            entry.description = spec.description or ""
            if spec.entry_date is not None:
                entry.entry_date = spec.entry_date
            entry.posting_date = spec.posting_date or entry.entry_date
            entry.currency = currency
            entry.exchange_rate = rate
            self._insert_lines(entry, resolved)

            logger.info(
                "journal_entry_updated",
                extra={
                    "entry_id": str(entry.id),
                    "entry_number": entry.entry_number,
                    "line_count": len(resolved),
                },
            )
            return entry.id

    def delete_entry(self, ctx: TenantContext, entry_id: UUID) -> None:
        """
        Delete an entry and its lines, reverting their balance effect.

        Raises:
            EntryReferencedError: another entry clears one of its lines, or
                a sale, purchase or payment owns the entry.
        """
        with LogContext.bind_tenant(ctx, entry_id=entry_id):
            company = self._tenants.require(ctx, "delete_entry")
            self._require_write("delete_entry")
            entry = self._load(company, entry_id)
            self._refuse_if_document_owned(entry, "delete")
            self._refuse_if_cleared_by_others(entry, "delete")

            entry_number = entry.entry_number
            self._remove_lines(entry)
            self.session.delete(entry)
            self.session.flush()
            logger.info(
                "journal_entry_deleted",
                extra={"entry_id": str(entry_id), "entry_number": entry_number},
            )

    def reverse_entry(
        self,
        ctx: TenantContext,
        entry_id: UUID,
        reversal_date: date | None = None,
        description: str | None = None,
    ) -> UUID:
        """
        Create a new entry that mirrors every line of ``entry_id``.

        The original stays untouched apart from its open items: an
        uncleared open item of the original is cleared by its mirror line.

        Raises:
            EntryAlreadyReversedError: a reversal already exists.
            EntryReferencedError: the entry's lines take part in clearing.
        """
        with LogContext.bind_tenant(ctx, entry_id=entry_id):
            company = self._tenants.require(ctx, "reverse_entry")
            self._require_write("reverse_entry")
            original = self._load(company, entry_id)

            existing = self.session.execute(
                select(JournalEntry.id).where(JournalEntry.reverses_entry_id == original.id)
            ).scalar_one_or_none()
            if existing is not None:
                raise EntryAlreadyReversedError(str(original.id), str(existing))
            if any(line.clears_line_id is not None for line in original.lines):
                raise EntryReferencedError(
                    str(original.id),
                    "cannot reverse: it clears open items; delete it instead",
                )
            self._refuse_if_cleared_by_others(original, "reverse")

            lines = tuple(
                LineSpec(
                    side=line.side.opposite,
                    amount=line.amount,
                    amount_base=line.amount_base,
                    account_id=line.account_id,
                    memo=line.memo,
                    cost_center=line.cost_center,
                    profit_center=line.profit_center,
                    business_area=line.business_area,
                    clears_line_id=(
                        line.id
                        if line.open_item_status in (OpenItemStatus.OPEN, OpenItemStatus.REVALUED)
                        else None
                    ),
                )
                for line in original.lines
            )
            reversal = EntrySpec(
                description=description or f"Reversal of {original.entry_number}",
                lines=lines,
                entry_date=reversal_date or self._clock.today(),
                transaction_type=original.transaction_type,
                currency=original.currency,
                exchange_rate=original.exchange_rate,
                reverses_entry_id=original.id,
            )
            reversal_id = self.create_entry(ctx, reversal)
            logger.info(
                "journal_entry_reversed",
                extra={"entry_id": str(original.id), "reversal_entry_id": str(reversal_id)},
            )
            return reversal_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_entry(self, ctx: TenantContext, entry_id: UUID) -> JournalEntryRecord:
        company = self._tenants.require(ctx, "fetch_entry")
        record = self._selector.get_entry(company.id, entry_id)
        if record is None:
            raise EntryNotFoundError(str(entry_id))
        return record

    def fetch_all_entries(self, ctx: TenantContext) -> list[JournalEntryRecord]:
        """All entries of the company code, newest entry date first."""
        company = self._tenants.require(ctx, "fetch_all_entries")
        return self._selector.list_entries(company.id)


def resolved_side_amounts(resolved: list[_ResolvedLine]) -> list[LineSpec]:
    """Lines carrying their base amounts, for the balance check."""
    return [
        LineSpec(side=r.spec.side, amount=r.amount_base, account_id=r.account.id)
        for r in resolved
    ]


def absorb_base_remainder(resolved: list[_ResolvedLine]) -> list[_ResolvedLine]:
    """
    Move the per-line rounding remainder of converted base amounts onto
    the line with the largest base amount, so base debits equal base
    credits whenever the entry-currency amounts balance.
    """
    sides = resolved_side_amounts(resolved)
    remainder = total_debits(sides) - total_credits(sides)
    if remainder == ZERO:
        return resolved
    largest = max(range(len(resolved)), key=lambda i: resolved[i].amount_base)
    line = resolved[largest]
    adjusted = line.amount_base - remainder if line.spec.is_debit else line.amount_base + remainder
    if adjusted <= ZERO:
        return resolved
    result = list(resolved)
    result[largest] = replace(line, amount_base=adjusted)
    return result
