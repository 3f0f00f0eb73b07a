"""
OpenItemService -- clearing status of receivable and payable lines.

Responsibility:
    Validates that a clearing line fits the open item it settles, keeps the
    open item's status in step with the cumulative cleared amount, reopens
    items when a clearing line is removed, revalues foreign-currency open
    items, and lists what is still open.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by JournalService inside the same write transaction as the
    lines it validates; read methods are used by reporting and by the
    document posting services.

Invariants enforced:
    - A clearing line and its target belong to the same tenant, the same
      account and the same currency, and sit on opposite sides.
    - The target is Open or Revalued when a clearing is added.
    - Cumulative cleared amount never exceeds the target amount; the target
      becomes Cleared exactly when it reaches it.
    - Revaluation only applies to open items posted in a currency other
      than the company base currency.

Failure modes:
    - LineNotFoundError, ClearingMismatchError, OpenItemStateError,
      ValidationFailedError.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.dtos import OpenItemInfo, TenantContext
from ledger_kernel.domain.values import OpenItemStatus
from ledger_kernel.exceptions import (
    ClearingMismatchError,
    LineNotFoundError,
    OpenItemStateError,
    ValidationFailedError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.journal import JournalEntry, JournalLine
from ledger_kernel.models.tenant import CompanyCode
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.tenant_service import TenantService

logger = get_logger("services.open_item")

_CLEARABLE = (OpenItemStatus.OPEN, OpenItemStatus.REVALUED)


@dataclass(frozen=True)
class ClearingRequest:
    """A not-yet-persisted line that wants to clear ``target_id``."""

    target_id: UUID
    account_id: UUID
    is_debit: bool
    amount: Decimal
    currency: str


class OpenItemService(BaseService):
    """Open-item bookkeeping for one session."""

    def __init__(self, session):
        super().__init__(session)
        self._tenants = TenantService(session)

    def _load_line(self, company: CompanyCode, line_id: UUID) -> JournalLine:
        line = self.session.get(JournalLine, line_id)
        if line is None or line.entry.tenant_id != company.tenant_id:
            raise LineNotFoundError(str(line_id))
        return line

    def cleared_amount(self, target_id: UUID, exclude_entry_id: UUID | None = None) -> Decimal:
        """Sum of the amounts of all lines that clear ``target_id``."""
        query = select(JournalLine.amount).where(JournalLine.clears_line_id == target_id)
        if exclude_entry_id is not None:
            query = query.where(JournalLine.journal_entry_id != exclude_entry_id)
        return sum(self.session.execute(query).scalars(), ZERO)

    def validate_clearings(
        self,
        company: CompanyCode,
        requests: Iterable[ClearingRequest],
        exclude_entry_id: UUID | None = None,
    ) -> None:
        """
        Check every clearing request before anything is written.

        ``exclude_entry_id`` leaves out clearings made by an entry that is
        about to be replaced (update_entry).
        """
        pending: dict[UUID, Decimal] = {}
        for req in requests:
            target = self.session.get(JournalLine, req.target_id)
            if target is None:
                raise LineNotFoundError(str(req.target_id))
            target_id = str(target.id)
            if target.entry.tenant_id != company.tenant_id:
                raise ClearingMismatchError(target_id, "open item belongs to another tenant")
            if target.account_id != req.account_id:
                raise ClearingMismatchError(target_id, "clearing line is on a different account")
            if target.is_debit == req.is_debit:
                raise ClearingMismatchError(target_id, "clearing line is on the same side")
            if target.entry.currency != req.currency:
                raise ClearingMismatchError(target_id, "clearing line is in a different currency")
            if target.open_item_status not in _CLEARABLE:
                status = target.open_item_status.value if target.open_item_status else None
                raise OpenItemStateError(target_id, status, "clear")

            cumulative = (
                pending.get(target.id)
                if target.id in pending
                else self.cleared_amount(target.id, exclude_entry_id)
            ) + req.amount
            if cumulative > target.amount:
                raise ClearingMismatchError(
                    target_id,
                    f"cleared amount {cumulative} exceeds open amount {target.amount}",
                )
            pending[target.id] = cumulative

    def refresh_status(self, target: JournalLine) -> OpenItemStatus | None:
        """Derive the target's status from what currently clears it."""
        if target.open_item_status is None:
            return None
        cleared = self.cleared_amount(target.id)
        if cleared >= target.amount:
            status = OpenItemStatus.CLEARED
        elif target.revalued_amount_base is not None:
            status = OpenItemStatus.REVALUED
        else:
            status = OpenItemStatus.OPEN
        if status != target.open_item_status:
            logger.info(
                "open_item_status_changed",
                extra={
                    "line_id": str(target.id),
                    "from_status": target.open_item_status.value,
                    "to_status": status.value,
                    "cleared_amount": cleared,
                },
            )
            target.open_item_status = status
        return status

    def apply_clearing(self, line: JournalLine) -> None:
        """Update the target of a freshly flushed clearing line."""
        self._require_write("apply_clearing")
        if line.clears_line_id is None:
            return
        target = self.session.get(JournalLine, line.clears_line_id)
        self.refresh_status(target)

    def restore_cleared(self, line: JournalLine) -> None:
        """
        Reopen the target of a clearing line that is being removed.

        Call before the line is deleted; the line's own amount is left out.
        """
        self._require_write("restore_cleared")
        if line.clears_line_id is None:
            return
        target = self.session.get(JournalLine, line.clears_line_id)
        if target is None or target.open_item_status is None:
            return
        remaining = self.cleared_amount(target.id) - line.amount
        if remaining < target.amount and target.open_item_status == OpenItemStatus.CLEARED:
            reopened = (
                OpenItemStatus.REVALUED
                if target.revalued_amount_base is not None
                else OpenItemStatus.OPEN
            )
            target.open_item_status = reopened
            logger.info(
                "open_item_reopened",
                extra={"line_id": str(target.id), "to_status": reopened.value},
            )

    def revalue(self, ctx: TenantContext, line_id: UUID, new_amount_base: Decimal) -> OpenItemInfo:
        """
        Record a new base-currency value for a foreign-currency open item.

        The posted amount_base and the account balance are unchanged; the
        adjustment posting is a separate journal entry.
        """
        company = self._tenants.require(ctx, "revalue_open_item")
        self._require_write("revalue")
        line = self._load_line(company, line_id)

        if line.open_item_status not in _CLEARABLE:
            status = line.open_item_status.value if line.open_item_status else None
            raise OpenItemStateError(str(line.id), status, "revalue")
        if line.entry.currency == company.base_currency:
            raise ValidationFailedError(
                f"Line {line.id} is in the base currency {company.base_currency}; "
                "only foreign-currency open items can be revalued"
            )

        line.revalued_amount_base = new_amount_base
        line.open_item_status = OpenItemStatus.REVALUED
        self.session.flush()
        logger.info(
            "open_item_revalued",
            extra={
                "line_id": str(line.id),
                "amount_base": line.amount_base,
                "revalued_amount_base": new_amount_base,
            },
        )
        return self._to_info(line)

    def open_items(self, ctx: TenantContext, account_id: UUID | None = None) -> list[OpenItemInfo]:
        """Lines of the company code that are Open or Revalued, oldest first."""
        company = self._tenants.require(ctx, "open_items")
        query = (
            select(JournalLine)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalEntry.company_code_id == company.id,
                JournalLine.open_item_status.in_(_CLEARABLE),
            )
            .order_by(JournalEntry.entry_date, JournalEntry.entry_number, JournalLine.line_number)
        )
        if account_id is not None:
            query = query.where(JournalLine.account_id == account_id)
        return [self._to_info(line) for line in self.session.execute(query).scalars()]

    def _to_info(self, line: JournalLine) -> OpenItemInfo:
        return OpenItemInfo(
            line_id=line.id,
            entry_id=line.journal_entry_id,
            entry_number=line.entry.entry_number,
            entry_date=line.entry.entry_date,
            account_id=line.account_id,
            side=line.side,
            amount=line.amount,
            amount_base=line.amount_base,
            cleared_amount=self.cleared_amount(line.id),
            status=line.open_item_status,
            revalued_amount_base=line.revalued_amount_base,
        )
