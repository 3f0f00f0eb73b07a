"""
Shared helpers for document posting flows.

Used by ledger_modules/*/service.py for the steps every document shares:
numbering inside the write section, partner and account resolution, and
item line arithmetic.

Architecture: Modules layer.  Imports only from ledger_kernel.

Invariants enforced:
    - Accounts are resolved by SystemRole or by an explicit account id
      (partner reconciliation account, valuation class), never by name.
    - Item arithmetic is Decimal only; each item amount is rounded to
      cents with round_money() before it is summed.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import DISPLAY_TOLERANCE, ZERO, round_money, to_money
from ledger_kernel.domain.chart import SystemRole
from ledger_kernel.domain.numbering import next_document_number
from ledger_kernel.exceptions import DocumentValidationError
from ledger_kernel.models.account import Account
from ledger_kernel.models.party import BusinessPartner
from ledger_kernel.models.tenant import CompanyCode
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.partner_service import PartnerService

_HUNDRED = Decimal("100")


# =============================================================================
# Numbering
# =============================================================================


def next_number_in(
    session: Session,
    number_column,
    company_column,
    company_code_id: UUID,
    prefix: str,
    width: int,
) -> str:
    """
    Next ``prefix-NNNN`` number of a document table for one company code.

    Only unique when called inside the write_scope() that inserts the
    document.
    """
    existing = session.execute(
        select(number_column).where(company_column == company_code_id)
    ).scalars()
    return next_document_number(existing, prefix, width)


# =============================================================================
# Partner and account resolution
# =============================================================================


def require_partner(
    partners: PartnerService,
    company: CompanyCode,
    partner_id: UUID | None,
    *,
    document_type: str,
    customer: bool,
) -> BusinessPartner:
    """Load the partner of a document and check it can take that role."""
    if partner_id is None:
        raise DocumentValidationError(
            document_type, "Customer is required" if customer else "Vendor is required"
        )
    partner = partners.load(company.tenant_id, partner_id)
    if customer and not partner.is_customer:
        raise DocumentValidationError(document_type, f"{partner.partner_code} is not a customer")
    if not customer and not partner.is_vendor:
        raise DocumentValidationError(document_type, f"{partner.partner_code} is not a vendor")
    return partner


def partner_account(
    accounts: AccountService,
    company: CompanyCode,
    partner: BusinessPartner,
    role: SystemRole,
) -> Account:
    """
    Receivable or payable account of a partner.

    The partner's reconciliation account wins; otherwise the account that
    carries ``role`` in the company code.
    """
    if partner.reconciliation_account_id is not None:
        return accounts.load(company, partner.reconciliation_account_id)
    return accounts.load_by_role(company, role)


# =============================================================================
# Item arithmetic
# =============================================================================


@dataclass(frozen=True)
class ItemAmounts:
    """Amounts of one document item, each rounded to cents."""

    subtotal: Decimal
    discount: Decimal
    tax: Decimal

    @property
    def net(self) -> Decimal:
        return self.subtotal - self.discount

    @property
    def total(self) -> Decimal:
        return self.subtotal - self.discount + self.tax


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal

    @property
    def net(self) -> Decimal:
        return self.subtotal - self.discount


def item_amounts(
    quantity: Decimal,
    unit_price: Decimal,
    tax_rate: Decimal = ZERO,
    discount_percent: Decimal = ZERO,
) -> ItemAmounts:
    """
    subtotal = qty x price; discount = subtotal x pct / 100;
    tax = (subtotal - discount) x rate / 100.
    """
    subtotal = round_money(to_money(quantity) * to_money(unit_price))
    discount = round_money(subtotal * to_money(discount_percent) / _HUNDRED)
    tax = round_money((subtotal - discount) * to_money(tax_rate) / _HUNDRED)
    return ItemAmounts(subtotal=subtotal, discount=discount, tax=tax)


def document_totals(amounts: Iterable[ItemAmounts]) -> DocumentTotals:
    amounts = list(amounts)
    return DocumentTotals(
        subtotal=sum((a.subtotal for a in amounts), ZERO),
        discount=sum((a.discount for a in amounts), ZERO),
        tax=sum((a.tax for a in amounts), ZERO),
        total=sum((a.total for a in amounts), ZERO),
    )


def validate_items(document_type: str, items: Sequence, totals: DocumentTotals) -> None:
    """Item-level and total-level rules shared by sales and purchases."""
    if not items:
        raise DocumentValidationError(document_type, "At least one item is required")
    for index, item in enumerate(items, start=1):
        if to_money(item.quantity) <= ZERO:
            raise DocumentValidationError(document_type, f"item {index}: quantity must be positive")
        if to_money(item.unit_price) < ZERO:
            raise DocumentValidationError(document_type, f"item {index}: unit price cannot be negative")
        if not ZERO <= to_money(item.discount_percent) <= _HUNDRED:
            raise DocumentValidationError(
                document_type, f"item {index}: discount must be between 0 and 100 percent"
            )
        if to_money(item.tax_rate) < ZERO:
            raise DocumentValidationError(document_type, f"item {index}: tax rate cannot be negative")
    if totals.total < ZERO:
        raise DocumentValidationError(document_type, "Total amount must be non-negative")


def group_amounts(pairs: Iterable[tuple[UUID, Decimal]]) -> dict[UUID, Decimal]:
    """Sum amounts per account id, keeping first-seen order."""
    grouped: dict[UUID, Decimal] = {}
    for account_id, amount in pairs:
        grouped[account_id] = grouped.get(account_id, ZERO) + amount
    return grouped


# =============================================================================
# Payment progress
# =============================================================================


def is_fully_paid(total: Decimal, paid: Decimal) -> bool:
    return abs(total - paid) < DISPLAY_TOLERANCE


def settlement_status(total: Decimal, paid: Decimal, *, paid_status, partial_status, open_status):
    """Document status implied by how much of ``total`` is paid."""
    if is_fully_paid(total, paid):
        return paid_status
    if paid > ZERO:
        return partial_status
    return open_status


def check_payment_amount(document_type: str, total: Decimal, paid: Decimal, amount: Decimal) -> None:
    """0 <= paid + amount <= total, else DocumentValidationError."""
    after = paid + amount
    if after < ZERO or after > total:
        raise DocumentValidationError(
            document_type,
            f"Paid amount must be between 0 and total amount "
            f"(total {total}, already paid {paid}, payment {amount})",
        )
