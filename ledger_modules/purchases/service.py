"""
Purchases Module Service (``ledger_modules.purchases.service``).

Thin glue layer that:
1. Prices the items of a purchase
2. Resolves inventory (valuation class or INVENTORY role), tax and payable
   accounts
3. Builds the BILL posting (``profiles.purchase_entry``) for the journal
   engine
4. Persists the purchase, receives stock and raises the vendor's balance

Transaction boundary: the caller's write_scope(); everything above is one
transaction.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_config.loader import NumberingSettings
from ledger_kernel.db.types import ZERO, to_money
from ledger_kernel.domain.chart import SystemRole
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import TenantContext
from ledger_kernel.domain.values import LineSide
from ledger_kernel.exceptions import DocumentNotFoundError, DocumentValidationError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.journal import JournalLine
from ledger_kernel.models.tenant import CompanyCode
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.partner_service import PartnerService
from ledger_kernel.services.tenant_service import TenantService
from ledger_modules._posting_helpers import (
    check_payment_amount,
    document_totals,
    group_amounts,
    item_amounts,
    next_number_in,
    partner_account,
    require_partner,
    settlement_status,
    validate_items,
)
from ledger_modules.inventory.service import InventoryService
from ledger_modules.purchases.models import PurchaseInfo, PurchaseSpec, PurchaseStatus
from ledger_modules.purchases.orm import Purchase, PurchaseItem
from ledger_modules.purchases.profiles import purchase_entry

logger = get_logger("modules.purchases.service")

DOCUMENT_TYPE = "Purchase"


class PurchaseService(BaseService):
    """Vendor purchases and their BILL postings."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        numbering: NumberingSettings | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._numbering = numbering or NumberingSettings()
        self._tenants = TenantService(session)
        self._accounts = AccountService(session)
        self._partners = PartnerService(session)
        self._journal = JournalService(
            session,
            clock=self._clock,
            entry_prefix=self._numbering.entry_prefix,
            number_width=self._numbering.entry_width,
        )
        self._inventory = InventoryService(session, journal=self._journal)

    def load(self, company: CompanyCode, purchase_id: UUID) -> Purchase:
        purchase = self.session.get(Purchase, purchase_id)
        if purchase is None or purchase.company_code_id != company.id:
            raise DocumentNotFoundError(DOCUMENT_TYPE, str(purchase_id))
        return purchase

    def check_payment(self, purchase: Purchase, amount: Decimal) -> None:
        check_payment_amount(
            DOCUMENT_TYPE, purchase.total_amount, purchase.paid_amount, to_money(amount)
        )

    def register_payment(self, purchase: Purchase, amount: Decimal) -> PurchaseStatus:
        """Add ``amount`` (negative to undo) to paid_amount; update status."""
        self._require_write("register_payment")
        self.check_payment(purchase, amount)
        purchase.paid_amount = purchase.paid_amount + to_money(amount)
        open_status = (
            purchase.status
            if purchase.status not in (PurchaseStatus.PAID, PurchaseStatus.PARTIALLY_PAID)
            else PurchaseStatus.RECEIVED
        )
        purchase.status = settlement_status(
            purchase.total_amount,
            purchase.paid_amount,
            paid_status=PurchaseStatus.PAID,
            partial_status=PurchaseStatus.PARTIALLY_PAID,
            open_status=open_status,
        )
        logger.info(
            "purchase_payment_registered",
            extra={
                "purchase_number": purchase.purchase_number,
                "amount": to_money(amount),
                "paid_amount": purchase.paid_amount,
                "status": purchase.status.value,
            },
        )
        return purchase.status

    def _next_number(self, company: CompanyCode) -> str:
        return next_number_in(
            self.session,
            Purchase.purchase_number,
            Purchase.company_code_id,
            company.id,
            self._numbering.purchase_prefix,
            self._numbering.invoice_width,
        )

    def generate_purchase_number(self, ctx: TenantContext) -> str:
        company = self._tenants.require(ctx, "generate_purchase_number")
        return self._next_number(company)

    def create_purchase(self, ctx: TenantContext, spec: PurchaseSpec) -> PurchaseInfo:
        """
        Record a purchase and post it.

        Raises:
            DocumentValidationError: no vendor, no items, negative total,
                bad item values, duplicate number.
            RoleAccountNotFoundError: INVENTORY, TAX_PAYABLE or
                ACCOUNTS_PAYABLE missing where needed.
        """
        with LogContext.bind_tenant(ctx):
            company = self._tenants.require(ctx, "create_purchase")
            self._require_write("create_purchase")
            vendor = require_partner(
                self._partners, company, spec.vendor_id, document_type=DOCUMENT_TYPE, customer=False
            )

            priced = [
                (item, item_amounts(item.quantity, item.unit_price, item.tax_rate, item.discount_percent))
                for item in spec.items
            ]
            totals = document_totals(amounts for _, amounts in priced)
            validate_items(DOCUMENT_TYPE, spec.items, totals)

            default_inventory = None
            receipts = []
            debit_pairs = []
            for item, amounts in priced:
                stock = None
                if item.inventory_item_id is not None:
                    stock = self._inventory.load_item(company, item.inventory_item_id)
                    receipts.append((stock, to_money(item.quantity)))
                if stock is not None and stock.valuation_class is not None:
                    account_id = stock.valuation_class.inventory_account_id
                else:
                    if default_inventory is None:
                        default_inventory = self._accounts.load_by_role(company, SystemRole.INVENTORY)
                    account_id = default_inventory.id
                debit_pairs.append((account_id, amounts.net))

            payable = partner_account(self._accounts, company, vendor, SystemRole.ACCOUNTS_PAYABLE)
            tax = (
                self._accounts.load_by_role(company, SystemRole.TAX_PAYABLE)
                if totals.tax > ZERO
                else None
            )

            if spec.purchase_number:
                taken = self.session.execute(
                    select(Purchase.id).where(
                        Purchase.company_code_id == company.id,
                        Purchase.purchase_number == spec.purchase_number,
                    )
                ).scalar_one_or_none()
                if taken is not None:
                    raise DocumentValidationError(
                        DOCUMENT_TYPE, f"Purchase number {spec.purchase_number} already exists"
                    )
            purchase_number = spec.purchase_number or self._next_number(company)
            purchase_date = spec.purchase_date or self._clock.today()

            entry = purchase_entry(
                purchase_number=purchase_number,
                vendor_name=vendor.name,
                totals=totals,
                inventory_amounts=group_amounts(debit_pairs),
                tax_account_id=tax.id if tax else None,
                payable_account_id=payable.id,
                entry_date=purchase_date,
            )
            entry_id = self._journal.create_entry(ctx, entry) if entry else None
            open_item_line_id = None
            if entry_id is not None and totals.total > ZERO:
                open_item_line_id = self.session.execute(
                    select(JournalLine.id).where(
                        JournalLine.journal_entry_id == entry_id,
                        JournalLine.account_id == payable.id,
                        JournalLine.side == LineSide.CREDIT,
                    )
                ).scalar_one()

            purchase = Purchase(
                company_code_id=company.id,
                purchase_number=purchase_number,
                vendor_id=vendor.id,
                vendor_name=vendor.name,
                purchase_date=purchase_date,
                due_date=spec.due_date,
                status=PurchaseStatus.RECEIVED,
                subtotal=totals.subtotal,
                discount_amount=totals.discount,
                tax_amount=totals.tax,
                total_amount=totals.total,
                paid_amount=ZERO,
                notes=spec.notes,
                payment_method=spec.payment_method,
                reference_number=spec.reference_number,
                journal_entry_id=entry_id,
                open_item_line_id=open_item_line_id,
                created_by_id=ctx.actor_id,
            )
            for number, (item, amounts) in enumerate(priced, start=1):
                purchase.items.append(
                    PurchaseItem(
                        line_number=number,
                        inventory_item_id=item.inventory_item_id,
                        description=item.description,
                        quantity=to_money(item.quantity),
                        unit_price=to_money(item.unit_price),
                        tax_rate=to_money(item.tax_rate),
                        discount_percent=to_money(item.discount_percent),
                        subtotal=amounts.subtotal,
                        discount_amount=amounts.discount,
                        tax_amount=amounts.tax,
                        total_price=amounts.total,
                        created_by_id=ctx.actor_id,
                    )
                )
            self.session.add(purchase)

            for stock, quantity in receipts:
                self._inventory.adjust_stock(stock, quantity)
            self._partners.adjust_balance(vendor, totals.total, purchase_date)
            self.session.flush()

            logger.info(
                "purchase_created",
                extra={
                    "purchase_number": purchase_number,
                    "vendor_code": vendor.partner_code,
                    "total_amount": totals.total,
                    "entry_id": str(entry_id) if entry_id else None,
                },
            )
            return purchase.to_dto()

    def delete_purchase(self, ctx: TenantContext, purchase_id: UUID) -> None:
        """
        Delete an unpaid purchase, undoing its posting, its stock receipt
        and the vendor balance it raised.

        Raises:
            DocumentValidationError: payments have been registered, or the
                received stock has already been sold.
        """
        company = self._tenants.require(ctx, "delete_purchase")
        self._require_write("delete_purchase")
        purchase = self.load(company, purchase_id)
        if purchase.paid_amount != ZERO:
            raise DocumentValidationError(
                DOCUMENT_TYPE, f"{purchase.purchase_number} has payments; delete them first"
            )

        if purchase.journal_entry_id is not None:
            # Unlink first: the engine refuses entries a document still owns
            entry_id = purchase.journal_entry_id
            purchase.journal_entry_id = purchase.open_item_line_id = None
            self.session.flush()
            self._journal.delete_entry(ctx, entry_id)
        for item in purchase.items:
            if item.inventory_item_id is not None:
                stock = self._inventory.load_item(company, item.inventory_item_id)
                self._inventory.adjust_stock(stock, -item.quantity)
        vendor = self._partners.load(company.tenant_id, purchase.vendor_id)
        self._partners.adjust_balance(vendor, -purchase.total_amount)

        purchase_number = purchase.purchase_number
        self.session.delete(purchase)
        self.session.flush()
        logger.info("purchase_deleted", extra={"purchase_number": purchase_number})

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, ctx: TenantContext, purchase_id: UUID) -> PurchaseInfo:
        company = self._tenants.require(ctx, "get_purchase")
        return self.load(company, purchase_id).to_dto()

    def list_purchases(self, ctx: TenantContext, vendor_id: UUID | None = None) -> list[PurchaseInfo]:
        """Purchases of the company code, newest first."""
        company = self._tenants.require(ctx, "list_purchases")
        query = select(Purchase).where(Purchase.company_code_id == company.id)
        if vendor_id is not None:
            query = query.where(Purchase.vendor_id == vendor_id)
        purchases = self.session.execute(
            query.order_by(Purchase.purchase_date.desc(), Purchase.purchase_number.desc())
        ).scalars()
        return [p.to_dto() for p in purchases]
