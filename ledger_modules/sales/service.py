"""
Sales Module Service (``ledger_modules.sales.service``).

Thin glue layer that:
1. Prices the items of a sale (``_posting_helpers.item_amounts``)
2. Resolves receivable, revenue, tax and valuation-class accounts
3. Builds the INV posting (``profiles.sale_entry``) and hands it to the
   journal engine
4. Persists the sale, issues stock and raises the customer's balance

Transaction boundary: the caller's write_scope().  The sale row, its
items, the journal entry, the stock movement and the partner balance are
flushed in one transaction; any failure leaves none of them behind.

Usage:
    with write_scope() as session:
        sale = SaleService(session).create_sale(ctx, SaleSpec(...))
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_config.loader import NumberingSettings
from ledger_kernel.db.types import ZERO, round_money, to_money
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
from ledger_modules.sales.models import SaleInfo, SaleSpec, SaleStatus
from ledger_modules.sales.orm import Sale, SaleItem
from ledger_modules.sales.profiles import sale_entry

logger = get_logger("modules.sales.service")

DOCUMENT_TYPE = "Sale"
_SHIPPING_STATUSES = (SaleStatus.CONFIRMED, SaleStatus.SHIPPED)


class SaleService(BaseService):
    """Customer sales and their INV postings."""

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

    # =========================================================================
    # Loaders and payment hooks (same-transaction collaborators)
    # =========================================================================

    def load(self, company: CompanyCode, sale_id: UUID) -> Sale:
        sale = self.session.get(Sale, sale_id)
        if sale is None or sale.company_code_id != company.id:
            raise DocumentNotFoundError(DOCUMENT_TYPE, str(sale_id))
        return sale

    def check_payment(self, sale: Sale, amount: Decimal) -> None:
        """Refuse a payment that would overpay the sale."""
        check_payment_amount(DOCUMENT_TYPE, sale.total_amount, sale.paid_amount, to_money(amount))

    def register_payment(self, sale: Sale, amount: Decimal) -> SaleStatus:
        """
        Add ``amount`` (negative to undo) to paid_amount and derive the
        status: Paid when fully paid, Partially Paid when something is.
        """
        self._require_write("register_payment")
        self.check_payment(sale, amount)
        sale.paid_amount = sale.paid_amount + to_money(amount)
        open_status = (
            sale.status
            if sale.status not in (SaleStatus.PAID, SaleStatus.PARTIALLY_PAID)
            else SaleStatus.CONFIRMED
        )
        sale.status = settlement_status(
            sale.total_amount,
            sale.paid_amount,
            paid_status=SaleStatus.PAID,
            partial_status=SaleStatus.PARTIALLY_PAID,
            open_status=open_status,
        )
        logger.info(
            "sale_payment_registered",
            extra={
                "sale_number": sale.sale_number,
                "amount": to_money(amount),
                "paid_amount": sale.paid_amount,
                "status": sale.status.value,
            },
        )
        return sale.status

    # =========================================================================
    # Sales
    # =========================================================================

    def generate_sale_number(self, ctx: TenantContext) -> str:
        company = self._tenants.require(ctx, "generate_sale_number")
        return self._next_number(company)

    def _next_number(self, company: CompanyCode) -> str:
        return next_number_in(
            self.session,
            Sale.sale_number,
            Sale.company_code_id,
            company.id,
            self._numbering.sale_prefix,
            self._numbering.invoice_width,
        )

    def create_sale(self, ctx: TenantContext, spec: SaleSpec) -> SaleInfo:
        """
        Record a sale and post it.

        Raises:
            DocumentValidationError: no customer, no items, negative total,
                bad item values, insufficient stock, duplicate number.
            PartnerNotFoundError, DocumentNotFoundError: unknown customer
                or inventory item.
            RoleAccountNotFoundError: a required role account is missing.
        """
        with LogContext.bind_tenant(ctx):
            company = self._tenants.require(ctx, "create_sale")
            self._require_write("create_sale")
            customer = require_partner(
                self._partners, company, spec.customer_id, document_type=DOCUMENT_TYPE, customer=True
            )

            priced = [
                (item, item_amounts(item.quantity, item.unit_price, item.tax_rate, item.discount_percent))
                for item in spec.items
            ]
            totals = document_totals(amounts for _, amounts in priced)
            validate_items(DOCUMENT_TYPE, spec.items, totals)

            # Stock and cost of every inventory item, checked before any write
            stock_moves = []
            cost_pairs = []
            for item, _ in priced:
                if item.inventory_item_id is None:
                    continue
                stock = self._inventory.load_item(company, item.inventory_item_id)
                quantity = to_money(item.quantity)
                if stock.available_quantity < quantity:
                    raise DocumentValidationError(
                        DOCUMENT_TYPE,
                        f"{stock.product_code}: insufficient stock "
                        f"({stock.available_quantity} available, {quantity} requested)",
                    )
                stock_moves.append((stock, quantity))
                if stock.valuation_class is not None:
                    cost_pairs.append(
                        (
                            (stock.valuation_class.cogs_account_id, stock.valuation_class.inventory_account_id),
                            round_money(stock.purchase_price * quantity),
                        )
                    )

            receivable = partner_account(
                self._accounts, company, customer, SystemRole.ACCOUNTS_RECEIVABLE
            )
            revenue = (
                self._accounts.load_by_role(company, SystemRole.SALES_REVENUE)
                if totals.net > ZERO
                else None
            )
            tax = (
                self._accounts.load_by_role(company, SystemRole.TAX_PAYABLE)
                if totals.tax > ZERO
                else None
            )

            if spec.sale_number:
                taken = self.session.execute(
                    select(Sale.id).where(
                        Sale.company_code_id == company.id,
                        Sale.sale_number == spec.sale_number,
                    )
                ).scalar_one_or_none()
                if taken is not None:
                    raise DocumentValidationError(
                        DOCUMENT_TYPE, f"Sale number {spec.sale_number} already exists"
                    )
            sale_number = spec.sale_number or self._next_number(company)
            sale_date = spec.sale_date or self._clock.today()

            entry = sale_entry(
                sale_number=sale_number,
                customer_name=customer.name,
                totals=totals,
                receivable_account_id=receivable.id,
                revenue_account_id=revenue.id if revenue else None,
                tax_account_id=tax.id if tax else None,
                cost_moves=group_amounts(cost_pairs),
                entry_date=sale_date,
            )
            entry_id = self._journal.create_entry(ctx, entry) if entry else None
            open_item_line_id = None
            if entry_id is not None and totals.total > ZERO:
                open_item_line_id = self.session.execute(
                    select(JournalLine.id).where(
                        JournalLine.journal_entry_id == entry_id,
                        JournalLine.account_id == receivable.id,
                        JournalLine.side == LineSide.DEBIT,
                    )
                ).scalar_one()

            sale = Sale(
                company_code_id=company.id,
                sale_number=sale_number,
                customer_id=customer.id,
                customer_name=customer.name,
                sale_date=sale_date,
                due_date=spec.due_date,
                status=SaleStatus.CONFIRMED,
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
                sale.items.append(
                    SaleItem(
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
            self.session.add(sale)

            for stock, quantity in stock_moves:
                self._inventory.adjust_stock(stock, -quantity)
            self._partners.adjust_balance(customer, totals.total, sale_date)
            self.session.flush()

            logger.info(
                "sale_created",
                extra={
                    "sale_number": sale_number,
                    "customer_code": customer.partner_code,
                    "total_amount": totals.total,
                    "entry_id": str(entry_id) if entry_id else None,
                },
            )
            return sale.to_dto()

    def delete_sale(self, ctx: TenantContext, sale_id: UUID) -> None:
        """
        Delete an unpaid sale: its posting, its stock issue and its effect
        on the customer's balance are all undone.

        Raises:
            DocumentValidationError: payments have been registered.
        """
        company = self._tenants.require(ctx, "delete_sale")
        self._require_write("delete_sale")
        sale = self.load(company, sale_id)
        if sale.paid_amount != ZERO:
            raise DocumentValidationError(
                DOCUMENT_TYPE, f"{sale.sale_number} has payments; delete them first"
            )

        if sale.journal_entry_id is not None:
            # Unlink first: the engine refuses entries a document still owns
            entry_id = sale.journal_entry_id
            sale.journal_entry_id = sale.open_item_line_id = None
            self.session.flush()
            self._journal.delete_entry(ctx, entry_id)
        for item in sale.items:
            if item.inventory_item_id is not None:
                stock = self._inventory.load_item(company, item.inventory_item_id)
                self._inventory.adjust_stock(stock, item.quantity)
        customer = self._partners.load(company.tenant_id, sale.customer_id)
        self._partners.adjust_balance(customer, -sale.total_amount)

        sale_number = sale.sale_number
        self.session.delete(sale)
        self.session.flush()
        logger.info("sale_deleted", extra={"sale_number": sale_number})

    def update_shipping_status(self, ctx: TenantContext, sale_id: UUID, status: SaleStatus) -> SaleInfo:
        """Move a sale between Confirmed and Shipped."""
        company = self._tenants.require(ctx, "update_shipping_status")
        self._require_write("update_shipping_status")
        if status not in _SHIPPING_STATUSES:
            raise DocumentValidationError(DOCUMENT_TYPE, "Invalid shipping status")
        sale = self.load(company, sale_id)
        if sale.status not in _SHIPPING_STATUSES:
            raise DocumentValidationError(
                DOCUMENT_TYPE, f"{sale.sale_number} is {sale.status.value}; shipping status is fixed"
            )
        sale.status = status
        self.session.flush()
        return sale.to_dto()

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, ctx: TenantContext, sale_id: UUID) -> SaleInfo:
        company = self._tenants.require(ctx, "get_sale")
        return self.load(company, sale_id).to_dto()

    def list_sales(
        self,
        ctx: TenantContext,
        customer_id: UUID | None = None,
        status: SaleStatus | None = None,
    ) -> list[SaleInfo]:
        """Sales of the company code, newest first."""
        company = self._tenants.require(ctx, "list_sales")
        query = select(Sale).where(Sale.company_code_id == company.id)
        if customer_id is not None:
            query = query.where(Sale.customer_id == customer_id)
        if status is not None:
            query = query.where(Sale.status == status)
        sales = self.session.execute(
            query.order_by(Sale.sale_date.desc(), Sale.sale_number.desc())
        ).scalars()
        return [s.to_dto() for s in sales]
