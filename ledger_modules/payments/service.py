"""
Payments Module Service (``ledger_modules.payments.service``).

Thin glue layer that:
1. Validates the amount, the cash/bank account and the partner
2. Resolves the receivable or payable account of the partner
3. Links the payment to a sale or purchase and clears its open item
4. Builds the REC/PAY posting (``profiles``) for the journal engine
5. Persists the payment and moves the partner's balance

Transaction boundary: the caller's write_scope().  The payment row, its
posting, the document's paid amount and the partner balance are one
transaction: if the posting is rejected nothing is stored.

Usage:
    with write_scope() as session:
        service = PaymentService(session)
        info = service.record_incoming_payment(ctx, PaymentSpec(...))
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_config.loader import NumberingSettings
from ledger_kernel.db.types import ZERO, to_money
from ledger_kernel.domain.chart import SystemRole
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import TenantContext
from ledger_kernel.exceptions import DocumentNotFoundError, DocumentValidationError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.journal import JournalLine
from ledger_kernel.models.tenant import CompanyCode
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.partner_service import PartnerService
from ledger_kernel.services.tenant_service import TenantService
from ledger_modules._posting_helpers import next_number_in, partner_account, require_partner
from ledger_modules.payments.models import PaymentDirection, PaymentInfo, PaymentSpec
from ledger_modules.payments.orm import IncomingPayment, OutgoingPayment
from ledger_modules.payments.profiles import incoming_payment_entry, outgoing_payment_entry
from ledger_modules.purchases.service import PurchaseService
from ledger_modules.sales.service import SaleService

logger = get_logger("modules.payments.service")

INCOMING = "Incoming payment"
OUTGOING = "Outgoing payment"


class PaymentService(BaseService):
    """Incoming and outgoing payments and their REC/PAY postings."""

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
        self._sales = SaleService(session, clock=self._clock, numbering=self._numbering)
        self._purchases = PurchaseService(session, clock=self._clock, numbering=self._numbering)

    # =========================================================================
    # Numbering
    # =========================================================================

    def _next_number(self, company: CompanyCode, model, prefix: str) -> str:
        return next_number_in(
            self.session,
            model.payment_number,
            model.company_code_id,
            company.id,
            prefix,
            self._numbering.payment_width,
        )

    def generate_incoming_number(self, ctx: TenantContext) -> str:
        company = self._tenants.require(ctx, "generate_incoming_number")
        return self._next_number(company, IncomingPayment, self._numbering.incoming_payment_prefix)

    def generate_outgoing_number(self, ctx: TenantContext) -> str:
        company = self._tenants.require(ctx, "generate_outgoing_number")
        return self._next_number(company, OutgoingPayment, self._numbering.outgoing_payment_prefix)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _clearable_line(self, line_id: UUID | None) -> UUID | None:
        """The document's open item, if its account is open-item managed."""
        if line_id is None:
            return None
        line = self.session.get(JournalLine, line_id)
        if line is None or line.open_item_status is None:
            return None
        return line.id

    def _check_number(self, company: CompanyCode, model, document_type: str, number: str) -> None:
        taken = self.session.execute(
            select(model.id).where(
                model.company_code_id == company.id,
                model.payment_number == number,
            )
        ).scalar_one_or_none()
        if taken is not None:
            raise DocumentValidationError(document_type, f"Payment number {number} already exists")

    def _load(self, company: CompanyCode, model, document_type: str, payment_id: UUID):
        payment = self.session.get(model, payment_id)
        if payment is None or payment.company_code_id != company.id:
            raise DocumentNotFoundError(document_type, str(payment_id))
        return payment

    # =========================================================================
    # Incoming
    # =========================================================================

    def record_incoming_payment(self, ctx: TenantContext, spec: PaymentSpec) -> PaymentInfo:
        """
        Record money received from a customer.

        Posts Dr cash/bank, Cr accounts receivable (the customer's
        reconciliation account, else the ACCOUNTS_RECEIVABLE role).  When
        ``spec.document_id`` names a sale, the payment counts towards it
        and clears its receivable open item.

        Raises:
            DocumentValidationError: non-positive amount, no customer,
                duplicate number, sale of another customer, amount above
                the sale's open balance.
            AccountNotFoundError: unknown cash account.
            RoleAccountNotFoundError: no receivable account.
        """
        with LogContext.bind_tenant(ctx):
            company = self._tenants.require(ctx, "record_incoming_payment")
            self._require_write("record_incoming_payment")
            amount = to_money(spec.amount)
            if amount <= ZERO:
                raise DocumentValidationError(INCOMING, "Amount must be greater than zero")
            customer = require_partner(
                self._partners, company, spec.partner_id, document_type=INCOMING, customer=True
            )
            cash = self._accounts.load(company, spec.account_id)
            receivable = partner_account(self._accounts, company, customer, SystemRole.ACCOUNTS_RECEIVABLE)

            sale = None
            clears_line_id = None
            if spec.document_id is not None:
                sale = self._sales.load(company, spec.document_id)
                if sale.customer_id != customer.id:
                    raise DocumentValidationError(
                        INCOMING, f"{sale.sale_number} belongs to another customer"
                    )
                self._sales.check_payment(sale, amount)
                clears_line_id = self._clearable_line(sale.open_item_line_id)

            if spec.payment_number:
                self._check_number(company, IncomingPayment, INCOMING, spec.payment_number)
            payment_number = spec.payment_number or self._next_number(
                company, IncomingPayment, self._numbering.incoming_payment_prefix
            )
            payment_date = spec.payment_date or self._clock.today()

            entry_id = self._journal.create_entry(
                ctx,
                incoming_payment_entry(
                    payment_number=payment_number,
                    customer_name=customer.name,
                    amount=amount,
                    cash_account_id=cash.id,
                    receivable_account_id=receivable.id,
                    entry_date=payment_date,
                    clears_line_id=clears_line_id,
                ),
            )
            payment = IncomingPayment(
                company_code_id=company.id,
                payment_number=payment_number,
                amount=amount,
                payment_date=payment_date,
                partner_id=customer.id,
                partner_name=customer.name,
                account_id=cash.id,
                journal_entry_id=entry_id,
                sale_id=sale.id if sale else None,
                notes=spec.notes,
                reference_number=spec.reference_number,
                created_by_id=ctx.actor_id,
            )
            self.session.add(payment)
            if sale is not None:
                self._sales.register_payment(sale, amount)
            self._partners.adjust_balance(customer, -amount, payment_date)
            self.session.flush()

            logger.info(
                "incoming_payment_recorded",
                extra={
                    "payment_number": payment_number,
                    "partner_code": customer.partner_code,
                    "amount": amount,
                    "entry_id": str(entry_id),
                    "sale_number": sale.sale_number if sale else None,
                },
            )
            return payment.to_dto()

    # =========================================================================
    # Outgoing
    # =========================================================================

    def record_outgoing_payment(self, ctx: TenantContext, spec: PaymentSpec) -> PaymentInfo:
        """
        Record money paid to a vendor.

        Posts Dr accounts payable, Cr cash/bank.  A linked purchase
        (``spec.document_id``) is settled the same way a sale is for
        incoming payments.
        """
        with LogContext.bind_tenant(ctx):
            company = self._tenants.require(ctx, "record_outgoing_payment")
            self._require_write("record_outgoing_payment")
            amount = to_money(spec.amount)
            if amount <= ZERO:
                raise DocumentValidationError(OUTGOING, "Amount must be greater than zero")
            vendor = require_partner(
                self._partners, company, spec.partner_id, document_type=OUTGOING, customer=False
            )
            cash = self._accounts.load(company, spec.account_id)
            payable = partner_account(self._accounts, company, vendor, SystemRole.ACCOUNTS_PAYABLE)

            purchase = None
            clears_line_id = None
            if spec.document_id is not None:
                purchase = self._purchases.load(company, spec.document_id)
                if purchase.vendor_id != vendor.id:
                    raise DocumentValidationError(
                        OUTGOING, f"{purchase.purchase_number} belongs to another vendor"
                    )
                self._purchases.check_payment(purchase, amount)
                clears_line_id = self._clearable_line(purchase.open_item_line_id)

            if spec.payment_number:
                self._check_number(company, OutgoingPayment, OUTGOING, spec.payment_number)
            payment_number = spec.payment_number or self._next_number(
                company, OutgoingPayment, self._numbering.outgoing_payment_prefix
            )
            payment_date = spec.payment_date or self._clock.today()

            entry_id = self._journal.create_entry(
                ctx,
                outgoing_payment_entry(
                    payment_number=payment_number,
                    vendor_name=vendor.name,
                    amount=amount,
                    cash_account_id=cash.id,
                    payable_account_id=payable.id,
                    entry_date=payment_date,
                    clears_line_id=clears_line_id,
                ),
            )
            payment = OutgoingPayment(
                company_code_id=company.id,
                payment_number=payment_number,
                amount=amount,
                payment_date=payment_date,
                partner_id=vendor.id,
                partner_name=vendor.name,
                account_id=cash.id,
                journal_entry_id=entry_id,
                purchase_id=purchase.id if purchase else None,
                notes=spec.notes,
                reference_number=spec.reference_number,
                created_by_id=ctx.actor_id,
            )
            self.session.add(payment)
            if purchase is not None:
                self._purchases.register_payment(purchase, amount)
            self._partners.adjust_balance(vendor, -amount, payment_date)
            self.session.flush()

            logger.info(
                "outgoing_payment_recorded",
                extra={
                    "payment_number": payment_number,
                    "partner_code": vendor.partner_code,
                    "amount": amount,
                    "entry_id": str(entry_id),
                    "purchase_number": purchase.purchase_number if purchase else None,
                },
            )
            return payment.to_dto()

    # =========================================================================
    # Delete
    # =========================================================================

    def delete_payment(self, ctx: TenantContext, direction: PaymentDirection, payment_id: UUID) -> None:
        """
        Delete a payment and undo everything it did: its posting (which
        reopens the cleared open item), the linked document's paid amount
        and the partner balance.
        """
        company = self._tenants.require(ctx, "delete_payment")
        self._require_write("delete_payment")
        if direction == PaymentDirection.CREDIT:
            payment = self._load(company, IncomingPayment, INCOMING, payment_id)
        else:
            payment = self._load(company, OutgoingPayment, OUTGOING, payment_id)

        if payment.journal_entry_id is not None:
            # Unlink first: the engine refuses entries a document still owns
            entry_id = payment.journal_entry_id
            payment.journal_entry_id = None
            self.session.flush()
            self._journal.delete_entry(ctx, entry_id)
        if direction == PaymentDirection.CREDIT and payment.sale_id is not None:
            self._sales.register_payment(self._sales.load(company, payment.sale_id), -payment.amount)
        if direction == PaymentDirection.DEBIT and payment.purchase_id is not None:
            self._purchases.register_payment(
                self._purchases.load(company, payment.purchase_id), -payment.amount
            )
        partner = self._partners.load(company.tenant_id, payment.partner_id)
        self._partners.adjust_balance(partner, payment.amount)

        payment_number = payment.payment_number
        self.session.delete(payment)
        self.session.flush()
        logger.info(
            "payment_deleted",
            extra={"payment_number": payment_number, "direction": direction.value},
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get_incoming(self, ctx: TenantContext, payment_id: UUID) -> PaymentInfo:
        company = self._tenants.require(ctx, "get_incoming_payment")
        return self._load(company, IncomingPayment, INCOMING, payment_id).to_dto()

    def get_outgoing(self, ctx: TenantContext, payment_id: UUID) -> PaymentInfo:
        company = self._tenants.require(ctx, "get_outgoing_payment")
        return self._load(company, OutgoingPayment, OUTGOING, payment_id).to_dto()

    def _list(self, company: CompanyCode, model, partner_id: UUID | None) -> list[PaymentInfo]:
        query = select(model).where(model.company_code_id == company.id)
        if partner_id is not None:
            query = query.where(model.partner_id == partner_id)
        payments = self.session.execute(
            query.order_by(model.payment_date.desc(), model.payment_number.desc())
        ).scalars()
        return [p.to_dto() for p in payments]

    def list_incoming_payments(self, ctx: TenantContext, partner_id: UUID | None = None) -> list[PaymentInfo]:
        """Incoming payments, newest first."""
        company = self._tenants.require(ctx, "list_incoming_payments")
        return self._list(company, IncomingPayment, partner_id)

    def list_outgoing_payments(self, ctx: TenantContext, partner_id: UUID | None = None) -> list[PaymentInfo]:
        company = self._tenants.require(ctx, "list_outgoing_payments")
        return self._list(company, OutgoingPayment, partner_id)
