"""
Tests for PaymentService -- incoming (REC) and outgoing (PAY) payments.

A payment moves money between a cash account and the partner's
receivable or payable account.  Linked to a sale or purchase, it counts
towards that document and clears its open item.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from ledger_kernel.db.engine import read_scope, write_scope
from ledger_kernel.domain.values import OpenItemStatus, TransactionType
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    DocumentNotFoundError,
    DocumentValidationError,
    EntryReferencedError,
)
from ledger_kernel.models.journal import JournalLine
from ledger_kernel.models.party import PartnerType
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.partner_service import PartnerService
from ledger_modules.payments import PaymentDirection, PaymentService, PaymentSpec
from ledger_modules.payments.orm import IncomingPayment
from ledger_modules.purchases import PurchaseItemSpec, PurchaseService, PurchaseSpec, PurchaseStatus
from ledger_modules.purchases.orm import Purchase
from ledger_modules.sales import SaleItemSpec, SaleService, SaleSpec, SaleStatus
from ledger_modules.sales.orm import Sale


@pytest.fixture
def sale(ctx, customer, in_write):
    """A 216.00 sale to the customer (2 x 100, 10% discount, 20% tax)."""
    spec = SaleSpec(
        customer_id=customer.id,
        items=[
            SaleItemSpec(
                description="Consulting",
                quantity=Decimal("2"),
                unit_price=Decimal("100"),
                tax_rate=Decimal("20"),
                discount_percent=Decimal("10"),
            )
        ],
    )
    return in_write(SaleService, lambda s: s.create_sale(ctx, spec))


@pytest.fixture
def purchase(ctx, vendor, in_write):
    """A 66.00 bill from the vendor."""
    spec = PurchaseSpec(
        vendor_id=vendor.id,
        items=[
            PurchaseItemSpec(
                description="Supplies",
                quantity=Decimal("10"),
                unit_price=Decimal("6"),
                tax_rate=Decimal("10"),
            )
        ],
    )
    return in_write(PurchaseService, lambda s: s.create_purchase(ctx, spec))


@pytest.fixture
def receive(ctx, accounts, customer, in_write):
    def _receive(amount, document_id=None, partner=None, **kwargs):
        spec = PaymentSpec(
            partner_id=(partner or customer).id,
            account_id=accounts["1001"],
            amount=Decimal(amount),
            document_id=document_id,
            **kwargs,
        )
        return in_write(PaymentService, lambda s: s.record_incoming_payment(ctx, spec))

    return _receive


@pytest.fixture
def pay(ctx, accounts, vendor, in_write):
    def _pay(amount, document_id=None):
        spec = PaymentSpec(
            partner_id=vendor.id,
            account_id=accounts["1001"],
            amount=Decimal(amount),
            document_id=document_id,
        )
        return in_write(PaymentService, lambda s: s.record_outgoing_payment(ctx, spec))

    return _pay


def _sale_state(sale_id):
    with read_scope() as session:
        sale = session.get(Sale, sale_id)
        line = session.get(JournalLine, sale.open_item_line_id)
        return sale.status, sale.paid_amount, line.open_item_status


def _payment_count() -> int:
    with read_scope() as session:
        return session.execute(select(func.count()).select_from(IncomingPayment)).scalar_one()


class TestIncomingPayment:
    def test_unlinked_payment_posting(self, ctx, customer, receive, entry_lines, balance_of, partner_balance):
        """Acme pays 500 into cash: Dr Cash 500 / Cr Accounts Receivable 500."""
        info = receive("500")

        assert info.payment_number == "IP-0001"
        assert info.direction == PaymentDirection.CREDIT
        assert info.partner_name == "Acme Corp"
        assert info.document_id is None
        assert entry_lines(info.journal_entry_id) == [
            ("1001", "Debit", Decimal("500")),
            ("1002", "Credit", Decimal("500")),
        ]
        with read_scope() as session:
            record = JournalSelector(session).get_entry(ctx.company_code_id, info.journal_entry_id)
        assert record.transaction_type == TransactionType.INCOMING_PAYMENT
        assert record.is_balanced
        assert balance_of("1001") == Decimal("500")
        assert balance_of("1002") == Decimal("-500")
        assert partner_balance(customer.id) == Decimal("-500")

    def test_numbers_increase(self, receive):
        receive("1")
        assert receive("2").payment_number == "IP-0002"

    def test_explicit_number_must_be_unique(self, receive):
        receive("1", payment_number="BANK-7")
        with pytest.raises(DocumentValidationError):
            receive("1", payment_number="BANK-7")

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_amount_must_be_positive(self, receive, amount):
        with pytest.raises(DocumentValidationError):
            receive(amount)
        assert _payment_count() == 0

    def test_unknown_cash_account(self, ctx, customer, in_write):
        spec = PaymentSpec(partner_id=customer.id, account_id=uuid4(), amount=Decimal("5"))
        with pytest.raises(AccountNotFoundError):
            in_write(PaymentService, lambda s: s.record_incoming_payment(ctx, spec))

    def test_vendor_cannot_pay_in(self, receive, vendor):
        with pytest.raises(DocumentValidationError):
            receive("5", partner=vendor)


class TestSaleSettlement:
    """Payments linked to a sale update its paid amount, status and open item."""

    def test_partial_then_full(self, sale, receive, customer, partner_balance):
        receive("100", document_id=sale.id)
        assert _sale_state(sale.id) == (SaleStatus.PARTIALLY_PAID, Decimal("100"), OpenItemStatus.OPEN)

        receive("116", document_id=sale.id)
        assert _sale_state(sale.id) == (SaleStatus.PAID, Decimal("216"), OpenItemStatus.CLEARED)
        assert partner_balance(customer.id) == Decimal("0")

    def test_payment_line_clears_invoice_line(self, ctx, sale, receive):
        info = receive("216", document_id=sale.id)
        with read_scope() as session:
            invoice_line = session.get(Sale, sale.id).open_item_line_id
            record = JournalSelector(session).get_entry(ctx.company_code_id, info.journal_entry_id)
        receivable_line = next(line for line in record.lines if line.account_code == "1002")
        assert receivable_line.clears_line_id == invoice_line
        assert receivable_line.open_item_status == OpenItemStatus.CLEARED

    def test_overpayment_rejected(self, sale, receive, balance_of):
        receive("200", document_id=sale.id)
        with pytest.raises(DocumentValidationError):
            receive("16.01", document_id=sale.id)
        assert _sale_state(sale.id)[1] == Decimal("200")
        assert balance_of("1001") == Decimal("200")

    def test_sale_of_another_customer(self, ctx, sale, receive):
        with write_scope() as session:
            other = PartnerService(session).create_partner(ctx, "Globex", PartnerType.CUSTOMER)
        with pytest.raises(DocumentValidationError):
            receive("10", document_id=sale.id, partner=other)

    def test_paid_sale_cannot_be_deleted(self, ctx, sale, receive, in_write):
        receive("10", document_id=sale.id)
        with pytest.raises(DocumentValidationError):
            in_write(SaleService, lambda s: s.delete_sale(ctx, sale.id))


class TestPaymentAtomicity:
    def test_posting_failure_stores_nothing(self, sale, receive, monkeypatch, partner_balance, customer):
        def _explode(self, entry, resolved):
            raise RuntimeError("simulated crash while posting")

        monkeypatch.setattr(JournalService, "_insert_lines", _explode)
        with pytest.raises(RuntimeError):
            receive("100", document_id=sale.id)
        monkeypatch.undo()

        assert _payment_count() == 0
        assert _sale_state(sale.id) == (SaleStatus.CONFIRMED, Decimal("0"), OpenItemStatus.OPEN)
        assert partner_balance(customer.id) == Decimal("216")


class TestDeletePayment:
    def test_restores_sale_and_balances(self, ctx, sale, receive, in_write, balance_of, partner_balance, customer):
        receive("100", document_id=sale.id)
        second = receive("116", document_id=sale.id)

        in_write(PaymentService, lambda s: s.delete_payment(ctx, PaymentDirection.CREDIT, second.id))

        assert _sale_state(sale.id) == (SaleStatus.PARTIALLY_PAID, Decimal("100"), OpenItemStatus.OPEN)
        assert balance_of("1001") == Decimal("100")
        assert balance_of("1002") == Decimal("116")
        assert partner_balance(customer.id) == Decimal("116")
        with read_scope() as session:
            remaining = PaymentService(session).list_incoming_payments(ctx)
        assert [p.payment_number for p in remaining] == ["IP-0001"]

    def test_delete_all_then_sale(self, ctx, sale, receive, in_write, balance_of):
        payment = receive("216", document_id=sale.id)
        in_write(PaymentService, lambda s: s.delete_payment(ctx, PaymentDirection.CREDIT, payment.id))
        assert _sale_state(sale.id) == (SaleStatus.CONFIRMED, Decimal("0"), OpenItemStatus.OPEN)

        in_write(SaleService, lambda s: s.delete_sale(ctx, sale.id))
        assert balance_of("1002") == Decimal("0")
        assert balance_of("1001") == Decimal("0")

    def test_posting_kept_while_payment_exists(self, ctx, sale, receive, balance_of):
        payment = receive("100", document_id=sale.id)
        with pytest.raises(EntryReferencedError):
            with write_scope() as session:
                JournalService(session).delete_entry(ctx, payment.journal_entry_id)
        assert _sale_state(sale.id) == (SaleStatus.PARTIALLY_PAID, Decimal("100"), OpenItemStatus.OPEN)
        assert balance_of("1001") == Decimal("100")


class TestOutgoingPayment:
    def test_pays_purchase(self, ctx, purchase, pay, entry_lines, partner_balance, vendor, balance_of):
        info = pay("66", document_id=purchase.id)

        assert info.payment_number == "OP-0001"
        assert info.direction == PaymentDirection.DEBIT
        assert info.document_id == purchase.id
        assert entry_lines(info.journal_entry_id) == [
            ("2001", "Debit", Decimal("66")),
            ("1001", "Credit", Decimal("66")),
        ]
        with read_scope() as session:
            stored = session.get(Purchase, purchase.id)
            line = session.get(JournalLine, stored.open_item_line_id)
            assert stored.status == PurchaseStatus.PAID
            assert line.open_item_status == OpenItemStatus.CLEARED
        assert partner_balance(vendor.id) == Decimal("0")
        assert balance_of("2001") == Decimal("0")
        assert balance_of("1001") == Decimal("-66")

    def test_partial_and_delete(self, ctx, purchase, pay, in_write):
        payment = pay("30", document_id=purchase.id)
        with read_scope() as session:
            assert session.get(Purchase, purchase.id).status == PurchaseStatus.PARTIALLY_PAID

        in_write(PaymentService, lambda s: s.delete_payment(ctx, PaymentDirection.DEBIT, payment.id))
        with read_scope() as session:
            stored = session.get(Purchase, purchase.id)
            assert stored.status == PurchaseStatus.RECEIVED
            assert stored.paid_amount == Decimal("0")

    def test_overpayment_rejected(self, purchase, pay):
        with pytest.raises(DocumentValidationError):
            pay("66.01", document_id=purchase.id)

    def test_get_by_direction(self, ctx, pay, receive, in_read):
        outgoing = pay("5")
        incoming = receive("7")
        assert in_read(PaymentService, lambda s: s.get_outgoing(ctx, outgoing.id)) == outgoing
        assert in_read(PaymentService, lambda s: s.get_incoming(ctx, incoming.id)) == incoming
        with pytest.raises(DocumentNotFoundError):
            in_read(PaymentService, lambda s: s.get_incoming(ctx, outgoing.id))

    def test_listed_newest_first(self, ctx, pay, in_read):
        pay("1")
        pay("2")
        payments = in_read(PaymentService, lambda s: s.list_outgoing_payments(ctx))
        assert [p.payment_number for p in payments] == ["OP-0002", "OP-0001"]
