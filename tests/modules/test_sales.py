"""
Tests for SaleService -- customer invoices posted as INV entries.

A sale debits the customer's receivable with the total, credits revenue
with the net amount and output tax with the tax, and moves the cost of
stocked items from inventory to cost of goods sold.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ledger_kernel.db.engine import read_scope, write_scope
from ledger_kernel.domain.dtos import EntrySpec, LineSpec
from ledger_kernel.domain.values import OpenItemStatus, TransactionType
from ledger_kernel.exceptions import DocumentValidationError, EntryNotFoundError, EntryReferencedError
from ledger_kernel.models.journal import JournalLine
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.journal_service import JournalService
from ledger_modules.sales import SaleItemSpec, SaleService, SaleSpec, SaleStatus
from ledger_modules.sales.orm import Sale


def _widget_sale(customer, widget, quantity="5", tax_rate="10", **kwargs):
    return SaleSpec(
        customer_id=customer.id,
        items=[
            SaleItemSpec(
                description="Widget",
                quantity=Decimal(quantity),
                unit_price=Decimal("10"),
                tax_rate=Decimal(tax_rate),
                inventory_item_id=widget.id,
            )
        ],
        **kwargs,
    )


def _service_sale(customer, unit_price="100", discount="10", tax_rate="20"):
    return SaleSpec(
        customer_id=customer.id,
        items=[
            SaleItemSpec(
                description="Consulting",
                quantity=Decimal("2"),
                unit_price=Decimal(unit_price),
                tax_rate=Decimal(tax_rate),
                discount_percent=Decimal(discount),
            )
        ],
    )


def _sale_count() -> int:
    with read_scope() as session:
        return session.execute(select(func.count()).select_from(Sale)).scalar_one()


class TestCreateSale:
    def test_invoice_posting(self, ctx, customer, stocked_widget, in_write, entry_lines):
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _widget_sale(customer, stocked_widget)))

        assert info.sale_number == "INV-AR-00001"
        assert info.status == SaleStatus.CONFIRMED
        assert info.subtotal == Decimal("50")
        assert info.tax_amount == Decimal("5")
        assert info.total_amount == Decimal("55")
        assert info.balance_amount == Decimal("55")
        assert entry_lines(info.journal_entry_id) == [
            ("1002", "Debit", Decimal("55")),
            ("4001", "Credit", Decimal("50")),
            ("2003", "Credit", Decimal("5")),
            ("6001", "Debit", Decimal("30")),
            ("1003", "Credit", Decimal("30")),
        ]

    def test_effects(self, ctx, customer, stocked_widget, in_write, balance_of, stock_of, partner_balance):
        in_write(SaleService, lambda s: s.create_sale(ctx, _widget_sale(customer, stocked_widget)))

        assert stock_of(stocked_widget.id) == Decimal("15")
        assert partner_balance(customer.id) == Decimal("55")
        assert balance_of("1002") == Decimal("55")
        assert balance_of("4001") == Decimal("50")
        assert balance_of("2003") == Decimal("5")
        assert balance_of("6001") == Decimal("30")
        assert balance_of("1003") == Decimal("90")

    def test_invoice_entry_type(self, ctx, customer, stocked_widget, in_write):
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _widget_sale(customer, stocked_widget)))
        with read_scope() as session:
            record = JournalSelector(session).get_entry(ctx.company_code_id, info.journal_entry_id)
        assert record.transaction_type == TransactionType.CUSTOMER_INVOICE
        assert record.is_balanced

    def test_receivable_line_is_open_item(self, ctx, customer, stocked_widget, in_write):
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _widget_sale(customer, stocked_widget)))
        with read_scope() as session:
            sale = session.get(Sale, info.id)
            line = session.get(JournalLine, sale.open_item_line_id)
            assert line.open_item_status == OpenItemStatus.OPEN
            assert line.amount == Decimal("55")

    def test_discount_and_tax(self, ctx, customer, in_write, entry_lines):
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer)))
        assert info.discount_amount == Decimal("20")
        assert info.total_amount == Decimal("216")
        assert entry_lines(info.journal_entry_id) == [
            ("1002", "Debit", Decimal("216")),
            ("4001", "Credit", Decimal("180")),
            ("2003", "Credit", Decimal("36")),
        ]

    def test_zero_total_has_no_entry(self, ctx, customer, in_write):
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer, unit_price="0")))
        assert info.total_amount == Decimal("0")
        assert info.journal_entry_id is None

    def test_numbers_increase(self, ctx, customer, in_write):
        in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer)))
        second = in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer)))
        assert second.sale_number == "INV-AR-00002"
        assert in_write(SaleService, lambda s: s.generate_sale_number(ctx)) == "INV-AR-00003"


class TestSaleRejection:
    def test_insufficient_stock_writes_nothing(self, ctx, customer, stocked_widget, in_write, stock_of, balance_of):
        with pytest.raises(DocumentValidationError):
            in_write(
                SaleService,
                lambda s: s.create_sale(ctx, _widget_sale(customer, stocked_widget, quantity="21")),
            )
        assert _sale_count() == 0
        assert stock_of(stocked_widget.id) == Decimal("20")
        assert balance_of("1002") == Decimal("0")

    def test_vendor_is_not_a_customer(self, ctx, vendor, in_write):
        with pytest.raises(DocumentValidationError):
            in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(vendor)))

    def test_no_items(self, ctx, customer, in_write):
        with pytest.raises(DocumentValidationError):
            in_write(SaleService, lambda s: s.create_sale(ctx, SaleSpec(customer_id=customer.id, items=[])))

    def test_discount_above_hundred(self, ctx, customer, in_write):
        with pytest.raises(DocumentValidationError):
            in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer, discount="101")))

    def test_duplicate_number(self, ctx, customer, stocked_widget, in_write):
        in_write(
            SaleService,
            lambda s: s.create_sale(ctx, _widget_sale(customer, stocked_widget, quantity="1", sale_number="S-1")),
        )
        with pytest.raises(DocumentValidationError):
            in_write(
                SaleService,
                lambda s: s.create_sale(ctx, _widget_sale(customer, stocked_widget, quantity="1", sale_number="S-1")),
            )


class TestDeleteSale:
    def test_undoes_everything(self, ctx, customer, stocked_widget, in_write, stock_of, balance_of, partner_balance):
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _widget_sale(customer, stocked_widget)))
        in_write(SaleService, lambda s: s.delete_sale(ctx, info.id))

        assert _sale_count() == 0
        assert stock_of(stocked_widget.id) == Decimal("20")
        assert partner_balance(customer.id) == Decimal("0")
        for code in ("1002", "4001", "2003", "6001"):
            assert balance_of(code) == Decimal("0")
        with read_scope() as session:
            with pytest.raises(EntryNotFoundError):
                JournalService(session).fetch_entry(ctx, info.journal_entry_id)

    def test_posting_not_editable_through_journal(self, ctx, customer, in_write, balance_of, partner_balance):
        """The INV entry belongs to the sale; only delete_sale may remove it."""
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer)))
        replacement = EntrySpec(
            description="Edited",
            lines=[LineSpec.debit("1002", Decimal("1")), LineSpec.credit("4001", Decimal("1"))],
            transaction_type=TransactionType.CUSTOMER_INVOICE,
        )

        with pytest.raises(EntryReferencedError):
            with write_scope() as session:
                JournalService(session).delete_entry(ctx, info.journal_entry_id)
        with pytest.raises(EntryReferencedError):
            with write_scope() as session:
                JournalService(session).update_entry(ctx, info.journal_entry_id, replacement)

        assert _sale_count() == 1
        assert balance_of("1002") == Decimal("216")
        assert partner_balance(customer.id) == Decimal("216")
        with read_scope() as session:
            assert session.get(Sale, info.id).journal_entry_id == info.journal_entry_id


class TestShippingStatus:
    def test_ship_and_unship(self, ctx, customer, in_write):
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer)))
        shipped = in_write(SaleService, lambda s: s.update_shipping_status(ctx, info.id, SaleStatus.SHIPPED))
        assert shipped.status == SaleStatus.SHIPPED
        back = in_write(SaleService, lambda s: s.update_shipping_status(ctx, info.id, SaleStatus.CONFIRMED))
        assert back.status == SaleStatus.CONFIRMED

    def test_payment_status_is_not_a_shipping_status(self, ctx, customer, in_write):
        info = in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer)))
        with pytest.raises(DocumentValidationError):
            in_write(SaleService, lambda s: s.update_shipping_status(ctx, info.id, SaleStatus.PAID))


class TestSaleReads:
    def test_list_by_customer(self, ctx, customer, in_write):
        from ledger_kernel.models.party import PartnerType
        from ledger_kernel.services.partner_service import PartnerService

        with write_scope() as session:
            other = PartnerService(session).create_partner(ctx, "Globex", PartnerType.CUSTOMER)
        in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(customer)))
        in_write(SaleService, lambda s: s.create_sale(ctx, _service_sale(other)))

        with read_scope() as session:
            sales = SaleService(session).list_sales(ctx, customer_id=customer.id)
        assert [s.customer_name for s in sales] == ["Acme Corp"]
        assert len(sales[0].items) == 1
