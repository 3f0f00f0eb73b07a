"""Tests for PurchaseService -- vendor bills posted as BILL entries."""

from decimal import Decimal

import pytest

from ledger_kernel.db.engine import read_scope
from ledger_kernel.domain.values import OpenItemStatus, TransactionType
from ledger_kernel.exceptions import DocumentValidationError
from ledger_kernel.models.journal import JournalLine
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_modules.purchases import PurchaseItemSpec, PurchaseService, PurchaseSpec, PurchaseStatus
from ledger_modules.purchases.orm import Purchase
from ledger_modules.sales import SaleItemSpec, SaleService, SaleSpec


def _widget_purchase(vendor, widget, quantity="10", tax_rate="10"):
    return PurchaseSpec(
        vendor_id=vendor.id,
        items=[
            PurchaseItemSpec(
                description="Widget",
                quantity=Decimal(quantity),
                unit_price=Decimal("6"),
                tax_rate=Decimal(tax_rate),
                inventory_item_id=widget.id,
            )
        ],
    )


def _purchases(ctx):
    with read_scope() as session:
        return PurchaseService(session).list_purchases(ctx)


class TestCreatePurchase:
    def test_bill_posting(self, ctx, vendor, widget, in_write, entry_lines):
        info = in_write(PurchaseService, lambda s: s.create_purchase(ctx, _widget_purchase(vendor, widget)))

        assert info.purchase_number == "INV-AP-00001"
        assert info.status == PurchaseStatus.RECEIVED
        assert info.total_amount == Decimal("66")
        assert entry_lines(info.journal_entry_id) == [
            ("1003", "Debit", Decimal("60")),
            ("2003", "Debit", Decimal("6")),
            ("2001", "Credit", Decimal("66")),
        ]
        with read_scope() as session:
            record = JournalSelector(session).get_entry(ctx.company_code_id, info.journal_entry_id)
        assert record.transaction_type == TransactionType.VENDOR_BILL

    def test_effects(self, ctx, vendor, widget, in_write, stock_of, partner_balance, balance_of):
        in_write(PurchaseService, lambda s: s.create_purchase(ctx, _widget_purchase(vendor, widget)))
        assert stock_of(widget.id) == Decimal("10")
        assert partner_balance(vendor.id) == Decimal("66")
        assert balance_of("2001") == Decimal("66")
        assert balance_of("1003") == Decimal("60")
        assert balance_of("2003") == Decimal("-6")

    def test_payable_line_is_open_item(self, ctx, vendor, widget, in_write):
        info = in_write(PurchaseService, lambda s: s.create_purchase(ctx, _widget_purchase(vendor, widget)))
        with read_scope() as session:
            purchase = session.get(Purchase, info.id)
            line = session.get(JournalLine, purchase.open_item_line_id)
            assert line.open_item_status == OpenItemStatus.OPEN
            assert line.amount == Decimal("66")

    def test_items_grouped_per_inventory_account(self, ctx, vendor, widget, in_write, entry_lines):
        spec = PurchaseSpec(
            vendor_id=vendor.id,
            items=[
                PurchaseItemSpec(
                    description="Widget",
                    quantity=Decimal("1"),
                    unit_price=Decimal("6"),
                    inventory_item_id=widget.id,
                ),
                PurchaseItemSpec(description="Packaging", quantity=Decimal("4"), unit_price=Decimal("1")),
            ],
        )
        info = in_write(PurchaseService, lambda s: s.create_purchase(ctx, spec))
        assert entry_lines(info.journal_entry_id) == [
            ("1003", "Debit", Decimal("10")),
            ("2001", "Credit", Decimal("10")),
        ]

    def test_customer_is_not_a_vendor(self, ctx, customer, widget, in_write):
        with pytest.raises(DocumentValidationError):
            in_write(PurchaseService, lambda s: s.create_purchase(ctx, _widget_purchase(customer, widget)))


class TestDeletePurchase:
    def test_undoes_everything(self, ctx, vendor, widget, in_write, stock_of, partner_balance, balance_of):
        info = in_write(PurchaseService, lambda s: s.create_purchase(ctx, _widget_purchase(vendor, widget)))
        in_write(PurchaseService, lambda s: s.delete_purchase(ctx, info.id))

        assert stock_of(widget.id) == Decimal("0")
        assert partner_balance(vendor.id) == Decimal("0")
        assert balance_of("2001") == Decimal("0")
        assert _purchases(ctx) == []

    def test_refused_when_stock_already_sold(self, ctx, vendor, customer, widget, in_write, stock_of):
        info = in_write(PurchaseService, lambda s: s.create_purchase(ctx, _widget_purchase(vendor, widget)))
        sale = SaleSpec(
            customer_id=customer.id,
            items=[
                SaleItemSpec(
                    description="Widget",
                    quantity=Decimal("8"),
                    unit_price=Decimal("10"),
                    inventory_item_id=widget.id,
                )
            ],
        )
        in_write(SaleService, lambda s: s.create_sale(ctx, sale))

        with pytest.raises(DocumentValidationError):
            in_write(PurchaseService, lambda s: s.delete_purchase(ctx, info.id))
        assert stock_of(widget.id) == Decimal("2")
