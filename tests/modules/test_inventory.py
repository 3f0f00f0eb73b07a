"""Tests for InventoryService -- valuation classes, items and opening stock."""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.db.engine import read_scope, write_scope
from ledger_kernel.domain.values import TransactionType
from ledger_kernel.exceptions import (
    DocumentNotFoundError,
    DocumentValidationError,
    RequiredFieldMissingError,
)
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_modules.inventory import InventoryItemSpec, InventoryService, ValuationClassSpec


def _class_spec(accounts, inventory="1003", cost="6001", code="RAW"):
    return ValuationClassSpec(
        class_code=code,
        name="Raw materials",
        inventory_account_id=accounts[inventory],
        cogs_account_id=accounts[cost],
    )


class TestValuationClasses:
    def test_create_and_list(self, ctx, accounts, goods_class):
        with read_scope() as session:
            classes = InventoryService(session).list_valuation_classes(ctx)
        assert [c.class_code for c in classes] == ["GOODS"]
        assert classes[0].inventory_account_id == accounts["1003"]
        assert classes[0].is_active

    def test_expense_account_allowed_as_cost(self, ctx, accounts):
        with write_scope() as session:
            info = InventoryService(session).create_valuation_class(ctx, _class_spec(accounts, cost="5003"))
        assert info.cogs_account_id == accounts["5003"]

    @pytest.mark.parametrize(
        "inventory, cost",
        [
            ("2001", "6001"),  # inventory must be an asset
            ("1003", "4001"),  # cost must be COGS or expense
        ],
    )
    def test_account_categories(self, ctx, accounts, inventory, cost):
        with pytest.raises(DocumentValidationError):
            with write_scope() as session:
                InventoryService(session).create_valuation_class(
                    ctx, _class_spec(accounts, inventory=inventory, cost=cost)
                )

    def test_duplicate_code(self, ctx, accounts, goods_class):
        with pytest.raises(DocumentValidationError):
            with write_scope() as session:
                InventoryService(session).create_valuation_class(ctx, _class_spec(accounts, code="GOODS"))

    def test_code_required(self, ctx, accounts):
        with pytest.raises(RequiredFieldMissingError):
            with write_scope() as session:
                InventoryService(session).create_valuation_class(ctx, _class_spec(accounts, code=" "))


class TestItems:
    def test_created_without_stock(self, ctx, widget):
        assert widget.available_quantity == Decimal("0")
        assert widget.display_name == "Widget"
        assert widget.unit == "pcs"

    def test_duplicate_product_code(self, ctx, widget):
        with pytest.raises(DocumentValidationError):
            with write_scope() as session:
                InventoryService(session).create_item(
                    ctx,
                    InventoryItemSpec(
                        product_code="WID-1",
                        name="Other",
                        sales_price=Decimal("1"),
                        purchase_price=Decimal("1"),
                    ),
                )

    def test_negative_price(self, ctx):
        with pytest.raises(DocumentValidationError):
            with write_scope() as session:
                InventoryService(session).create_item(
                    ctx,
                    InventoryItemSpec(
                        product_code="X",
                        name="X",
                        sales_price=Decimal("-1"),
                        purchase_price=Decimal("1"),
                    ),
                )

    def test_unknown_valuation_class(self, ctx):
        with pytest.raises(DocumentNotFoundError):
            with write_scope() as session:
                InventoryService(session).create_item(
                    ctx,
                    InventoryItemSpec(
                        product_code="X",
                        name="X",
                        sales_price=Decimal("1"),
                        purchase_price=Decimal("1"),
                        valuation_class_id=uuid4(),
                    ),
                )

    def test_item_of_other_company_invisible(self, ctx, other_ctx, widget):
        with read_scope() as session:
            with pytest.raises(DocumentNotFoundError):
                InventoryService(session).get_item(other_ctx, widget.id)
            assert InventoryService(session).list_items(other_ctx) == []

    def test_listed_by_product_code(self, ctx, goods_class, widget):
        with write_scope() as session:
            InventoryService(session).create_item(
                ctx,
                InventoryItemSpec(
                    product_code="BOLT-1",
                    name="Bolt",
                    sales_price=Decimal("1"),
                    purchase_price=Decimal("0.40"),
                    valuation_class_id=goods_class.id,
                ),
            )
        with read_scope() as session:
            items = InventoryService(session).list_items(ctx)
        assert [i.product_code for i in items] == ["BOLT-1", "WID-1"]


class TestInitialInventory:
    """Opening stock: Dr valuation-class inventory / Cr Owner's Equity at purchase price."""

    def test_posting_and_stock(self, ctx, widget, deterministic_clock, entry_lines, stock_of, balance_of):
        with write_scope() as session:
            entry_id = InventoryService(session, clock=deterministic_clock).capitalize_initial_inventory(
                ctx, widget.id, Decimal("20")
            )

        assert entry_lines(entry_id) == [
            ("1003", "Debit", Decimal("120")),
            ("3001", "Credit", Decimal("120")),
        ]
        with read_scope() as session:
            record = JournalSelector(session).get_entry(ctx.company_code_id, entry_id)
        assert record.transaction_type == TransactionType.STOCK_POSTING
        assert record.entry_number == "JE-0001"
        assert stock_of(widget.id) == Decimal("20")
        assert balance_of("1003") == Decimal("120")
        assert balance_of("3001") == Decimal("120")

    def test_item_value(self, ctx, stocked_widget):
        with read_scope() as session:
            item = InventoryService(session).get_item(ctx, stocked_widget.id)
        assert item.stock_value == Decimal("120")

    def test_requires_valuation_class(self, ctx):
        with pytest.raises(DocumentValidationError):
            with write_scope() as session:
                service = InventoryService(session)
                item = service.create_item(
                    ctx,
                    InventoryItemSpec(
                        product_code="LOOSE",
                        name="Loose item",
                        sales_price=Decimal("1"),
                        purchase_price=Decimal("1"),
                    ),
                )
                service.capitalize_initial_inventory(ctx, item.id, Decimal("5"))

    def test_positive_quantity(self, ctx, widget, stock_of):
        with pytest.raises(DocumentValidationError):
            with write_scope() as session:
                InventoryService(session).capitalize_initial_inventory(ctx, widget.id, Decimal("0"))
        assert stock_of(widget.id) == Decimal("0")


class TestAdjustStock:
    def test_cannot_go_negative(self, ctx, stocked_widget):
        from ledger_modules.inventory.orm import InventoryItem

        with pytest.raises(DocumentValidationError):
            with write_scope() as session:
                item = session.get(InventoryItem, stocked_widget.id)
                InventoryService(session).adjust_stock(item, Decimal("-21"))
