"""
Fixtures for document module tests: partners, stock items and small
helpers that run one module call in its own write transaction.
"""

from decimal import Decimal

import pytest

from ledger_kernel.db.engine import read_scope, write_scope
from ledger_kernel.models.party import BusinessPartner, PartnerType
from ledger_kernel.services.partner_service import PartnerService
from ledger_modules.inventory import InventoryItemSpec, InventoryService, ValuationClassSpec


@pytest.fixture
def customer(ctx):
    with write_scope() as session:
        return PartnerService(session).create_partner(ctx, "Acme Corp", PartnerType.CUSTOMER)


@pytest.fixture
def vendor(ctx):
    with write_scope() as session:
        return PartnerService(session).create_partner(ctx, "Initech Supplies", PartnerType.VENDOR)


@pytest.fixture
def goods_class(ctx, accounts):
    """Valuation class carrying stock on 1003 and its cost on 6001."""
    with write_scope() as session:
        return InventoryService(session).create_valuation_class(
            ctx,
            ValuationClassSpec(
                class_code="GOODS",
                name="Trading goods",
                inventory_account_id=accounts["1003"],
                cogs_account_id=accounts["6001"],
            ),
        )


@pytest.fixture
def widget(ctx, goods_class):
    """A stock item bought at 6.00 and sold at 10.00; no stock yet."""
    with write_scope() as session:
        return InventoryService(session).create_item(
            ctx,
            InventoryItemSpec(
                product_code="WID-1",
                name="Widget",
                sales_price=Decimal("10"),
                purchase_price=Decimal("6"),
                valuation_class_id=goods_class.id,
            ),
        )


@pytest.fixture
def stocked_widget(ctx, widget, deterministic_clock):
    """The widget with 20 units capitalized as opening stock."""
    with write_scope() as session:
        InventoryService(session, clock=deterministic_clock).capitalize_initial_inventory(
            ctx, widget.id, Decimal("20")
        )
    return widget


@pytest.fixture
def in_write(deterministic_clock):
    """
    Run ``fn(service)`` for a module service class in one write_scope().

    Usage::

        info = in_write(SaleService, lambda s: s.create_sale(ctx, spec))
    """

    def _run(service_class, fn):
        with write_scope() as session:
            return fn(service_class(session, clock=deterministic_clock))

    return _run


@pytest.fixture
def in_read(deterministic_clock):
    def _run(service_class, fn):
        with read_scope() as session:
            return fn(service_class(session, clock=deterministic_clock))

    return _run


@pytest.fixture
def partner_balance():
    def _balance(partner_id) -> Decimal:
        with read_scope() as session:
            return session.get(BusinessPartner, partner_id).balance

    return _balance


@pytest.fixture
def stock_of(ctx):
    def _stock(item_id) -> Decimal:
        with read_scope() as session:
            return InventoryService(session).get_item(ctx, item_id).available_quantity

    return _stock



@pytest.fixture
def entry_lines(ctx):
    """(account code, side value, amount) of every line of an entry."""
    from ledger_kernel.selectors.journal_selector import JournalSelector

    def _lines(entry_id):
        with read_scope() as session:
            record = JournalSelector(session).get_entry(ctx.company_code_id, entry_id)
        return [(line.account_code, line.side.value, line.amount) for line in record.lines]

    return _lines
