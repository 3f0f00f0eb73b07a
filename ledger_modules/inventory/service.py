"""
Inventory Module Service (``ledger_modules.inventory.service``).

Thin glue layer that:
1. Persists valuation classes and stock items
2. Moves available stock for sales and purchases (adjust_stock)
3. Capitalizes opening stock through the journal engine

Transaction boundary: the caller's write_scope().  The stock change and
its journal entry are flushed in the same transaction, so either both
exist after commit or neither does.

Usage:
    with write_scope() as session:
        service = InventoryService(session)
        item = service.create_item(ctx, InventoryItemSpec(...))
        service.capitalize_initial_inventory(ctx, item.id, Decimal("10"))
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO, to_money
from ledger_kernel.domain.chart import AccountCategory, SystemRole
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import TenantContext
from ledger_kernel.exceptions import (
    DocumentNotFoundError,
    DocumentValidationError,
    RequiredFieldMissingError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.tenant import CompanyCode
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.tenant_service import TenantService
from ledger_modules.inventory.models import (
    InventoryItemInfo,
    InventoryItemSpec,
    ValuationClassInfo,
    ValuationClassSpec,
)
from ledger_modules.inventory.orm import InventoryItem, ValuationClass
from ledger_modules.inventory.profiles import initial_inventory_entry

logger = get_logger("modules.inventory.service")

_COST_CATEGORIES = (AccountCategory.COGS, AccountCategory.EXPENSE)


class InventoryService(BaseService):
    """Stock items, valuation classes and opening-stock postings."""

    def __init__(self, session: Session, clock: Clock | None = None, journal: JournalService | None = None):
        super().__init__(session)
        self._tenants = TenantService(session)
        self._accounts = AccountService(session)
        self._journal = journal or JournalService(session, clock=clock)

    # =========================================================================
    # Loaders (same-transaction collaborators)
    # =========================================================================

    def load_item(self, company: CompanyCode, item_id: UUID) -> InventoryItem:
        item = self.session.get(InventoryItem, item_id)
        if item is None or item.company_code_id != company.id:
            raise DocumentNotFoundError("Inventory item", str(item_id))
        return item

    def load_class(self, company: CompanyCode, class_id: UUID) -> ValuationClass:
        valuation_class = self.session.get(ValuationClass, class_id)
        if valuation_class is None or valuation_class.company_code_id != company.id:
            raise DocumentNotFoundError("Valuation class", str(class_id))
        return valuation_class

    def adjust_stock(self, item: InventoryItem, delta: Decimal) -> Decimal:
        """
        Move available stock by ``delta``; sales and purchases only.

        Raises:
            DocumentValidationError: the result would be negative.
        """
        self._require_write("adjust_stock")
        after = item.available_quantity + to_money(delta)
        if after < ZERO:
            raise DocumentValidationError(
                "Inventory item",
                f"{item.product_code}: insufficient stock "
                f"({item.available_quantity} available, {-to_money(delta)} requested)",
            )
        before = item.available_quantity
        item.available_quantity = after
        logger.debug(
            "stock_adjusted",
            extra={
                "product_code": item.product_code,
                "quantity_before": before,
                "quantity_after": after,
            },
        )
        return after

    # =========================================================================
    # Valuation classes
    # =========================================================================

    def create_valuation_class(self, ctx: TenantContext, spec: ValuationClassSpec) -> ValuationClassInfo:
        """
        Create a valuation class.

        Raises:
            RequiredFieldMissingError: empty code or name.
            DocumentValidationError: duplicate code, or accounts of the
                wrong category (inventory must be an asset, cost must be
                COGS or expense).
        """
        company = self._tenants.require(ctx, "create_valuation_class")
        self._require_write("create_valuation_class")
        if not spec.class_code or not spec.class_code.strip():
            raise RequiredFieldMissingError("Valuation class code")
        if not spec.name or not spec.name.strip():
            raise RequiredFieldMissingError("Valuation class name")

        taken = self.session.execute(
            select(ValuationClass.id).where(
                ValuationClass.company_code_id == company.id,
                ValuationClass.class_code == spec.class_code.strip(),
            )
        ).scalar_one_or_none()
        if taken is not None:
            raise DocumentValidationError("Valuation class", f"code {spec.class_code} already exists")

        inventory_account = self._accounts.load(company, spec.inventory_account_id)
        cogs_account = self._accounts.load(company, spec.cogs_account_id)
        if inventory_account.category != AccountCategory.ASSET:
            raise DocumentValidationError(
                "Valuation class", f"inventory account {inventory_account.code} is not an asset account"
            )
        if cogs_account.category not in _COST_CATEGORIES:
            raise DocumentValidationError(
                "Valuation class", f"cost account {cogs_account.code} is not a cost account"
            )

        valuation_class = ValuationClass(
            company_code_id=company.id,
            class_code=spec.class_code.strip(),
            name=spec.name.strip(),
            description=spec.description,
            inventory_account_id=inventory_account.id,
            cogs_account_id=cogs_account.id,
            created_by_id=ctx.actor_id,
        )
        self.session.add(valuation_class)
        self.session.flush()
        logger.info(
            "valuation_class_created",
            extra={
                "class_code": valuation_class.class_code,
                "inventory_account": inventory_account.code,
                "cogs_account": cogs_account.code,
            },
        )
        return valuation_class.to_dto()

    def list_valuation_classes(self, ctx: TenantContext) -> list[ValuationClassInfo]:
        company = self._tenants.require(ctx, "list_valuation_classes")
        classes = self.session.execute(
            select(ValuationClass)
            .where(ValuationClass.company_code_id == company.id)
            .order_by(ValuationClass.class_code)
        ).scalars()
        return [c.to_dto() for c in classes]

    # =========================================================================
    # Items
    # =========================================================================

    def create_item(self, ctx: TenantContext, spec: InventoryItemSpec) -> InventoryItemInfo:
        company = self._tenants.require(ctx, "create_inventory_item")
        self._require_write("create_item")
        if not spec.product_code or not spec.product_code.strip():
            raise RequiredFieldMissingError("Product code")
        if not spec.name or not spec.name.strip():
            raise RequiredFieldMissingError("Item name")
        if to_money(spec.sales_price) < ZERO or to_money(spec.purchase_price) < ZERO:
            raise DocumentValidationError("Inventory item", "prices cannot be negative")

        taken = self.session.execute(
            select(InventoryItem.id).where(
                InventoryItem.company_code_id == company.id,
                InventoryItem.product_code == spec.product_code.strip(),
            )
        ).scalar_one_or_none()
        if taken is not None:
            raise DocumentValidationError(
                "Inventory item", f"product code {spec.product_code} already exists"
            )
        if spec.valuation_class_id is not None:
            self.load_class(company, spec.valuation_class_id)

        item = InventoryItem(
            company_code_id=company.id,
            product_code=spec.product_code.strip(),
            name=spec.name.strip(),
            display_name=(spec.display_name or spec.name).strip(),
            description=spec.description,
            unit=spec.unit,
            valuation_class_id=spec.valuation_class_id,
            sales_price=to_money(spec.sales_price),
            purchase_price=to_money(spec.purchase_price),
            available_quantity=ZERO,
            created_by_id=ctx.actor_id,
        )
        self.session.add(item)
        self.session.flush()
        logger.info("inventory_item_created", extra={"product_code": item.product_code})
        return item.to_dto()

    def get_item(self, ctx: TenantContext, item_id: UUID) -> InventoryItemInfo:
        company = self._tenants.require(ctx, "get_inventory_item")
        return self.load_item(company, item_id).to_dto()

    def list_items(self, ctx: TenantContext) -> list[InventoryItemInfo]:
        company = self._tenants.require(ctx, "list_inventory_items")
        items = self.session.execute(
            select(InventoryItem)
            .where(InventoryItem.company_code_id == company.id)
            .order_by(InventoryItem.product_code)
        ).scalars()
        return [i.to_dto() for i in items]

    def capitalize_initial_inventory(
        self,
        ctx: TenantContext,
        item_id: UUID,
        quantity: Decimal,
        entry_date: date | None = None,
    ) -> UUID:
        """
        Book opening stock: add ``quantity`` to the item and post
        Dr valuation-class inventory / Cr Owner's Equity at purchase price.

        Raises:
            DocumentValidationError: non-positive quantity or no valuation
                class on the item.
            RoleAccountNotFoundError: no OWNERS_EQUITY account.

        Returns:
            Id of the stock posting (SP) journal entry.
        """
        with LogContext.bind_tenant(ctx):
            company = self._tenants.require(ctx, "capitalize_initial_inventory")
            self._require_write("capitalize_initial_inventory")
            item = self.load_item(company, item_id)

            if to_money(quantity) <= ZERO:
                raise DocumentValidationError("Initial inventory", "quantity must be positive")
            if item.valuation_class_id is None:
                raise DocumentValidationError(
                    "Initial inventory", f"{item.product_code} has no valuation class"
                )
            equity = self._accounts.load_by_role(company, SystemRole.OWNERS_EQUITY)

            entry_id = self._journal.create_entry(
                ctx,
                initial_inventory_entry(
                    item_name=item.display_name,
                    quantity=to_money(quantity),
                    purchase_price=item.purchase_price,
                    inventory_account_id=item.valuation_class.inventory_account_id,
                    equity_account_id=equity.id,
                    entry_date=entry_date,
                ),
            )
            self.adjust_stock(item, to_money(quantity))
            self.session.flush()

            logger.info(
                "initial_inventory_capitalized",
                extra={
                    "product_code": item.product_code,
                    "quantity": to_money(quantity),
                    "entry_id": str(entry_id),
                },
            )
            return entry_id
