"""
Chart -- Account classification, code rules and the default chart.

Responsibility:
    Owns the account-type -> category -> normal-balance mapping, the
    category code-prefix rule, account code suggestion, and the seed chart
    used when a tenant is bootstrapped.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by models/ (enum column types), services/ and ledger_modules.

Invariants enforced:
    - category_for() and normal_balance_for() are total: every AccountType
      and every AccountCategory is mapped (a missing entry fails at import).
    - An account code is valid iff it starts with its category prefix
      (1 Asset, 2 Liability, 3 Equity, 4 Revenue, 5 Expense, 6 COGS).
    - Accounts are resolved by SystemRole, never by matching names.

Failure modes:
    - None: all functions are pure lookups.  Validation failures are
      raised by AccountService, which owns the error types.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class AccountCategory(str, Enum):
    """The six statement groups of the chart, in code-prefix order."""

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"
    COGS = "Cost of Goods Sold"


class NormalBalance(str, Enum):
    """Posting direction that increases an account.  Derived, never stored."""

    DEBIT = "Debit"
    CREDIT = "Credit"


class AccountType(str, Enum):
    """Account types offered when creating an account."""

    CURRENT_ASSETS = "Current Assets"
    FIXED_ASSETS = "Fixed Assets"
    OTHER_ASSETS = "Other Assets"
    CURRENT_LIABILITIES = "Current Liabilities"
    LONG_TERM_LIABILITIES = "Long-term Liabilities"
    OWNERS_EQUITY = "Owner's Equity"
    RETAINED_EARNINGS = "Retained Earnings"
    SALES_REVENUE = "Sales Revenue"
    SERVICE_REVENUE = "Service Revenue"
    OTHER_REVENUE = "Other Revenue"
    OPERATING_EXPENSES = "Operating Expenses"
    ADMINISTRATIVE_EXPENSES = "Administrative Expenses"
    SELLING_EXPENSES = "Selling Expenses"
    COST_OF_GOODS_SOLD = "Cost of Goods Sold"

    @property
    def category(self) -> AccountCategory:
        return category_for(self)

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(category_for(self))


class SystemRole(str, Enum):
    """
    Stable role tag used by posting generators to find an account.

    Contract:
        At most one account per company code carries a given role.  Role
        lookup replaces any matching on account names.
    """

    CASH = "cash"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    INVENTORY = "inventory"
    ACCOUNTS_PAYABLE = "accounts_payable"
    TAX_PAYABLE = "tax_payable"
    OWNERS_EQUITY = "owners_equity"
    RETAINED_EARNINGS = "retained_earnings"
    SALES_REVENUE = "sales_revenue"
    SERVICE_REVENUE = "service_revenue"
    COST_OF_GOODS_SOLD = "cost_of_goods_sold"


_TYPE_CATEGORY: dict[AccountType, AccountCategory] = {
    AccountType.CURRENT_ASSETS: AccountCategory.ASSET,
    AccountType.FIXED_ASSETS: AccountCategory.ASSET,
    AccountType.OTHER_ASSETS: AccountCategory.ASSET,
    AccountType.CURRENT_LIABILITIES: AccountCategory.LIABILITY,
    AccountType.LONG_TERM_LIABILITIES: AccountCategory.LIABILITY,
    AccountType.OWNERS_EQUITY: AccountCategory.EQUITY,
    AccountType.RETAINED_EARNINGS: AccountCategory.EQUITY,
    AccountType.SALES_REVENUE: AccountCategory.REVENUE,
    AccountType.SERVICE_REVENUE: AccountCategory.REVENUE,
    AccountType.OTHER_REVENUE: AccountCategory.REVENUE,
    AccountType.OPERATING_EXPENSES: AccountCategory.EXPENSE,
    AccountType.ADMINISTRATIVE_EXPENSES: AccountCategory.EXPENSE,
    AccountType.SELLING_EXPENSES: AccountCategory.EXPENSE,
    AccountType.COST_OF_GOODS_SOLD: AccountCategory.COGS,
}

_CATEGORY_PREFIX: dict[AccountCategory, str] = {
    AccountCategory.ASSET: "1",
    AccountCategory.LIABILITY: "2",
    AccountCategory.EQUITY: "3",
    AccountCategory.REVENUE: "4",
    AccountCategory.EXPENSE: "5",
    AccountCategory.COGS: "6",
}

_DEBIT_NORMAL = frozenset(
    {AccountCategory.ASSET, AccountCategory.EXPENSE, AccountCategory.COGS}
)


def category_for(account_type: AccountType) -> AccountCategory:
    """Statement category of an account type."""
    return _TYPE_CATEGORY[AccountType(account_type)]


def normal_balance_for(category: AccountCategory) -> NormalBalance:
    """Asset/Expense/COGS are debit-normal; Liability/Equity/Revenue credit-normal."""
    if AccountCategory(category) in _DEBIT_NORMAL:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


def code_prefix(category: AccountCategory) -> str:
    return _CATEGORY_PREFIX[AccountCategory(category)]


def types_in_category(category: AccountCategory) -> tuple[AccountType, ...]:
    """All account types that roll up into ``category``, in declaration order."""
    return tuple(t for t, c in _TYPE_CATEGORY.items() if c == category)


def validate_account_code(code: str, account_type: AccountType) -> bool:
    """True iff ``code`` starts with the category prefix of ``account_type``."""
    if not code:
        return False
    return code.startswith(code_prefix(category_for(account_type)))


def suggest_account_code(category: AccountCategory, existing_codes: Iterable[str]) -> str:
    """
    Propose the next free account code in a category.

    Takes the highest purely numeric code that carries the category prefix
    and adds one; an empty category starts at ``prefix + "001"``.
    Non-numeric codes are ignored.
    """
    prefix = code_prefix(category)
    numeric = [
        int(code)
        for code in existing_codes
        if code and code.startswith(prefix) and code.isdigit()
    ]
    if not numeric:
        return f"{prefix}001"
    return str(max(numeric) + 1)


@dataclass(frozen=True)
class AccountSpec:
    """
    Input for creating one account.

    ``parent_code`` refers to another account of the same company code and
    is resolved by AccountService.
    """

    code: str
    name: str
    account_type: AccountType
    system_role: SystemRole | None = None
    parent_code: str | None = None
    level: int = 1
    description: str | None = None
    is_open_item_managed: bool = False
    is_active: bool = True


def default_chart_of_accounts() -> list[AccountSpec]:
    """
    Seed chart for a new tenant, parents before children.

    Every account starts at a zero balance.  Receivable and payable
    accounts are open-item managed.
    """
    return [
        # Assets
        AccountSpec("1001", "Cash", AccountType.CURRENT_ASSETS, SystemRole.CASH),
        AccountSpec(
            "1002",
            "Accounts Receivable",
            AccountType.CURRENT_ASSETS,
            SystemRole.ACCOUNTS_RECEIVABLE,
            is_open_item_managed=True,
        ),
        AccountSpec("1003", "Inventory", AccountType.CURRENT_ASSETS, SystemRole.INVENTORY),
        AccountSpec("1100", "Fixed Assets", AccountType.FIXED_ASSETS),
        AccountSpec(
            "1101", "Equipment", AccountType.FIXED_ASSETS, parent_code="1100", level=2
        ),
        # Liabilities
        AccountSpec(
            "2001",
            "Accounts Payable",
            AccountType.CURRENT_LIABILITIES,
            SystemRole.ACCOUNTS_PAYABLE,
            is_open_item_managed=True,
        ),
        AccountSpec("2002", "Short-term Loans", AccountType.CURRENT_LIABILITIES),
        AccountSpec(
            "2003", "VAT Payable", AccountType.CURRENT_LIABILITIES, SystemRole.TAX_PAYABLE
        ),
        AccountSpec("2100", "Long-term Debt", AccountType.LONG_TERM_LIABILITIES),
        # Equity
        AccountSpec(
            "3001", "Owner's Capital", AccountType.OWNERS_EQUITY, SystemRole.OWNERS_EQUITY
        ),
        AccountSpec(
            "3002",
            "Retained Earnings",
            AccountType.RETAINED_EARNINGS,
            SystemRole.RETAINED_EARNINGS,
        ),
        # Revenue
        AccountSpec(
            "4001", "Sales Revenue", AccountType.SALES_REVENUE, SystemRole.SALES_REVENUE
        ),
        AccountSpec(
            "4002",
            "Service Revenue",
            AccountType.SERVICE_REVENUE,
            SystemRole.SERVICE_REVENUE,
        ),
        # Expenses
        AccountSpec("5001", "Salaries & Wages", AccountType.OPERATING_EXPENSES),
        AccountSpec("5002", "Rent Expense", AccountType.OPERATING_EXPENSES),
        AccountSpec("5003", "Utilities", AccountType.OPERATING_EXPENSES),
        # Cost of goods sold
        AccountSpec(
            "6001",
            "Cost of Goods Sold",
            AccountType.COST_OF_GOODS_SOLD,
            SystemRole.COST_OF_GOODS_SOLD,
        ),
    ]
