"""Tests for chart-of-accounts rules (ledger_kernel.domain.chart)."""

import pytest

from ledger_kernel.domain.chart import (
    AccountCategory,
    AccountType,
    SystemRole,
    category_for,
    code_prefix,
    default_chart_of_accounts,
    suggest_account_code,
    types_in_category,
    validate_account_code,
)


class TestAccountCodePrefix:
    """The first digit of a code names the category."""

    @pytest.mark.parametrize(
        "code,account_type",
        [
            ("1001", AccountType.CURRENT_ASSETS),
            ("1002", AccountType.CURRENT_ASSETS),
            ("2001", AccountType.CURRENT_LIABILITIES),
            ("3001", AccountType.OWNERS_EQUITY),
            ("4001", AccountType.SALES_REVENUE),
            ("5001", AccountType.OPERATING_EXPENSES),
            ("6001", AccountType.COST_OF_GOODS_SOLD),
        ],
    )
    def test_matching_prefix_accepted(self, code, account_type):
        assert validate_account_code(code, account_type)

    def test_liability_code_as_asset_rejected(self):
        assert not validate_account_code("2002", AccountType.CURRENT_ASSETS)

    def test_empty_code_rejected(self):
        assert not validate_account_code("", AccountType.CURRENT_ASSETS)

    def test_prefixes(self):
        assert [code_prefix(c) for c in AccountCategory] == ["1", "2", "3", "4", "5", "6"]

    def test_every_type_has_a_code_prefix(self):
        for account_type in AccountType:
            assert code_prefix(category_for(account_type)) in {"1", "2", "3", "4", "5", "6"}


class TestCategories:
    def test_every_type_has_a_category(self):
        for account_type in AccountType:
            assert category_for(account_type) in AccountCategory

    def test_types_in_category(self):
        assert types_in_category(AccountCategory.EQUITY) == (
            AccountType.OWNERS_EQUITY,
            AccountType.RETAINED_EARNINGS,
        )


class TestSuggestAccountCode:
    def test_empty_category_starts_at_001(self):
        assert suggest_account_code(AccountCategory.ASSET, []) == "1001"

    def test_max_plus_one_within_category(self):
        codes = ["1001", "1003", "2001", "1100"]
        assert suggest_account_code(AccountCategory.ASSET, codes) == "1101"

    def test_non_numeric_codes_ignored(self):
        codes = ["1001", "1ABC", "5001"]
        assert suggest_account_code(AccountCategory.ASSET, codes) == "1002"
        assert suggest_account_code(AccountCategory.EXPENSE, codes) == "5002"


class TestDefaultChart:
    """The seed chart every new tenant starts from."""

    def test_seed_codes(self):
        codes = [spec.code for spec in default_chart_of_accounts()]
        assert codes == [
            "1001", "1002", "1003", "1100", "1101",
            "2001", "2002", "2003", "2100",
            "3001", "3002",
            "4001", "4002",
            "5001", "5002", "5003",
            "6001",
        ]

    def test_every_seed_code_matches_its_type(self):
        for spec in default_chart_of_accounts():
            assert validate_account_code(spec.code, spec.account_type), spec.code

    def test_roles_are_unique(self):
        roles = [spec.system_role for spec in default_chart_of_accounts() if spec.system_role]
        assert len(roles) == len(set(roles))
        assert SystemRole.ACCOUNTS_RECEIVABLE in roles
        assert SystemRole.ACCOUNTS_PAYABLE in roles

    def test_receivable_and_payable_are_open_item_managed(self):
        managed = {s.code for s in default_chart_of_accounts() if s.is_open_item_managed}
        assert managed == {"1002", "2001"}

    def test_equipment_is_child_of_fixed_assets(self):
        equipment = next(s for s in default_chart_of_accounts() if s.code == "1101")
        assert equipment.parent_code == "1100"
        assert equipment.level == 2
