"""
AccountService -- chart of accounts registry.

Responsibility:
    Creates accounts (validating the category code prefix), edits their
    metadata, guards deletion, seeds the default chart, suggests codes and
    resolves accounts by id, code, category or system role.

Architecture position:
    Kernel > Services -- imperative shell.
    Used by JournalService (line account resolution) and by the document
    posting services of ledger_modules (role lookup).

Invariants enforced:
    - An account code starts with its category prefix.
    - Account code is unique per company code; a system role is carried by
      at most one account per company code.
    - Only name, description and is_active are editable; balance is never
      written here.
    - Deletion is refused while abs(balance) >= DISPLAY_TOLERANCE, while
      journal lines reference the account, or while it has sub-accounts.

Failure modes:
    - RequiredFieldMissingError, AccountCodeMismatchError,
      DuplicateAccountCodeError, AccountNotFoundError,
      RoleAccountNotFoundError, AccountHasBalanceError,
      AccountReferencedError, ValidationFailedError.
"""

from uuid import UUID

from sqlalchemy import func, or_, select

from ledger_kernel.db.types import DISPLAY_TOLERANCE
from ledger_kernel.domain.chart import (
    AccountCategory,
    AccountSpec,
    SystemRole,
    code_prefix,
    default_chart_of_accounts,
    suggest_account_code,
    types_in_category,
    validate_account_code,
)
from ledger_kernel.domain.dtos import AccountInfo, TenantContext
from ledger_kernel.exceptions import (
    AccountCodeMismatchError,
    AccountHasBalanceError,
    AccountNotFoundError,
    AccountReferencedError,
    DuplicateAccountCodeError,
    RequiredFieldMissingError,
    RoleAccountNotFoundError,
    ValidationFailedError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalLine
from ledger_kernel.models.tenant import CompanyCode
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.tenant_service import TenantService

logger = get_logger("services.account")


class AccountService(BaseService):
    """
    Chart of accounts operations for one session.

    Contract:
        Public methods return AccountInfo DTOs.  The ``load_*`` methods
        return ORM rows and exist for other services in the same
        transaction.
    """

    def __init__(self, session):
        super().__init__(session)
        self._tenants = TenantService(session)

    # ------------------------------------------------------------------
    # ORM-level lookups (same-transaction collaborators)
    # ------------------------------------------------------------------

    def load(self, company: CompanyCode, account_id: UUID) -> Account:
        account = self.session.get(Account, account_id)
        if account is None or account.company_code_id != company.id:
            raise AccountNotFoundError(str(account_id))
        return account

    def load_by_code(self, company: CompanyCode, code: str) -> Account:
        account = self.session.execute(
            select(Account).where(
                Account.company_code_id == company.id,
                Account.code == code,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(code)
        return account

    def load_by_role(self, company: CompanyCode, role: SystemRole) -> Account:
        account = self.session.execute(
            select(Account).where(
                Account.company_code_id == company.id,
                Account.system_role == role,
                Account.is_active.is_(True),
            )
        ).scalar_one_or_none()
        if account is None:
            raise RoleAccountNotFoundError(role.value)
        return account

    def _codes_in_company(self, company: CompanyCode) -> list[str]:
        return list(
            self.session.execute(
                select(Account.code).where(Account.company_code_id == company.id)
            ).scalars()
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_account(self, ctx: TenantContext, spec: AccountSpec) -> AccountInfo:
        """
        Create one account.

        Raises:
            RequiredFieldMissingError: empty name or code.
            AccountCodeMismatchError: code prefix does not match the type.
            DuplicateAccountCodeError: code already used in the company code.
            AccountNotFoundError: parent_code does not exist.
            ValidationFailedError: system role already assigned.
        """
        company = self._tenants.require(ctx, "create_account")
        self._require_write("create_account")

        code = (spec.code or "").strip()
        name = (spec.name or "").strip()
        if not name:
            raise RequiredFieldMissingError("Account name")
        if not code:
            raise RequiredFieldMissingError("Account code")
        if not validate_account_code(code, spec.account_type):
            category = spec.account_type.category
            raise AccountCodeMismatchError(code, spec.account_type.value, code_prefix(category))

        existing = self.session.execute(
            select(Account.id).where(
                Account.company_code_id == company.id,
                Account.code == code,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateAccountCodeError(code)

        if spec.system_role is not None:
            holder = self.session.execute(
                select(Account.code).where(
                    Account.company_code_id == company.id,
                    Account.system_role == spec.system_role,
                )
            ).scalar_one_or_none()
            if holder is not None:
                raise ValidationFailedError(
                    f"System role {spec.system_role.value} is already assigned to account {holder}"
                )

        parent_id = None
        if spec.parent_code:
            parent_id = self.load_by_code(company, spec.parent_code).id

        account = Account(
            tenant_id=company.tenant_id,
            company_code_id=company.id,
            chart_id=company.chart_id,
            code=code,
            name=name,
            account_type=spec.account_type,
            system_role=spec.system_role,
            is_active=spec.is_active,
            parent_id=parent_id,
            level=spec.level,
            description=spec.description,
            is_open_item_managed=spec.is_open_item_managed,
            created_by_id=ctx.actor_id,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "account_code": code,
                "account_type": spec.account_type.value,
                "system_role": spec.system_role.value if spec.system_role else None,
            },
        )
        return AccountInfo.from_model(account)

    def initialize_default_chart(self, ctx: TenantContext) -> list[AccountInfo]:
        """
        Seed the default chart into the context's company code.

        Not idempotent: a second call fails on the first existing code with
        DuplicateAccountCodeError and, inside write_scope(), leaves nothing
        of the second attempt behind.
        """
        with LogContext.bind_tenant(ctx):
            created = [self.create_account(ctx, spec) for spec in default_chart_of_accounts()]
            logger.info("default_chart_initialized", extra={"account_count": len(created)})
            return created

    def update_account_metadata(
        self,
        ctx: TenantContext,
        account_id: UUID,
        *,
        name: str | None = None,
        description: str | None = None,
        is_active: bool | None = None,
    ) -> AccountInfo:
        """Edit name, description or active flag.  Nothing else is editable."""
        company = self._tenants.require(ctx, "update_account_metadata")
        self._require_write("update_account_metadata")
        account = self.load(company, account_id)

        if name is not None:
            if not name.strip():
                raise RequiredFieldMissingError("Account name")
            account.name = name.strip()
        if description is not None:
            account.description = description
        if is_active is not None:
            account.is_active = is_active
        self.session.flush()

        logger.info(
            "account_updated",
            extra={"account_id": str(account.id), "is_active": account.is_active},
        )
        return AccountInfo.from_model(account)

    def delete_account(self, ctx: TenantContext, account_id: UUID) -> None:
        """
        Delete an account that carries no balance and no postings.

        Raises:
            AccountHasBalanceError: abs(balance) >= DISPLAY_TOLERANCE.
            AccountReferencedError: journal lines reference the account.
            ValidationFailedError: the account has sub-accounts.
        """
        company = self._tenants.require(ctx, "delete_account")
        self._require_write("delete_account")
        account = self.load(company, account_id)

        if abs(account.balance) >= DISPLAY_TOLERANCE:
            raise AccountHasBalanceError(str(account.id), str(account.balance))

        line_count = self.session.execute(
            select(func.count(JournalLine.id)).where(JournalLine.account_id == account.id)
        ).scalar_one()
        if line_count:
            raise AccountReferencedError(str(account.id), line_count)

        children = self.session.execute(
            select(func.count(Account.id)).where(Account.parent_id == account.id)
        ).scalar_one()
        if children:
            raise ValidationFailedError(
                f"Cannot delete account {account.code}: it has {children} sub-account(s)"
            )

        self.session.delete(account)
        self.session.flush()
        logger.info(
            "account_deleted",
            extra={"account_id": str(account_id), "account_code": account.code},
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, ctx: TenantContext, account_id: UUID) -> AccountInfo:
        company = self._tenants.require(ctx, "get_account")
        return AccountInfo.from_model(self.load(company, account_id))

    def get_by_code(self, ctx: TenantContext, code: str) -> AccountInfo:
        company = self._tenants.require(ctx, "get_account")
        return AccountInfo.from_model(self.load_by_code(company, code))

    def find_by_role(self, ctx: TenantContext, role: SystemRole) -> AccountInfo | None:
        company = self._tenants.require(ctx, "find_account_by_role")
        try:
            return AccountInfo.from_model(self.load_by_role(company, role))
        except RoleAccountNotFoundError:
            return None

    def require_role(self, ctx: TenantContext, role: SystemRole) -> AccountInfo:
        company = self._tenants.require(ctx, "require_role")
        return AccountInfo.from_model(self.load_by_role(company, role))

    def list_accounts(
        self,
        ctx: TenantContext,
        category: AccountCategory | None = None,
        active_only: bool = False,
    ) -> list[AccountInfo]:
        """Accounts of the company code ordered by code."""
        company = self._tenants.require(ctx, "list_accounts")
        query = select(Account).where(Account.company_code_id == company.id)
        if category is not None:
            query = query.where(Account.account_type.in_(types_in_category(category)))
        if active_only:
            query = query.where(Account.is_active.is_(True))
        accounts = self.session.execute(query.order_by(Account.code)).scalars()
        return [AccountInfo.from_model(a) for a in accounts]

    def search_accounts(self, ctx: TenantContext, text: str) -> list[AccountInfo]:
        """Case-insensitive match on code or name; empty text lists all."""
        if not text or not text.strip():
            return self.list_accounts(ctx)
        company = self._tenants.require(ctx, "search_accounts")
        pattern = f"%{text.strip().lower()}%"
        accounts = self.session.execute(
            select(Account)
            .where(
                Account.company_code_id == company.id,
                or_(
                    func.lower(Account.name).like(pattern),
                    func.lower(Account.code).like(pattern),
                ),
            )
            .order_by(Account.code)
        ).scalars()
        return [AccountInfo.from_model(a) for a in accounts]

    def suggest_code(self, ctx: TenantContext, category: AccountCategory) -> str:
        company = self._tenants.require(ctx, "suggest_code")
        return suggest_account_code(category, self._codes_in_company(company))
