"""
TenantService -- tenant bootstrap and tenant-context resolution.

Responsibility:
    Creates a tenant with its first chart of accounts and company code,
    deletes a tenant (cascading to everything it owns), and resolves an
    explicit TenantContext into the company code it addresses.

Architecture position:
    Kernel > Services -- imperative shell.  Every other service calls
    ``require()`` before touching tenant-scoped rows.

Invariants enforced:
    - There is no ambient "current tenant": every engine call carries a
      TenantContext.  A missing context is AuthenticationRequiredError.
    - A context whose tenant does not exist is TenantNotFoundError; a
      company code outside the tenant is DataNotFoundError.

Failure modes:
    - AuthenticationRequiredError, TenantNotFoundError, DataNotFoundError,
      RequiredFieldMissingError (empty tenant name).
"""

from uuid import UUID

from sqlalchemy import delete, select

from ledger_kernel.db.types import validate_currency
from ledger_kernel.domain.dtos import TenantContext
from ledger_kernel.exceptions import (
    AuthenticationRequiredError,
    DataNotFoundError,
    RequiredFieldMissingError,
    TenantNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.tenant import ChartOfAccounts, CompanyCode, Tenant
from ledger_kernel.services.base import BaseService

logger = get_logger("services.tenant")


class TenantService(BaseService):
    """
    Tenant lifecycle and context resolution.

    Contract:
        ``create_tenant`` returns the TenantContext callers pass to every
        other service.  ``require`` returns the CompanyCode of a valid
        context and raises otherwise.
    """

    def create_tenant(
        self,
        name: str,
        *,
        email: str | None = None,
        company_code: str = "1000",
        company_name: str | None = None,
        base_currency: str = "USD",
        chart_code: str = "DEFAULT",
        actor_id: UUID | None = None,
    ) -> TenantContext:
        """
        Create a tenant, its chart of accounts and its first company code.

        The chart starts empty; AccountService.initialize_default_chart()
        seeds it.
        """
        self._require_write("create_tenant")
        if not name or not name.strip():
            raise RequiredFieldMissingError("Tenant name")
        currency = validate_currency(base_currency)

        tenant = Tenant(name=name.strip(), email=email, created_by_id=actor_id)
        self.session.add(tenant)
        self.session.flush()

        chart = ChartOfAccounts(
            tenant_id=tenant.id,
            code=chart_code,
            name=f"{tenant.name} chart of accounts",
            created_by_id=actor_id,
        )
        self.session.add(chart)
        self.session.flush()

        company = CompanyCode(
            tenant_id=tenant.id,
            code=company_code,
            name=company_name or tenant.name,
            base_currency=currency,
            chart_id=chart.id,
            created_by_id=actor_id,
        )
        self.session.add(company)
        self.session.flush()

        logger.info(
            "tenant_created",
            extra={
                "tenant_id": str(tenant.id),
                "company_code": company.code,
                "base_currency": currency,
            },
        )
        return TenantContext(
            tenant_id=tenant.id,
            company_code_id=company.id,
            actor_id=actor_id,
        )

    def delete_tenant(self, tenant_id: UUID) -> None:
        """Delete a tenant; the schema cascades to everything it owns."""
        self._require_write("delete_tenant")
        if self.session.get(Tenant, tenant_id) is None:
            raise TenantNotFoundError(str(tenant_id))
        # Core DELETE so ON DELETE CASCADE runs in one statement
        self.session.execute(delete(Tenant).where(Tenant.id == tenant_id))
        self.session.expire_all()
        logger.warning("tenant_deleted", extra={"tenant_id": str(tenant_id)})

    def require(self, ctx: TenantContext | None, operation: str | None = None) -> CompanyCode:
        """
        Resolve a tenant context to its company code.

        Raises:
            AuthenticationRequiredError: ctx is None.
            TenantNotFoundError: the tenant does not exist.
            DataNotFoundError: the company code is not the tenant's.
        """
        if ctx is None:
            raise AuthenticationRequiredError(operation)
        if self.session.get(Tenant, ctx.tenant_id) is None:
            raise TenantNotFoundError(str(ctx.tenant_id))
        company = self.session.execute(
            select(CompanyCode).where(
                CompanyCode.id == ctx.company_code_id,
                CompanyCode.tenant_id == ctx.tenant_id,
            )
        ).scalar_one_or_none()
        if company is None:
            raise DataNotFoundError(
                f"Company code {ctx.company_code_id} not found for tenant {ctx.tenant_id}"
            )
        return company
