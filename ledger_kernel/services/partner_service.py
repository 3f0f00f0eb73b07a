"""
PartnerService -- customers and vendors.

Responsibility:
    Creates business partners with generated partner codes, reads and
    searches them, and moves their running balance when a document is
    posted against them.

Architecture position:
    Kernel > Services -- imperative shell.
    adjust_balance() is called only by the document posting services of
    ledger_modules, in the same write transaction as the document.

Invariants enforced:
    - partner_code is ``<prefix><NNNN>`` with the prefix of the partner
      type (CUS, VEN, BP) and NNNN = highest existing number + 1.
    - Partner name is required; email, when given, must look like an
      address; credit limit is never negative.
    - balance is never edited directly.

Failure modes:
    - RequiredFieldMissingError, ValidationFailedError,
      PartnerNotFoundError.
"""

import re
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select

from ledger_kernel.db.types import ZERO, to_money
from ledger_kernel.domain.dtos import PartnerInfo, TenantContext
from ledger_kernel.exceptions import (
    PartnerNotFoundError,
    RequiredFieldMissingError,
    ValidationFailedError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.party import BusinessPartner, PartnerType
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.tenant_service import TenantService

logger = get_logger("services.partner")

_EMAIL = re.compile(r"^[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}$")


def next_partner_code(existing: list[str], partner_type: PartnerType) -> str:
    """``CUS0001`` style code: highest numeric suffix for the prefix + 1."""
    prefix = partner_type.code_prefix
    highest = 0
    for code in existing:
        if code and code.startswith(prefix) and code[len(prefix):].isdigit():
            highest = max(highest, int(code[len(prefix):]))
    return "%s%04d" % (prefix, highest + 1)


class PartnerService(BaseService):
    """Business partner registry for one session."""

    def __init__(self, session):
        super().__init__(session)
        self._tenants = TenantService(session)

    def load(self, tenant_id: UUID, partner_id: UUID) -> BusinessPartner:
        partner = self.session.get(BusinessPartner, partner_id)
        if partner is None or partner.tenant_id != tenant_id:
            raise PartnerNotFoundError(str(partner_id))
        return partner

    def create_partner(
        self,
        ctx: TenantContext,
        name: str,
        partner_type: PartnerType,
        *,
        email: str | None = None,
        phone: str | None = None,
        address: str | None = None,
        city: str | None = None,
        country: str | None = None,
        tax_id: str | None = None,
        vat_number: str | None = None,
        credit_limit: Decimal | None = None,
        payment_terms_days: int | None = None,
        discount_percent: Decimal | None = None,
        reconciliation_account_id: UUID | None = None,
        notes: str | None = None,
    ) -> PartnerInfo:
        """
        Create a partner and generate its code.

        Raises:
            RequiredFieldMissingError: empty name.
            ValidationFailedError: malformed email or negative credit limit.
        """
        company = self._tenants.require(ctx, "create_partner")
        self._require_write("create_partner")

        if not name or not name.strip():
            raise RequiredFieldMissingError("Partner name")
        if email and not _EMAIL.match(email.strip()):
            raise ValidationFailedError(f"Invalid email address: {email}")
        if credit_limit is not None and to_money(credit_limit) < ZERO:
            raise ValidationFailedError("Credit limit cannot be negative")
        if payment_terms_days is not None and payment_terms_days < 0:
            raise ValidationFailedError("Payment terms cannot be negative")

        existing = list(
            self.session.execute(
                select(BusinessPartner.partner_code).where(
                    BusinessPartner.tenant_id == company.tenant_id,
                    BusinessPartner.partner_type == partner_type,
                )
            ).scalars()
        )
        partner = BusinessPartner(
            tenant_id=company.tenant_id,
            partner_code=next_partner_code(existing, partner_type),
            name=name.strip(),
            partner_type=partner_type,
            email=email.strip() if email else None,
            phone=phone,
            address=address,
            city=city,
            country=country,
            tax_id=tax_id,
            vat_number=vat_number,
            credit_limit=to_money(credit_limit) if credit_limit is not None else None,
            payment_terms_days=payment_terms_days,
            discount_percent=discount_percent,
            reconciliation_account_id=reconciliation_account_id,
            notes=notes,
            created_by_id=ctx.actor_id,
        )
        self.session.add(partner)
        self.session.flush()

        logger.info(
            "partner_created",
            extra={
                "partner_id": str(partner.id),
                "partner_code": partner.partner_code,
                "partner_type": partner_type.value,
            },
        )
        return self._to_info(partner)

    def adjust_balance(
        self,
        partner: BusinessPartner,
        delta: Decimal,
        transaction_date: date | None = None,
    ) -> Decimal:
        """Move the partner balance by ``delta``; posting services only."""
        self._require_write("adjust_balance")
        before = partner.balance
        partner.balance = before + to_money(delta)
        if transaction_date is not None:
            partner.last_transaction_date = transaction_date
        logger.debug(
            "partner_balance_adjusted",
            extra={
                "partner_code": partner.partner_code,
                "balance_before": before,
                "balance_after": partner.balance,
            },
        )
        return partner.balance

    def get(self, ctx: TenantContext, partner_id: UUID) -> PartnerInfo:
        company = self._tenants.require(ctx, "get_partner")
        return self._to_info(self.load(company.tenant_id, partner_id))

    def list_partners(
        self,
        ctx: TenantContext,
        partner_type: PartnerType | None = None,
        active_only: bool = False,
    ) -> list[PartnerInfo]:
        """
        Partners ordered by code.  Filtering by CUSTOMER or VENDOR also
        returns partners of type BOTH.
        """
        company = self._tenants.require(ctx, "list_partners")
        query = select(BusinessPartner).where(BusinessPartner.tenant_id == company.tenant_id)
        if partner_type is not None:
            query = query.where(
                BusinessPartner.partner_type.in_({partner_type, PartnerType.BOTH})
            )
        if active_only:
            query = query.where(BusinessPartner.is_active.is_(True))
        partners = self.session.execute(query.order_by(BusinessPartner.partner_code)).scalars()
        return [self._to_info(p) for p in partners]

    def search(self, ctx: TenantContext, text: str) -> list[PartnerInfo]:
        if not text or not text.strip():
            return self.list_partners(ctx)
        company = self._tenants.require(ctx, "search_partners")
        pattern = f"%{text.strip().lower()}%"
        partners = self.session.execute(
            select(BusinessPartner)
            .where(
                BusinessPartner.tenant_id == company.tenant_id,
                or_(
                    func.lower(BusinessPartner.name).like(pattern),
                    func.lower(BusinessPartner.partner_code).like(pattern),
                    func.lower(BusinessPartner.email).like(pattern),
                ),
            )
            .order_by(BusinessPartner.partner_code)
        ).scalars()
        return [self._to_info(p) for p in partners]

    @staticmethod
    def _to_info(partner: BusinessPartner) -> PartnerInfo:
        return PartnerInfo(
            id=partner.id,
            partner_code=partner.partner_code,
            name=partner.name,
            partner_type=partner.partner_type.value,
            balance=partner.balance,
            is_active=partner.is_active,
            email=partner.email,
            phone=partner.phone,
            credit_limit=partner.credit_limit,
            payment_terms_days=partner.payment_terms_days,
            reconciliation_account_id=partner.reconciliation_account_id,
            last_transaction_date=partner.last_transaction_date,
        )
