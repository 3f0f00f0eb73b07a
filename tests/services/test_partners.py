"""Tests for PartnerService -- customers, vendors and partner codes."""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.db.engine import read_scope, write_scope
from ledger_kernel.exceptions import (
    PartnerNotFoundError,
    RequiredFieldMissingError,
    ValidationFailedError,
)
from ledger_kernel.models.party import PartnerType
from ledger_kernel.services.partner_service import PartnerService, next_partner_code


def _create(ctx, name, partner_type=PartnerType.CUSTOMER, **kwargs):
    with write_scope() as session:
        return PartnerService(session).create_partner(ctx, name, partner_type, **kwargs)


class TestPartnerCodes:
    """Codes are <prefix><NNNN>: highest existing number + 1 per type."""

    def test_pure_rule(self):
        assert next_partner_code([], PartnerType.CUSTOMER) == "CUS0001"
        assert next_partner_code(["VEN0001", "VEN0007", "VENX"], PartnerType.VENDOR) == "VEN0008"
        assert next_partner_code(["CUS0003"], PartnerType.BOTH) == "BP0001"

    def test_generated_per_type(self, ctx):
        assert _create(ctx, "Acme").partner_code == "CUS0001"
        assert _create(ctx, "Globex").partner_code == "CUS0002"
        assert _create(ctx, "Initech", PartnerType.VENDOR).partner_code == "VEN0001"
        assert _create(ctx, "Umbrella", PartnerType.BOTH).partner_code == "BP0001"


class TestCreatePartner:
    def test_defaults(self, ctx):
        info = _create(
            ctx,
            "  Acme Corp ",
            email="ap@acme.example",
            credit_limit=Decimal("5000"),
            payment_terms_days=30,
        )
        assert info.name == "Acme Corp"
        assert info.balance == Decimal("0")
        assert info.is_active
        assert info.credit_limit == Decimal("5000")
        assert info.payment_terms_days == 30

    def test_name_required(self, ctx):
        with pytest.raises(RequiredFieldMissingError):
            _create(ctx, "  ")

    def test_invalid_email(self, ctx):
        with pytest.raises(ValidationFailedError):
            _create(ctx, "Acme", email="not-an-address")

    def test_negative_credit_limit(self, ctx):
        with pytest.raises(ValidationFailedError):
            _create(ctx, "Acme", credit_limit=Decimal("-1"))

    def test_negative_terms(self, ctx):
        with pytest.raises(ValidationFailedError):
            _create(ctx, "Acme", payment_terms_days=-5)


class TestPartnerReads:
    def test_list_by_type_includes_both(self, ctx):
        _create(ctx, "Acme")
        _create(ctx, "Initech", PartnerType.VENDOR)
        _create(ctx, "Umbrella", PartnerType.BOTH)
        with read_scope() as session:
            service = PartnerService(session)
            customers = service.list_partners(ctx, PartnerType.CUSTOMER)
            vendors = service.list_partners(ctx, PartnerType.VENDOR)
            everyone = service.list_partners(ctx)
        assert [p.name for p in customers] == ["Umbrella", "Acme"]
        assert [p.name for p in vendors] == ["Umbrella", "Initech"]
        assert len(everyone) == 3

    def test_search(self, ctx):
        _create(ctx, "Acme Corp", email="billing@acme.example")
        _create(ctx, "Globex")
        with read_scope() as session:
            service = PartnerService(session)
            assert [p.name for p in service.search(ctx, "ACME")] == ["Acme Corp"]
            assert [p.name for p in service.search(ctx, "cus0002")] == ["Globex"]

    def test_get_unknown(self, ctx):
        with read_scope() as session:
            with pytest.raises(PartnerNotFoundError):
                PartnerService(session).get(ctx, uuid4())

    def test_partner_of_other_tenant_invisible(self, ctx, other_ctx):
        info = _create(ctx, "Acme")
        with read_scope() as session:
            with pytest.raises(PartnerNotFoundError):
                PartnerService(session).get(other_ctx, info.id)
