"""
Payment ORM Models (``ledger_modules.payments.orm``).

Responsibility
--------------
SQLAlchemy persistence for incoming and outgoing payments.

Architecture position
---------------------
**Modules layer** -- persistence.  MUST NOT be imported by
``ledger_kernel``.

Invariants enforced
-------------------
* payment_number is unique per company code and direction.
* amount is positive.
* A payment and its REC/PAY posting are written in one transaction;
  journal_entry_id is only NULL after the posting was deleted.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_modules.payments.models import PaymentDirection, PaymentInfo


class _PaymentFields:
    """Columns both payment directions share."""

    payment_number: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    partner_name: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def _document_id(self) -> UUID | None:
        raise NotImplementedError

    def to_dto(self) -> PaymentInfo:
        return PaymentInfo(
            id=self.id,
            direction=self.direction,
            payment_number=self.payment_number,
            amount=self.amount,
            payment_date=self.payment_date,
            partner_id=self.partner_id,
            partner_name=self.partner_name,
            account_id=self.account_id,
            journal_entry_id=self.journal_entry_id,
            document_id=self._document_id(),
            notes=self.notes,
            reference_number=self.reference_number,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.payment_number}: {self.amount}>"


class IncomingPayment(_PaymentFields, TrackedBase):
    """Money received from a customer into a cash or bank account."""

    __tablename__ = "incoming_payments"

    __table_args__ = (
        UniqueConstraint("company_code_id", "payment_number", name="uq_incoming_payment_number"),
        CheckConstraint("amount > 0", name="chk_incoming_payment_positive"),
        Index("idx_incoming_payment_partner", "partner_id"),
    )

    direction = PaymentDirection.CREDIT

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("company_codes.id", ondelete="CASCADE"), nullable=False
    )
    partner_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("business_partners.id"), nullable=False
    )
    account_id: Mapped[UUID] = mapped_column(UUIDString(), ForeignKey("accounts.id"), nullable=False)
    journal_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("journal_entries.id", ondelete="SET NULL"), nullable=True
    )
    sale_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("sales.id", ondelete="SET NULL"), nullable=True
    )

    def _document_id(self) -> UUID | None:
        return self.sale_id


class OutgoingPayment(_PaymentFields, TrackedBase):
    """Money paid to a vendor from a cash or bank account."""

    __tablename__ = "outgoing_payments"

    __table_args__ = (
        UniqueConstraint("company_code_id", "payment_number", name="uq_outgoing_payment_number"),
        CheckConstraint("amount > 0", name="chk_outgoing_payment_positive"),
        Index("idx_outgoing_payment_partner", "partner_id"),
    )

    direction = PaymentDirection.DEBIT

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("company_codes.id", ondelete="CASCADE"), nullable=False
    )
    partner_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("business_partners.id"), nullable=False
    )
    account_id: Mapped[UUID] = mapped_column(UUIDString(), ForeignKey("accounts.id"), nullable=False)
    journal_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("journal_entries.id", ondelete="SET NULL"), nullable=True
    )
    purchase_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("purchases.id", ondelete="SET NULL"), nullable=True
    )

    def _document_id(self) -> UUID | None:
        return self.purchase_id
