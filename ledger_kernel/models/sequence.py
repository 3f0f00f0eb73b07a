"""
Module: ledger_kernel.models.sequence
Responsibility: Counter rows backing SequenceService.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - One row per (company_code_id, name); current_value only grows.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, UUIDString


class SequenceCounter(Base):
    """
    Named counter, scoped to a company code.

    Each row represents a named sequence with its current value.  Rows are
    only read and incremented inside write_scope(), which serializes them.
    """

    __tablename__ = "sequence_counters"

    __table_args__ = (
        UniqueConstraint("company_code_id", "name", name="uq_sequence_name_company"),
    )

    company_code_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("company_codes.id", ondelete="CASCADE"),
        nullable=False,
    )

    # e.g. "document:INV"
    name: Mapped[str] = mapped_column(String(50), nullable=False)

    current_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
