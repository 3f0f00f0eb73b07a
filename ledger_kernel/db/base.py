"""
Declarative bases for every ledger table.

All models get a uuid4 primary key stored as text.  ``Mapped[Decimal]``
columns map to DecimalText with 9 decimal places, stored as exact text,
so money never passes through a float.  Tenant, chart, journal and
document rows inherit TrackedBase for their audit columns.

Nothing here imports from models/, services/ or selectors/.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from ledger_kernel.db.types import MONEY_DECIMAL_PLACES, DecimalText


def utcnow() -> datetime:
    return datetime.now(UTC)


class UUIDString(TypeDecorator):
    """UUID kept as its 36-character string form; SQLite has no UUID type."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: DecimalText(MONEY_DECIMAL_PLACES),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: Integer,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Adds created_at / updated_at and the acting user.

    ``created_by_id`` is the ``TenantContext.actor_id`` of the call that
    inserted the row, or NULL when that call carried no actor.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)
    created_by_id: Mapped[PyUUID | None] = mapped_column(UUIDString())


UUID = PyUUID
