"""Database layer - engine, transactional scopes, base classes and types."""

from ledger_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from ledger_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    read_scope,
    write_scope,
)
from ledger_kernel.db.types import (
    BALANCE_TOLERANCE,
    DISPLAY_TOLERANCE,
    DecimalText,
    StrictEnum,
)

__all__ = [
    "get_engine",
    "get_session",
    "create_tables",
    "read_scope",
    "write_scope",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "DecimalText",
    "StrictEnum",
    "BALANCE_TOLERANCE",
    "DISPLAY_TOLERANCE",
]
