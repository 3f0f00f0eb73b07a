"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  All concrete services receive a
    SQLAlchemy ``Session`` and use ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (``write_scope()``) owns commit/rollback.
    - Single writer: mutating methods call ``_require_write()``, which
      refuses to run on a session that was not opened by ``write_scope()``.
      Number allocation and multi-row writes therefore always happen while
      the write lock is held.

Failure modes:
    - RuntimeError from ``_require_write()`` when a mutating method is
      called outside ``write_scope()`` (a programming error, not a domain
      failure).
"""

from abc import ABC

from sqlalchemy.orm import Session

from ledger_kernel.db.engine import is_write_session


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
    """

    def __init__(self, session: Session):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session

    def _require_write(self, operation: str) -> None:
        if not is_write_session(self.session):
            raise RuntimeError(
                f"{type(self).__name__}.{operation} must run inside write_scope()"
            )
