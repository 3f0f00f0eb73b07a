"""
Module: ledger_kernel.selectors.base
Responsibility: Base class for read-only query selectors.  Selectors are the
    read side of the kernel: they return frozen DTOs built from the current
    rows and never mutate anything.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    the DTOs of domain/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: no add(), delete(), flush() or commit().
    - DTO return convention: no ORM instance leaves a selector.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, run read-only queries
        and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
