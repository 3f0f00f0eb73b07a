"""
SequenceService -- monotonic counters for document numbers.

Responsibility:
    Allocates the integer ``document_number`` of a journal entry: one
    strictly increasing series per (company code, transaction type).
    Uses a dedicated counter table so the value never depends on which
    entries still exist.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by JournalService while a write_scope() is active.

Invariants enforced:
    - Monotonicity: values of a series only grow; deleting an entry never
      hands its number out again.
    - Single writer: read-increment-flush runs inside write_scope(), whose
      BEGIN IMMEDIATE and process lock exclude every other writer, so no
      two transactions can read the same counter value.
    - Transactional: the increment is only visible after the caller's
      transaction commits.  Rollback returns the value.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.sequence import SequenceCounter
from ledger_kernel.services.base import BaseService

logger = get_logger("services.sequence")


class SequenceService(BaseService):
    """
    Named counters scoped to a company code.

    Does NOT call ``session.commit()``; the caller owns the transaction.
    """

    @staticmethod
    def document_series(transaction_type: str) -> str:
        """Counter name of the document-number series of a transaction type."""
        return f"document:{transaction_type}"

    def _counter(self, company_code_id: UUID, name: str) -> SequenceCounter | None:
        return self.session.execute(
            select(SequenceCounter).where(
                SequenceCounter.company_code_id == company_code_id,
                SequenceCounter.name == name,
            )
        ).scalar_one_or_none()

    def next_value(self, company_code_id: UUID, name: str) -> int:
        """
        Next value of a series, strictly greater than any value it has
        returned before.  The first value of a new series is 1.
        """
        self._require_write("next_value")

        counter = self._counter(company_code_id, name)
        if counter is None:
            counter = SequenceCounter(company_code_id=company_code_id, name=name, current_value=1)
            self.session.add(counter)
        else:
            counter.current_value += 1
        self.session.flush()

        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, company_code_id: UUID, name: str) -> int | None:
        """Current value of a sequence without incrementing, or None if unused."""
        counter = self._counter(company_code_id, name)
        return counter.current_value if counter else None
