"""
Numbering -- human-readable document numbers.

Responsibility:
    Formats the next number of a prefixed series (``JE-0001``,
    ``INV-AR-00001``) from the numbers already issued.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - next = max(parsed suffixes) + 1, never count + 1, so gaps left by
      deleted documents are not refilled.
    - The suffix is the text after the LAST "-"; numbers whose suffix is
      not an integer are ignored.

Concurrency:
    The result is only unique if the scan and the insert of the new number
    happen inside the same write section (see db.engine.write_scope).
"""

from __future__ import annotations

from collections.abc import Iterable


def parse_suffix(number: str | None) -> int | None:
    """Integer after the last "-", or None if there is none."""
    if not number:
        return None
    _, _, tail = number.rpartition("-")
    try:
        return int(tail)
    except ValueError:
        return None


def next_document_number(existing: Iterable[str | None], prefix: str, width: int = 4) -> str:
    """
    Next number in the ``prefix``-``NNNN`` series.

    Examples:
        next_document_number([], "JE") == "JE-0001"
        next_document_number(["JE-0001", "JE-0005"], "JE") == "JE-0006"
    """
    highest = 0
    for number in existing:
        value = parse_suffix(number)
        if value is not None and value > highest:
            highest = value
    return f"{prefix}-{highest + 1:0{width}d}"
