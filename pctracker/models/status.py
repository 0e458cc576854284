"""
Ownership status lifecycle.

A photocard's status moves through a fixed cycle:

    NONE -> PRIORITY -> ON_THE_WAY -> OWNED -> NONE

NONE is never stored. It is represented by ``None`` (no annotation row,
no entry in the status mapping).
"""

from enum import Enum


class Status(str, Enum):
    """Stored status values. Values match the ``user_pcs.status`` column."""

    PRIORITY = "prio"
    ON_THE_WAY = "otw"
    OWNED = "owned"


# Cyclic order, starting from NONE
STATUS_CYCLE: tuple[Status | None, ...] = (
    None,
    Status.PRIORITY,
    Status.ON_THE_WAY,
    Status.OWNED,
)

# Statuses that count toward collection progress
COMPLETED_STATUSES = frozenset({Status.ON_THE_WAY, Status.OWNED})


def next_status(current: Status | None) -> Status | None:
    """Return the successor of ``current`` in the cycle, wrapping OWNED to NONE."""
    index = STATUS_CYCLE.index(current)
    return STATUS_CYCLE[(index + 1) % len(STATUS_CYCLE)]


def parse_status(value: str | None) -> Status | None:
    """
    Parse a stored status value.

    Returns None for missing values. Raises ValueError for unknown codes.
    """
    if value is None:
        return None
    return Status(value)
