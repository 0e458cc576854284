from pctracker.models.board import (
    ALL,
    BoardState,
    FilterSelection,
    Progress,
    compute_progress,
    visible_items,
)
from pctracker.models.photocard import (
    ERAS,
    MEMBERS,
    TYPES,
    Photocard,
    StatusAnnotation,
    statuses_from_rows,
)
from pctracker.models.status import (
    COMPLETED_STATUSES,
    STATUS_CYCLE,
    Status,
    next_status,
    parse_status,
)

__all__ = [
    "ALL",
    "COMPLETED_STATUSES",
    "ERAS",
    "MEMBERS",
    "STATUS_CYCLE",
    "TYPES",
    "BoardState",
    "FilterSelection",
    "Photocard",
    "Progress",
    "Status",
    "StatusAnnotation",
    "compute_progress",
    "next_status",
    "parse_status",
    "statuses_from_rows",
    "visible_items",
]
