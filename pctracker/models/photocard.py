import logging
from dataclasses import dataclass
from typing import Any

from pctracker.models.status import Status, parse_status

logger = logging.getLogger(__name__)

# Fixed member set shown in the member selector, in display order
MEMBERS: tuple[str, ...] = (
    "Leo",
    "Junseo",
    "Arno",
    "Geonwoo",
    "Sangwon",
    "Xinlong",
    "Anxin",
    "Sanghyeon",
    "Units",
)

# Era value -> display label
ERAS: dict[str, str] = {
    "Euphoria": "Euphoria",
    "b2p": "Boys 2 Planet",
    "Otro": "Otros",
}

# Type value -> display label
TYPES: dict[str, str] = {
    "Album": "Album",
    "POB": "POB",
    "Merch": "Merch",
    "Other": "Other",
}


@dataclass(frozen=True)
class Photocard:
    """
    A catalog entry. Read-only; owned by the remote data store.

    ``order`` is the display position used for the initial sort.
    """

    id: int
    member: str
    era: str | None = None
    type: str | None = None
    image_url: str | None = None
    pc_name: str | None = None
    order: int = 0

    @property
    def label(self) -> str:
        """Name shown when no image is available."""
        return self.pc_name or self.member

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Photocard":
        """Build a photocard from a ``photocards`` table row."""
        return cls(
            id=int(row["id"]),
            member=row["member"],
            era=row.get("era"),
            type=row.get("type"),
            image_url=row.get("image_url"),
            pc_name=row.get("pc_name"),
            order=row.get("order") or 0,
        )


@dataclass(frozen=True)
class StatusAnnotation:
    """A user's status for one photocard. At most one per (user_id, pc_id)."""

    user_id: str
    pc_id: int
    status: Status

    def to_row(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "pc_id": self.pc_id, "status": self.status.value}


def statuses_from_rows(rows: list[dict[str, Any]]) -> dict[int, Status]:
    """
    Merge ``(pc_id, status)`` rows into a status mapping.

    Rows with no status are left out, since NONE is never stored in the mapping.
    Rows with an unknown status code are skipped and logged.
    """
    mapping: dict[int, Status] = {}
    for row in rows:
        try:
            status = parse_status(row.get("status"))
        except ValueError:
            logger.warning(
                "Skipping unknown status %r for card %s", row.get("status"), row.get("pc_id")
            )
            continue
        if status is not None:
            mapping[int(row["pc_id"])] = status
    return mapping
