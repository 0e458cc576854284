"""
Collection board view state.

The board's state is an explicit record owned by a single controller
(see ``pctracker.services.collection_board``). Filtering and progress are
pure functions over that state so they can be computed and tested without
any I/O.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from pctracker.models.photocard import Photocard
from pctracker.models.status import COMPLETED_STATUSES, Status

ALL = "All"


@dataclass
class FilterSelection:
    """
    Active facet filters.

    An empty member set means every member. Era and type are single-valued
    and default to ``"All"``.
    """

    members: frozenset[str] = frozenset()
    era: str = ALL
    type: str = ALL

    def matches(self, card: Photocard) -> bool:
        """True if the card passes all three facets."""
        if self.members and card.member not in self.members:
            return False
        if self.era != ALL and card.era != self.era:
            return False
        if self.type != ALL and card.type != self.type:
            return False
        return True


@dataclass(frozen=True)
class Progress:
    """Share of visible cards that are on the way or owned."""

    completed: int
    total: int
    percent: int


@dataclass
class BoardState:
    """
    Transient state of one user's collection board.

    ``statuses`` holds only cards with a status; a missing key means NONE.
    ``last_error`` is set when a remote write fails and cleared by the next
    successful one.
    """

    user_id: str | None = None
    items: list[Photocard] = field(default_factory=list)
    statuses: dict[int, Status] = field(default_factory=dict)
    filters: FilterSelection = field(default_factory=FilterSelection)
    loading: bool = True
    last_error: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None

    def status_of(self, item_id: int) -> Status | None:
        return self.statuses.get(item_id)


def visible_items(items: list[Photocard], filters: FilterSelection) -> list[Photocard]:
    """Filter the catalog, preserving catalog order."""
    return [card for card in items if filters.matches(card)]


def round_percent(completed: int, total: int) -> int:
    """Integer percentage rounded half up (1/3 -> 33, 1/8 -> 13)."""
    value = Decimal(completed * 100) / Decimal(total)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_progress(visible: list[Photocard], statuses: dict[int, Status]) -> Progress | None:
    """
    Compute progress over the visible cards.

    Returns None when nothing is visible or nothing is completed; the
    progress bar is hidden in both cases.
    """
    total = len(visible)
    if total == 0:
        return None

    completed = sum(1 for card in visible if statuses.get(card.id) in COMPLETED_STATUSES)
    if completed == 0:
        return None

    return Progress(completed=completed, total=total, percent=round_percent(completed, total))
