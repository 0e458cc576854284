"""
Collection board endpoints.

Serves the filtered photocard grid with per-card status and collection
progress, and cycles a card's status.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from pctracker.api.dependencies import AccessToken, get_identity_client, get_rest_client
from pctracker.config import BOARD_PATH
from pctracker.db.rest import RestClient
from pctracker.models.board import ALL, FilterSelection
from pctracker.models.photocard import ERAS, MEMBERS, TYPES, Photocard
from pctracker.models.status import Status
from pctracker.services.collection_board import CollectionBoard
from pctracker.services.identity import IdentityClient, IdentityError, Session

logger = logging.getLogger(__name__)

router = APIRouter(prefix=BOARD_PATH, tags=["board"])

Identity = Annotated[IdentityClient, Depends(get_identity_client)]
Rest = Annotated[RestClient, Depends(get_rest_client)]


class OptionResponse(BaseModel):
    value: str
    label: str


class FilterOptionsResponse(BaseModel):
    """Choices for each facet. ``All`` comes first for era and type."""

    members: list[str] = Field(default_factory=lambda: list(MEMBERS))
    eras: list[OptionResponse] = Field(default_factory=list)
    types: list[OptionResponse] = Field(default_factory=list)


class FiltersResponse(BaseModel):
    members: list[str] = Field(default_factory=list)
    era: str = ALL
    type: str = ALL


class CellResponse(BaseModel):
    """One card in the grid."""

    id: int
    member: str
    era: str | None = None
    type: str | None = None
    image_url: str | None = None
    pc_name: str | None = None
    label: str = Field(..., description="Alt text, or placeholder when there is no image")
    status: Status | None = None
    badge: str | None = Field(default=None, description="Status code shown on the card")
    dimmed: bool = Field(default=True, description="False only for owned cards")


class ProgressResponse(BaseModel):
    completed: int
    total: int
    percent: int


class BoardResponse(BaseModel):
    """Response model for the collection board."""

    authenticated: bool
    loading: bool = False
    filters: FiltersResponse
    options: FilterOptionsResponse
    cells: list[CellResponse] = Field(default_factory=list)
    progress: ProgressResponse | None = Field(
        default=None,
        description="Hidden (null) when nothing is visible or nothing is completed",
    )
    total_items: int = 0


class CycleResponse(BaseModel):
    """Result of cycling a card's status."""

    item_id: int
    previous: Status | None = None
    status: Status | None = None
    changed: bool = False
    error: str | None = Field(
        default=None,
        description="Set when the change could not be saved",
    )


def _filter_options() -> FilterOptionsResponse:
    all_eras = [OptionResponse(value=ALL, label="All eras")]
    all_types = [OptionResponse(value=ALL, label="All types")]
    return FilterOptionsResponse(
        eras=all_eras + [OptionResponse(value=v, label=label) for v, label in ERAS.items()],
        types=all_types + [OptionResponse(value=v, label=label) for v, label in TYPES.items()],
    )


def _cell(card: Photocard, card_status: Status | None) -> CellResponse:
    return CellResponse(
        id=card.id,
        member=card.member,
        era=card.era,
        type=card.type,
        image_url=card.image_url,
        pc_name=card.pc_name,
        label=card.label,
        status=card_status,
        badge=card_status.value.upper() if card_status else None,
        dimmed=card_status is not Status.OWNED,
    )


def _member_sort_key(member: str) -> tuple[int, str]:
    """Known members in selector order, unknown ones after them."""
    if member in MEMBERS:
        return (MEMBERS.index(member), member)
    return (len(MEMBERS), member)


async def resolve_session(identity: IdentityClient, access_token: str | None) -> Session | None:
    """Resolve the caller's session, treating auth API failures as signed out."""
    try:
        return await identity.get_session(access_token)
    except IdentityError as e:
        logger.warning("Could not resolve session: %s", e)
        return None


@router.get("", response_model=BoardResponse)
async def get_board(
    identity: Identity,
    rest: Rest,
    access_token: AccessToken,
    member: Annotated[list[str] | None, Query()] = None,
    era: str = ALL,
    type_: Annotated[str, Query(alias="type")] = ALL,
) -> BoardResponse:
    """
    Get the collection board.

    Returns the catalog filtered by member (repeatable), era and type, with
    each card's status and the progress over the visible cards. A signed-out
    caller gets an empty board.
    """
    session = await resolve_session(identity, access_token)

    board = CollectionBoard(rest)
    await board.load(session)
    board.apply_filters(FilterSelection(members=frozenset(member or ()), era=era, type=type_))

    state = board.state
    progress = board.progress()

    return BoardResponse(
        authenticated=state.authenticated,
        loading=state.loading,
        filters=FiltersResponse(
            members=sorted(state.filters.members, key=_member_sort_key),
            era=state.filters.era,
            type=state.filters.type,
        ),
        options=_filter_options(),
        cells=[_cell(card, state.status_of(card.id)) for card in board.visible_items()],
        progress=(
            ProgressResponse(
                completed=progress.completed,
                total=progress.total,
                percent=progress.percent,
            )
            if progress
            else None
        ),
        total_items=len(state.items),
    )


@router.post("/items/{item_id}/cycle", response_model=CycleResponse)
async def cycle_item_status(
    item_id: int,
    identity: Identity,
    rest: Rest,
    access_token: AccessToken,
) -> CycleResponse:
    """
    Advance a card to its next status.

    Cycles none -> prio -> otw -> owned -> none. If saving fails, ``error``
    explains why; the new status is kept unless rollback on write failure is
    enabled. Does nothing for a signed-out caller.
    """
    session = await resolve_session(identity, access_token)

    board = CollectionBoard(rest)
    await board.load(session, include_catalog=False)

    previous = board.state.status_of(item_id)
    current = await board.cycle_status(item_id)

    return CycleResponse(
        item_id=item_id,
        previous=previous,
        status=current,
        changed=current != previous,
        error=board.state.last_error,
    )
