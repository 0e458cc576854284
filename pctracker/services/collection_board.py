"""
Collection board controller.

Owns one user's board state: loads the catalog and the user's statuses,
applies facet filters, and cycles a card's status while reconciling the
change with the data store.

Status changes are optimistic. The new status is applied to local state
before the remote write; a failed write is logged and recorded in
``BoardState.last_error``. Local state is only rolled back when
``rollback_on_write_failure`` is enabled.
"""

import asyncio
import logging

from pctracker.config import settings
from pctracker.db.operations import (
    delete_annotation,
    insert_annotation,
    read_annotations,
    read_catalog,
    update_annotation,
)
from pctracker.db.rest import DataStoreError, RestClient
from pctracker.models.board import (
    BoardState,
    FilterSelection,
    Progress,
    compute_progress,
    visible_items,
)
from pctracker.models.photocard import Photocard
from pctracker.models.status import Status, next_status
from pctracker.services.identity import Session

logger = logging.getLogger(__name__)


class CollectionBoard:
    """Board controller for a single user."""

    def __init__(
        self,
        rest: RestClient,
        *,
        rollback_on_write_failure: bool | None = None,
        use_native_upsert: bool | None = None,
    ) -> None:
        self.rest = rest
        self.rollback_on_write_failure = (
            settings.rollback_on_write_failure
            if rollback_on_write_failure is None
            else rollback_on_write_failure
        )
        self.use_native_upsert = (
            settings.use_native_upsert if use_native_upsert is None else use_native_upsert
        )
        self.state = BoardState()

    # --- Loading ---

    async def load(self, session: Session | None, *, include_catalog: bool = True) -> BoardState:
        """
        Load the board for a session.

        Without a session the board stays empty and is marked loaded; no
        redirect happens here. Catalog and status reads run concurrently and
        a failed read degrades to an empty catalog or to all cards unmarked.

        Args:
            session: Current session, or None if not signed in
            include_catalog: Skip the catalog read when only statuses are needed
        """
        self.state.loading = True

        if session is None:
            self.state.loading = False
            return self.state

        user_id = session.user.id
        self.state.user_id = user_id

        if include_catalog:
            await asyncio.gather(self._load_catalog(), self._load_statuses(user_id))
        else:
            await self._load_statuses(user_id)

        self.state.loading = False
        return self.state

    async def _load_catalog(self) -> None:
        try:
            self.state.items = await read_catalog(self.rest)
        except DataStoreError as e:
            logger.error("Failed to read catalog: %s", e)
            self.state.items = []

    async def _load_statuses(self, user_id: str) -> None:
        try:
            self.state.statuses = await read_annotations(self.rest, user_id)
        except DataStoreError as e:
            logger.error("Failed to read statuses for user %s: %s", user_id, e)
            self.state.statuses = {}

    # --- Status cycling ---

    async def cycle_status(self, item_id: int) -> Status | None:
        """
        Advance a card to its next status and persist the change.

        Cycles NONE -> PRIORITY -> ON_THE_WAY -> OWNED -> NONE. Cycling back
        to NONE deletes the stored annotation; any other step updates the
        existing annotation, inserting one when none exists.

        Does nothing when no user is signed in.

        Returns:
            The card's status in local state after the call (None for NONE)
        """
        user_id = self.state.user_id
        if user_id is None:
            return None

        previous = self.state.status_of(item_id)
        target = next_status(previous)

        if target is None:
            self.state.statuses.pop(item_id, None)
        else:
            self.state.statuses[item_id] = target

        try:
            if target is None:
                await delete_annotation(self.rest, user_id, item_id)
            else:
                await self._save_status(user_id, item_id, target)
        except DataStoreError as e:
            logger.error("Failed to save status for card %d: %s", item_id, e)
            self._write_failed(item_id, previous, e)
        else:
            self.state.last_error = None

        return self.state.status_of(item_id)

    async def _save_status(self, user_id: str, item_id: int, status: Status) -> None:
        """
        Persist a non-NONE status.

        Updates the existing annotation first and inserts one only when the
        update touched no rows. A failed update is logged and treated as
        touching no rows.
        """
        if self.use_native_upsert:
            await insert_annotation(self.rest, user_id, item_id, status)
            return

        try:
            updated = await update_annotation(self.rest, user_id, item_id, status)
        except DataStoreError as e:
            logger.warning("Update of card %d failed, falling back to insert: %s", item_id, e)
            updated = []

        if not updated:
            await insert_annotation(self.rest, user_id, item_id, status)

    def _write_failed(self, item_id: int, previous: Status | None, error: DataStoreError) -> None:
        self.state.last_error = f"Could not save card {item_id}: {error}"
        if not self.rollback_on_write_failure:
            return
        if previous is None:
            self.state.statuses.pop(item_id, None)
        else:
            self.state.statuses[item_id] = previous

    # --- Filtering ---

    def toggle_member(self, member: str) -> None:
        """Add a member to the member filter, or remove it if already selected."""
        members = set(self.state.filters.members)
        members.symmetric_difference_update({member})
        self.state.filters.members = frozenset(members)

    def clear_members(self) -> None:
        self.state.filters.members = frozenset()

    def select_era(self, era: str) -> None:
        self.state.filters.era = era

    def select_type(self, type_: str) -> None:
        self.state.filters.type = type_

    def apply_filters(self, filters: FilterSelection) -> None:
        self.state.filters = filters

    def visible_items(self) -> list[Photocard]:
        return visible_items(self.state.items, self.state.filters)

    def progress(self) -> Progress | None:
        return compute_progress(self.visible_items(), self.state.statuses)
