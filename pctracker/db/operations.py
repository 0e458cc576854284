"""
Data store operations.

Async functions for reading the photocard catalog and reading, writing and
deleting a user's status annotations.
"""

from typing import Any

from pctracker.db.rest import DataStoreError, RestClient
from pctracker.models.photocard import Photocard, StatusAnnotation, statuses_from_rows
from pctracker.models.status import Status

CATALOG_TABLE = "photocards"
ANNOTATION_TABLE = "user_pcs"

# Composite key of the annotation table
ANNOTATION_KEY = "user_id,pc_id"


def _annotation_filter(user_id: str, pc_id: int) -> dict[str, str]:
    return {"user_id": f"eq.{user_id}", "pc_id": f"eq.{pc_id}"}


# --- Catalog Operations ---


async def read_catalog(rest: RestClient) -> list[Photocard]:
    """Read the full catalog, ordered by display order ascending."""
    rows = await rest.request(
        "GET",
        CATALOG_TABLE,
        params={"select": "*", "order": "order.asc"},
    )
    try:
        return [Photocard.from_row(row) for row in rows]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise DataStoreError(f"Malformed {CATALOG_TABLE} row: {e!r}") from e


# --- Annotation Operations ---


async def read_annotations(rest: RestClient, user_id: str) -> dict[int, Status]:
    """Read a user's annotations as a mapping of pc_id to status."""
    rows = await rest.request(
        "GET",
        ANNOTATION_TABLE,
        params={"select": "pc_id,status", "user_id": f"eq.{user_id}"},
    )
    try:
        return statuses_from_rows(rows)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise DataStoreError(f"Malformed {ANNOTATION_TABLE} row: {e!r}") from e


async def update_annotation(
    rest: RestClient, user_id: str, pc_id: int, status: Status
) -> list[dict[str, Any]]:
    """
    Update the status of an existing annotation.

    Returns:
        The updated rows. Empty when the user has no annotation for this card.
    """
    return await rest.request(
        "PATCH",
        ANNOTATION_TABLE,
        params=_annotation_filter(user_id, pc_id),
        json={"status": status.value},
        prefer="return=representation",
    )


async def insert_annotation(rest: RestClient, user_id: str, pc_id: int, status: Status) -> None:
    """
    Insert an annotation.

    The insert resolves a duplicate (user_id, pc_id) key by overwriting the
    existing row's status, so it is safe to repeat and doubles as an upsert.
    """
    annotation = StatusAnnotation(user_id=user_id, pc_id=pc_id, status=status)
    await rest.request(
        "POST",
        ANNOTATION_TABLE,
        params={"on_conflict": ANNOTATION_KEY},
        json=annotation.to_row(),
        prefer="resolution=merge-duplicates,return=minimal",
    )


async def delete_annotation(rest: RestClient, user_id: str, pc_id: int) -> None:
    """Delete a user's annotation for a card. Deleting a missing row is not an error."""
    await rest.request(
        "DELETE",
        ANNOTATION_TABLE,
        params=_annotation_filter(user_id, pc_id),
    )
