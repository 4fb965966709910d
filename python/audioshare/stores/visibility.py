"""Visibility query engine: paged listing of the tracks a viewer can see.

A track is visible to viewer V iff V owns it or a grant (track, V) exists.
This is the single authorization rule for listing; catalog.resolve_for_read()
applies the same predicate to content reads.

Each listed track carries its complete grant list (every grantee, not only
the viewer). Fetching that list per track would cost one query per row, so
a page is built from exactly two statements:

1. ``SELECT COUNT(DISTINCT ...)`` over the visible set, independent of paging.
2. One statement that windows the visible tracks (ORDER BY + LIMIT/OFFSET in
   a CTE) and LEFT JOINs each windowed track to its grants and grantee users.
   The outer ORDER BY repeats the window's keys and then sorts by grantee
   name, so all rows of one track are contiguous and the relative order of
   tracks is the one the window selected. Grant columns are NULL for a track
   with no grants.

group_track_rows() then folds the flat row stream in one pass: a new track
id starts a new accumulator, a non-NULL grantee is appended to the current
one.

Ordering:
- ListOrder.OWNER ("user"): owner display name descending, owner id, track id.
- ListOrder.TRACK ("track"): track id ascending.
Track id is the last key of both, so the window is a total order.

Consistency: the two statements run in the caller's session transaction.
Under READ COMMITTED a concurrent grant/revoke may land between them, so
total_count and the page can disagree by that write.
"""

from collections.abc import Iterable
from enum import Enum
from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Session

from audioshare.logging import get_logger
from audioshare.schemas.tracks import GranteeOut, TrackListOut, TrackOut
from audioshare.stores.catalog import display_track_name
from audioshare.stores.errors import NoVisibleRecords

logger = get_logger(__name__)


class ListOrder(str, Enum):
    """Listing sort orders, keyed by their public `order_by` value."""

    OWNER = "user"
    TRACK = "track"


# ORDER BY keys per order. `{p}` is the relation prefix: empty inside the
# window CTE, "p." in the outer join so the keys bind to the window columns.
# owner_id keeps the tracks of owners sharing a display name contiguous.
_ORDER_KEYS: dict[ListOrder, str] = {
    ListOrder.OWNER: "{p}owner_name DESC, {p}owner_id, {p}track_id",
    ListOrder.TRACK: "{p}track_id",
}

_VISIBLE_PREDICATE = """
    t.owner_id = :viewer_id
    OR t.id IN (SELECT vg.track_id FROM grants vg WHERE vg.user_id = :viewer_id)
"""


def _page_query(order: ListOrder) -> str:
    window_keys = _ORDER_KEYS[order].format(p="")
    outer_keys = _ORDER_KEYS[order].format(p="p.")
    return f"""
        WITH page AS (
            SELECT t.id AS track_id,
                   t.description AS description,
                   t.duration_seconds AS duration_seconds,
                   t.owner_id = :viewer_id AS is_owner,
                   t.owner_id AS owner_id,
                   COALESCE(NULLIF(o.name, ''), o.login) AS owner_name
            FROM tracks t
            JOIN users o ON o.id = t.owner_id
            WHERE {_VISIBLE_PREDICATE}
            ORDER BY {window_keys}
            LIMIT :limit OFFSET :offset
        )
        SELECT p.track_id, p.description, p.duration_seconds, p.is_owner,
               p.owner_id, p.owner_name,
               gu.id AS grantee_id,
               COALESCE(NULLIF(gu.name, ''), gu.login) AS grantee_name
        FROM page p
        LEFT JOIN grants sg ON sg.track_id = p.track_id
        LEFT JOIN users gu ON gu.id = sg.user_id
        ORDER BY {outer_keys}, grantee_name, grantee_id
    """


def count_visible(db: Session, viewer_id: int) -> int:
    """Number of distinct tracks visible to the viewer (0 means empty)."""
    return db.execute(
        text(f"SELECT COUNT(DISTINCT t.id) FROM tracks t WHERE {_VISIBLE_PREDICATE}"),
        {"viewer_id": viewer_id},
    ).scalar_one()


def group_track_rows(rows: Iterable[Any]) -> list[TrackOut]:
    """Fold an ordered flat track/grantee row stream into tracks.

    Rows must be ordered so that all rows of a track are adjacent. Each row
    exposes track_id, description, duration_seconds, is_owner, owner_id,
    owner_name, grantee_id and grantee_name; grantee columns may be None.
    """
    tracks: list[TrackOut] = []
    current: TrackOut | None = None

    for row in rows:
        if current is None or row.track_id != current.id:
            current = TrackOut(
                id=row.track_id,
                name=display_track_name(row.description, row.duration_seconds),
                is_owner=bool(row.is_owner),
                owner_id=row.owner_id,
                owner_name=row.owner_name,
                shared_to=[],
            )
            tracks.append(current)

        if row.grantee_id is not None:
            current.shared_to.append(GranteeOut(id=row.grantee_id, name=row.grantee_name))

    return tracks


def list_visible(
    db: Session,
    viewer_id: int,
    order: ListOrder,
    offset: int,
    limit: int,
) -> TrackListOut:
    """Return the total visible count and one page of visible tracks.

    Args:
        db: Database session.
        viewer_id: Requesting user.
        order: Sort order of the page window.
        offset: Number of visible tracks to skip (>= 0).
        limit: Maximum tracks in the page (> 0).

    Returns:
        TrackListOut with total_count and the page's tracks, each with its
        full grant list ordered by grantee display name.

    Raises:
        NoVisibleRecords: The viewer can see no tracks at all, or the window
            starts past the end of the visible set.
        ValueError: offset < 0 or limit <= 0.
    """
    if offset < 0 or limit <= 0:
        raise ValueError(f"invalid page window offset={offset} limit={limit}")

    total_count = count_visible(db, viewer_id)
    if total_count == 0:
        raise NoVisibleRecords(f"user {viewer_id} has no visible tracks")

    result = db.execute(
        text(_page_query(order)),
        {"viewer_id": viewer_id, "offset": offset, "limit": limit},
    )
    records = group_track_rows(result)
    if not records:
        raise NoVisibleRecords(f"no visible tracks for user {viewer_id} at offset {offset}")

    logger.debug(
        "visible_page_built",
        viewer_id=viewer_id,
        order=order.value,
        offset=offset,
        limit=limit,
        total_count=total_count,
        page_size=len(records),
    )
    return TrackListOut(total_count=total_count, records=records)
