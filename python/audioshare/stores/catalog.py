"""Catalog store: track metadata and the shared-by aggregate.

The visibility predicate used by resolve_for_read() is the same one the
listing engine applies: the requester owns the track or holds a grant for it.
It is evaluated inside the SELECT, never by the caller.
"""

from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.orm import Session

from audioshare.db.session import transaction
from audioshare.logging import get_logger
from audioshare.stores.errors import AccessDenied

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReadableTrack:
    """What a viewer needs to stream a track."""

    description: str
    blob_handle: str


@dataclass(frozen=True)
class Sharer:
    """An owner with at least one granted track."""

    user_id: int
    name: str
    shared_records: int


def format_duration(seconds: int) -> str:
    """Render seconds as HH:MM:SS (hours are not wrapped at 24)."""
    hours, rest = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def display_track_name(description: str, duration_seconds: int) -> str:
    """Public track name: description followed by the duration in parentheses."""
    return f"{description} ({format_duration(duration_seconds)})"


def create_track(
    db: Session,
    owner_id: int,
    blob_handle: str,
    description: str,
    duration_seconds: int | None = None,
) -> int:
    """Insert a track owned by `owner_id`.

    Args:
        db: Database session.
        owner_id: Uploading user; never changes afterwards.
        blob_handle: Handle returned by the blob store.
        description: Caller-supplied label (the upload name or file name).
        duration_seconds: Track length; zero when omitted.

    Returns:
        The new track id.
    """
    with transaction(db):
        track_id = db.execute(
            text("""
                INSERT INTO tracks (owner_id, blob_handle, description, duration_seconds)
                VALUES (:owner_id, :blob_handle, :description, :duration_seconds)
                RETURNING id
            """),
            {
                "owner_id": owner_id,
                "blob_handle": blob_handle,
                "description": description,
                "duration_seconds": duration_seconds or 0,
            },
        ).scalar_one()

    logger.info("track_created", track_id=track_id, owner_id=owner_id)
    return track_id


def resolve_for_read(db: Session, track_id: int, viewer_id: int) -> ReadableTrack:
    """Return the blob pointer of a track the viewer may read.

    Raises:
        AccessDenied: The track does not exist or the viewer fails the
            visibility predicate. The two cases are not distinguished.
    """
    row = db.execute(
        text("""
            SELECT t.description, t.blob_handle
            FROM tracks t
            WHERE t.id = :track_id
              AND (
                  t.owner_id = :viewer_id
                  OR EXISTS (
                      SELECT 1 FROM grants g
                      WHERE g.track_id = t.id AND g.user_id = :viewer_id
                  )
              )
        """),
        {"track_id": track_id, "viewer_id": viewer_id},
    ).fetchone()

    if row is None:
        raise AccessDenied(f"track {track_id} is not readable by user {viewer_id}")

    return ReadableTrack(description=row[0], blob_handle=row[1])


def count_sharers(db: Session) -> int:
    """Count owners that have granted at least one of their tracks."""
    return db.execute(
        text("""
            SELECT COUNT(DISTINCT t.owner_id)
            FROM tracks t
            WHERE EXISTS (SELECT 1 FROM grants g WHERE g.track_id = t.id)
        """)
    ).scalar_one()


def list_sharers(db: Session, offset: int, limit: int) -> list[Sharer]:
    """Page through sharing owners ordered by user id.

    `shared_records` counts the owner's tracks with one or more grants.
    """
    result = db.execute(
        text("""
            SELECT t.owner_id,
                   COALESCE(NULLIF(u.name, ''), u.login) AS owner_name,
                   COUNT(t.id) AS shared_records
            FROM tracks t
            JOIN users u ON u.id = t.owner_id
            WHERE EXISTS (SELECT 1 FROM grants g WHERE g.track_id = t.id)
            GROUP BY t.owner_id, u.name, u.login
            ORDER BY t.owner_id
            LIMIT :limit OFFSET :offset
        """),
        {"offset": offset, "limit": limit},
    )
    return [
        Sharer(user_id=row[0], name=row[1], shared_records=row[2]) for row in result.fetchall()
    ]
