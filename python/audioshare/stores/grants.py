"""Grant store: the track -> grantee sharing relation.

Every write is a single statement. The (track_id, user_id) primary key and
the affected-row count decide concurrent outcomes; nothing here retries or
locks. Callers gate both writes on is_owner() first.
"""

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from audioshare.db.session import transaction
from audioshare.logging import get_logger
from audioshare.stores.errors import (
    ConstraintViolation,
    DuplicateGrant,
    RecordNotFound,
    integrity_kind,
)

logger = get_logger(__name__)


def is_owner(db: Session, track_id: int, user_id: int) -> bool:
    """Check whether `user_id` owns the track.

    Raises:
        RecordNotFound: If the track does not exist.
    """
    owner_id = db.execute(
        text("SELECT owner_id FROM tracks WHERE id = :track_id"),
        {"track_id": track_id},
    ).scalar()
    if owner_id is None:
        raise RecordNotFound(f"track {track_id}")
    return owner_id == user_id


def add_grant(db: Session, track_id: int, grantee_id: int) -> None:
    """Grant `grantee_id` visibility of the track.

    Raises:
        DuplicateGrant: The pair already exists (including a concurrent insert
            that won the race).
        ConstraintViolation: The grantee (or track) does not exist.
    """
    try:
        with transaction(db):
            db.execute(
                text("INSERT INTO grants (track_id, user_id) VALUES (:track_id, :user_id)"),
                {"track_id": track_id, "user_id": grantee_id},
            )
    except IntegrityError as exc:
        kind = integrity_kind(exc)
        logger.info("grant_rejected", track_id=track_id, grantee_id=grantee_id, reason=kind)
        if kind == "unique":
            raise DuplicateGrant(f"track {track_id} already granted to {grantee_id}") from exc
        if kind == "foreign_key":
            raise ConstraintViolation(f"user {grantee_id} does not exist") from exc
        raise

    logger.info("grant_added", track_id=track_id, grantee_id=grantee_id)


def revoke_grant(db: Session, track_id: int, grantee_id: int) -> int:
    """Remove the grant if present.

    Returns:
        Number of rows removed (0 or 1). Zero is the caller's NotFound.
    """
    with transaction(db):
        result = db.execute(
            text("DELETE FROM grants WHERE track_id = :track_id AND user_id = :user_id"),
            {"track_id": track_id, "user_id": grantee_id},
        )
    removed = result.rowcount
    logger.info("grant_revoked", track_id=track_id, grantee_id=grantee_id, removed=removed)
    return removed
