"""Track service layer (access gateway).

Coordinates the stores for the catalog endpoints:
- parameter normalization and validation
- ownership check before any grant mutation
- store error -> API error translation
- blob store dispatch for content reads and uploads

Routes call exactly one function from here. Store exceptions never reach
the routes; database failures (SQLAlchemyError) are left to the app-level
handler, which logs them and answers with an opaque 500.
"""

import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from sqlalchemy.orm import Session

from audioshare.errors import (
    ApiError,
    ApiErrorCode,
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from audioshare.schemas.tracks import TrackCreatedOut, TrackListOut
from audioshare.services.paging import normalize_page, parse_order
from audioshare.storage.client import BlobNotFound, BlobStoreBase, StorageError
from audioshare.stores import catalog, grants, visibility
from audioshare.stores.errors import (
    AccessDenied,
    ConstraintViolation,
    DuplicateGrant,
    NoVisibleRecords,
    RecordNotFound,
)

logger = logging.getLogger(__name__)

_CLOCK_DURATION = re.compile(r"^(?:(\d+):)?([0-5]?\d):([0-5]?\d)$")
# tracks.duration_seconds is a 32-bit integer column
MAX_DURATION_SECONDS = 2**31 - 1


@dataclass(frozen=True)
class TrackContent:
    """Readable content of a track, ready to stream."""

    filename: str
    chunks: Iterator[bytes]


def parse_duration(value: str | None) -> int | None:
    """Parse an upload duration into seconds.

    Accepts "HH:MM:SS", "MM:SS" or a plain non-negative integer of seconds.
    Blank or missing means "not given".

    Raises:
        InvalidRequestError: E_INVALID_DURATION for anything else.
    """
    if value is None or not value.strip():
        return None
    value = value.strip()

    if value.isascii() and value.isdigit():
        seconds = int(value)
    else:
        match = _CLOCK_DURATION.match(value)
        if match is None:
            raise InvalidRequestError(ApiErrorCode.E_INVALID_DURATION, "bad parameter duration")
        hours, minutes, secs = match.groups()
        seconds = int(hours or 0) * 3600 + int(minutes) * 60 + int(secs)

    if seconds > MAX_DURATION_SECONDS:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_DURATION, "bad parameter duration")
    return seconds


def list_tracks(
    db: Session,
    viewer_id: int,
    *,
    page_no: str | None,
    on_page: str | None,
    order_by: str | None,
    default_page_size: int,
) -> TrackListOut:
    """List the tracks visible to the viewer.

    Raises:
        InvalidRequestError: Unknown order_by.
        NotFoundError: The requested page holds no visible tracks.
    """
    order = parse_order(order_by)
    offset, limit = normalize_page(page_no, on_page, default_page_size)

    try:
        return visibility.list_visible(db, viewer_id, order, offset, limit)
    except NoVisibleRecords:
        raise NotFoundError(ApiErrorCode.E_NOT_FOUND, "No tracks found") from None


def _require_owner(db: Session, viewer_id: int, track_id: int) -> None:
    """Resolve ownership before a grant mutation.

    Raises:
        NotFoundError: E_TRACK_NOT_FOUND if the track does not exist.
        ForbiddenError: The viewer is not the track's owner.
    """
    try:
        owner = grants.is_owner(db, track_id, viewer_id)
    except RecordNotFound:
        raise NotFoundError(ApiErrorCode.E_TRACK_NOT_FOUND, "Track not found") from None

    if not owner:
        logger.info(
            "grant_mutation_forbidden",
            extra={"track_id": track_id, "viewer_id": viewer_id},
        )
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Only the owner can change sharing")


def share_track(db: Session, viewer_id: int, track_id: int, grantee_id: int) -> None:
    """Share a track the viewer owns with another user.

    Raises:
        NotFoundError: Track does not exist.
        ForbiddenError: Viewer is not the owner.
        InvalidRequestError: E_GRANTEE_NOT_FOUND if the grantee does not exist.
        ConflictError: E_GRANT_EXISTS if the track is already shared with them.
    """
    _require_owner(db, viewer_id, track_id)

    try:
        grants.add_grant(db, track_id, grantee_id)
    except DuplicateGrant:
        raise ConflictError(ApiErrorCode.E_GRANT_EXISTS, "Track already shared with user") from None
    except ConstraintViolation:
        raise InvalidRequestError(ApiErrorCode.E_GRANTEE_NOT_FOUND, "User does not exist") from None


def revoke_track_grant(db: Session, viewer_id: int, track_id: int, grantee_id: int) -> None:
    """Stop sharing a track the viewer owns with a user.

    Raises:
        NotFoundError: Track does not exist, or E_GRANT_NOT_FOUND if the track
            was not shared with the user.
        ForbiddenError: Viewer is not the owner.
    """
    _require_owner(db, viewer_id, track_id)

    if grants.revoke_grant(db, track_id, grantee_id) == 0:
        raise NotFoundError(ApiErrorCode.E_GRANT_NOT_FOUND, "Track is not shared with user")


def open_track_content(
    db: Session, blob_store: BlobStoreBase, viewer_id: int, track_id: int
) -> TrackContent:
    """Open the stored content of a track visible to the viewer.

    A track that does not exist and a track the viewer cannot see are
    reported identically.

    Raises:
        NotFoundError: E_TRACK_NOT_FOUND (not visible, or content missing).
        ApiError: E_STORAGE_ERROR if the blob backend fails.
    """
    try:
        track = catalog.resolve_for_read(db, track_id, viewer_id)
    except AccessDenied:
        raise NotFoundError(ApiErrorCode.E_TRACK_NOT_FOUND, "Track not found") from None

    try:
        chunks = blob_store.open(track.blob_handle)
    except BlobNotFound:
        logger.error(
            "track_content_missing",
            extra={"track_id": track_id, "blob_handle": track.blob_handle},
        )
        raise NotFoundError(ApiErrorCode.E_TRACK_NOT_FOUND, "Track content not found") from None
    except StorageError as e:
        logger.error("track_content_unavailable", extra={"track_id": track_id, "error": e.message})
        raise ApiError(ApiErrorCode.E_STORAGE_ERROR, "Storage unavailable") from e

    _, ext = os.path.splitext(track.blob_handle)
    return TrackContent(filename=f"{track.description or track_id}{ext}", chunks=chunks)


def _stream_size(stream: BinaryIO) -> int:
    pos = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(pos)
    return size


def add_track(
    db: Session,
    blob_store: BlobStoreBase,
    viewer_id: int,
    *,
    stream: BinaryIO,
    filename: str | None,
    size: int | None,
    name: str | None,
    duration: str | None,
    max_upload_bytes: int,
) -> TrackCreatedOut:
    """Store an uploaded file and create a track owned by the viewer.

    The description is `name` when given, otherwise the uploaded file name.
    If the track row cannot be written the stored blob is deleted again.

    Raises:
        InvalidRequestError: Bad duration or E_FILE_TOO_LARGE.
        ApiError: E_STORAGE_ERROR if the blob backend fails.
    """
    duration_seconds = parse_duration(duration)

    if size is None:
        size = _stream_size(stream)
    if size > max_upload_bytes:
        raise InvalidRequestError(
            ApiErrorCode.E_FILE_TOO_LARGE,
            f"File exceeds maximum size of {max_upload_bytes} bytes",
        )

    description = (name or "").strip() or os.path.basename(filename or "")

    try:
        handle = blob_store.put(stream, filename)
    except StorageError as e:
        logger.error("upload_store_failed", extra={"viewer_id": viewer_id, "error": e.message})
        raise ApiError(ApiErrorCode.E_STORAGE_ERROR, "Storage unavailable") from e

    try:
        track_id = catalog.create_track(db, viewer_id, handle, description, duration_seconds)
    except Exception:
        blob_store.delete(handle)
        raise

    logger.info(
        "track_uploaded",
        extra={"track_id": track_id, "viewer_id": viewer_id, "size_bytes": size},
    )
    return TrackCreatedOut(id=track_id)
