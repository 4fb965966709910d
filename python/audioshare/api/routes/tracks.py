"""Track routes.

Routes are transport-only:
- Extract the viewer from request.state
- Call exactly one service function
- Return the result or raise ApiError

No domain logic or raw DB access in routes. Paging parameters are taken as
raw strings because unparsable values are normalized, not rejected.
"""

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from audioshare.api.deps import get_app_settings, get_blob_store, get_db
from audioshare.auth.middleware import Viewer, get_viewer
from audioshare.config import Settings
from audioshare.schemas.tracks import TrackCreatedOut, TrackListOut
from audioshare.services import tracks as tracks_service
from audioshare.storage.client import BlobStoreBase

router = APIRouter()

# Ids are 32-bit integer columns
MAX_ID = 2**31 - 1


@router.get("/audio/list", response_model=TrackListOut)
def list_tracks(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    page_no: Annotated[str | None, Query()] = None,
    on_page: Annotated[str | None, Query()] = None,
    order_by: Annotated[str | None, Query()] = None,
) -> TrackListOut:
    """List tracks the viewer owns or that are shared with them.

    Each record carries its full `shared_to` list. Returns 404 when the
    viewer can see no tracks at all.
    """
    return tracks_service.list_tracks(
        db,
        viewer.user_id,
        page_no=page_no,
        on_page=on_page,
        order_by=order_by,
        default_page_size=settings.default_page_size,
    )


@router.post("/audio/share")
def share_track(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    track: Annotated[int, Form(gt=0, le=MAX_ID)],
    user: Annotated[int, Form(gt=0, le=MAX_ID)],
) -> Response:
    """Share a track the viewer owns with another user."""
    tracks_service.share_track(db, viewer.user_id, track, user)
    return Response(status_code=200)


@router.post("/audio/lock")
def revoke_track_grant(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    track: Annotated[int, Form(gt=0, le=MAX_ID)],
    user: Annotated[int, Form(gt=0, le=MAX_ID)],
) -> Response:
    """Stop sharing a track the viewer owns with a user.

    Returns 404 if the track was not shared with that user.
    """
    tracks_service.revoke_track_grant(db, viewer.user_id, track, user)
    return Response(status_code=200)


@router.get("/audio/get")
def get_track_content(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    blob_store: Annotated[BlobStoreBase, Depends(get_blob_store)],
    track: Annotated[int, Query(gt=0, le=MAX_ID)],
) -> StreamingResponse:
    """Stream the content of a visible track.

    Returns 404 if the track does not exist or the viewer cannot see it
    (masks existence).
    """
    content = tracks_service.open_track_content(db, blob_store, viewer.user_id, track)
    return StreamingResponse(
        content.chunks,
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(content.filename)}"
        },
    )


@router.put("/audio/add", response_model=TrackCreatedOut)
def add_track(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    blob_store: Annotated[BlobStoreBase, Depends(get_blob_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    file: Annotated[UploadFile, File()],
    name: Annotated[str | None, Form()] = None,
    duration: Annotated[str | None, Form()] = None,
) -> TrackCreatedOut:
    """Upload a file as a new track owned by the viewer.

    `duration` accepts HH:MM:SS, MM:SS or whole seconds.
    """
    return tracks_service.add_track(
        db,
        blob_store,
        viewer.user_id,
        stream=file.file,
        filename=file.filename,
        size=file.size,
        name=name,
        duration=duration,
        max_upload_bytes=settings.max_upload_bytes,
    )
