"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from audioshare.schemas.tracks import GranteeOut, TrackCreatedOut, TrackListOut, TrackOut
from audioshare.schemas.users import (
    RegisteredOut,
    SharerListOut,
    SharerOut,
    UserListOut,
    UserOut,
)

__all__ = [
    "GranteeOut",
    "TrackOut",
    "TrackListOut",
    "TrackCreatedOut",
    "UserOut",
    "UserListOut",
    "SharerOut",
    "SharerListOut",
    "RegisteredOut",
]
