"""Track-related Pydantic schemas.

Contains the response models for the catalog listing and upload endpoints.
The listing shapes are returned unwrapped; clients depend on these exact
field names.
"""

from pydantic import BaseModel, Field

__all__ = [
    "GranteeOut",
    "TrackOut",
    "TrackListOut",
    "TrackCreatedOut",
]


class GranteeOut(BaseModel):
    """A user a track is shared with."""

    id: int
    name: str


class TrackOut(BaseModel):
    """A visible track with its complete grant list.

    `is_owner` is relative to the requesting viewer; `shared_to` is never
    filtered to the viewer and is ordered by grantee display name.
    """

    id: int
    name: str
    is_owner: bool
    owner_id: int
    owner_name: str
    shared_to: list[GranteeOut] = Field(default_factory=list)


class TrackListOut(BaseModel):
    """One page of the catalog listing."""

    total_count: int = Field(..., ge=0, description="Visible tracks across all pages")
    records: list[TrackOut]


class TrackCreatedOut(BaseModel):
    """Response for a completed upload."""

    id: int
