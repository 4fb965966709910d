"""User-related Pydantic schemas."""

from pydantic import BaseModel

__all__ = [
    "UserOut",
    "UserListOut",
    "SharerOut",
    "SharerListOut",
    "RegisteredOut",
]


class UserOut(BaseModel):
    """Directory entry for a registered user."""

    id: int
    name: str
    login: str


class UserListOut(BaseModel):
    users: list[UserOut]


class SharerOut(BaseModel):
    """An owner with the number of their tracks shared with someone."""

    id: int
    name: str
    shared_records: int


class SharerListOut(BaseModel):
    total_count: int
    users: list[SharerOut]


class RegisteredOut(BaseModel):
    id: int
