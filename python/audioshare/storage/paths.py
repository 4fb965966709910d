"""Blob handle utilities.

A blob handle is the opaque pointer a track row stores for its content.
All handle construction goes through new_blob_handle() so every backend
sees the same shape:

    {uuid4 hex}.{ext}

Rules:
    - No directory components (handles are flat names)
    - No user identifiers in handles
    - Extension taken from the uploaded file name, lowercased, "bin" if absent
"""

import re
from pathlib import PurePosixPath
from uuid import uuid4

DEFAULT_EXTENSION = "bin"
MAX_EXTENSION_LENGTH = 10

HANDLE_PATTERN = re.compile(r"^[0-9a-f]{32}\.[a-z0-9]{1,10}$")
_EXTENSION_PATTERN = re.compile(r"^[a-z0-9]+$")


def get_file_extension(filename: str | None) -> str:
    """Get the extension of an uploaded file name.

    Args:
        filename: Client-supplied file name (untrusted).

    Returns:
        Lowercase extension without leading dot, or "bin" when the name has
        no usable extension.
    """
    if not filename:
        return DEFAULT_EXTENSION
    suffix = PurePosixPath(filename.replace("\\", "/")).suffix.lstrip(".").lower()
    if not suffix or len(suffix) > MAX_EXTENSION_LENGTH or not _EXTENSION_PATTERN.match(suffix):
        return DEFAULT_EXTENSION
    return suffix


def new_blob_handle(filename: str | None) -> str:
    """Build a fresh blob handle for an upload."""
    return f"{uuid4().hex}.{get_file_extension(filename)}"


def is_valid_handle(handle: str) -> bool:
    """Check that a handle has the shape new_blob_handle() produces."""
    return bool(HANDLE_PATTERN.match(handle))
