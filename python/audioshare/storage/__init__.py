"""Storage module for uploaded track content.

Provides:
- BlobStoreBase and its local, Supabase and in-memory backends
- Handle building utilities shared by every backend
"""

from audioshare.storage.client import (
    BlobNotFound,
    BlobStoreBase,
    LocalBlobStore,
    MemoryBlobStore,
    StorageError,
    SupabaseBlobStore,
    get_blob_store,
)
from audioshare.storage.paths import is_valid_handle, new_blob_handle

__all__ = [
    "BlobStoreBase",
    "LocalBlobStore",
    "SupabaseBlobStore",
    "MemoryBlobStore",
    "StorageError",
    "BlobNotFound",
    "get_blob_store",
    "new_blob_handle",
    "is_valid_handle",
]
