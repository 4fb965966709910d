"""FastAPI dependencies for route handlers.

Common dependencies like database sessions, the blob store and settings.
"""

from fastapi import Request

from audioshare.config import Settings, get_settings
from audioshare.db.session import get_db
from audioshare.storage.client import BlobStoreBase

__all__ = ["get_db", "get_blob_store", "get_app_settings"]


def get_blob_store(request: Request) -> BlobStoreBase:
    """Get the shared blob store from app state.

    The store is built once by create_app(); tests install a MemoryBlobStore.
    """
    return request.app.state.blob_store


def get_app_settings() -> Settings:
    """Settings as a dependency, so tests can override it."""
    return get_settings()
