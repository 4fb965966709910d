"""Blob storage backends for uploaded track content.

Provides a clean interface for storage operations:
- Storing an upload stream under a fresh handle
- Streaming stored content back in chunks
- Deleting content (best-effort)

The catalog only ever stores the handle; content is opaque to this module.
All methods receive the handle produced by put(); handles are validated
before they touch a filesystem path or URL.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

import httpx

from audioshare.config import BlobBackend, Settings
from audioshare.storage.paths import is_valid_handle, new_blob_handle

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB


class StorageError(Exception):
    """Storage operation error."""

    def __init__(self, message: str, code: str = "E_STORAGE_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code


class BlobNotFound(StorageError):
    """No content is stored under the handle."""

    def __init__(self, handle: str):
        super().__init__(f"Blob not found: {handle}", code="E_STORAGE_MISSING")
        self.handle = handle


class BlobStoreBase(ABC):
    """Abstract base class for blob store implementations."""

    @abstractmethod
    def put(self, stream: BinaryIO, filename: str | None = None) -> str:
        """Store the content of a readable binary stream.

        Args:
            stream: File-like object positioned at the start of the content.
            filename: Client-supplied file name, used only for the extension.

        Returns:
            The new blob handle.

        Raises:
            StorageError: If the content could not be stored.
        """
        ...

    @abstractmethod
    def open(self, handle: str) -> Iterator[bytes]:
        """Return an iterator over the stored content.

        Existence is checked before returning, so a missing blob raises here
        rather than on the first chunk.

        Raises:
            BlobNotFound: If nothing is stored under the handle.
            StorageError: If the backend fails.
        """
        ...

    @abstractmethod
    def delete(self, handle: str) -> None:
        """Delete stored content.

        Best-effort operation - logs errors but doesn't raise.
        """
        ...


class LocalBlobStore(BlobStoreBase):
    """Blob store backed by a local directory.

    Uploads are written to a temporary file inside the directory and renamed
    into place, so a partially written file never carries a valid handle.
    """

    def __init__(self, media_dir: str | os.PathLike[str]):
        self._root = Path(media_dir)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, handle: str) -> Path:
        if not is_valid_handle(handle):
            raise BlobNotFound(handle)
        return self._root / handle

    def put(self, stream: BinaryIO, filename: str | None = None) -> str:
        handle = new_blob_handle(filename)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as out:
                while chunk := stream.read(CHUNK_SIZE):
                    out.write(chunk)
            os.replace(tmp_name, self._root / handle)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to store upload: {e}") from e
        return handle

    def open(self, handle: str) -> Iterator[bytes]:
        path = self._path(handle)
        try:
            fh = path.open("rb")
        except FileNotFoundError as e:
            raise BlobNotFound(handle) from e
        except OSError as e:
            raise StorageError(f"Failed to open blob {handle}: {e}") from e
        return _iter_file(fh)

    def delete(self, handle: str) -> None:
        try:
            self._path(handle).unlink(missing_ok=True)
        except (BlobNotFound, OSError) as e:
            logger.warning("Storage delete error: %s", e)


def _iter_file(fh: BinaryIO) -> Iterator[bytes]:
    with fh:
        while chunk := fh.read(CHUNK_SIZE):
            yield chunk


class SupabaseBlobStore(BlobStoreBase):
    """Blob store backed by Supabase Storage.

    Uses httpx for HTTP operations against the Supabase Storage API.
    """

    def __init__(
        self,
        supabase_url: str,
        service_key: str,
        bucket: str = "media",
    ):
        """Initialize the storage client.

        Args:
            supabase_url: Supabase project URL (e.g., https://xxx.supabase.co).
            service_key: Supabase service role key.
            bucket: Storage bucket name.
        """
        self._base_url = supabase_url.rstrip("/")
        self._bucket = bucket
        self._storage_url = f"{self._base_url}/storage/v1"
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }

    def _object_url(self, handle: str) -> str:
        if not is_valid_handle(handle):
            raise BlobNotFound(handle)
        return f"{self._storage_url}/object/{self._bucket}/{handle}"

    def put(self, stream: BinaryIO, filename: str | None = None) -> str:
        """Upload via POST /object/{bucket}/{handle}."""
        handle = new_blob_handle(filename)
        url = self._object_url(handle)

        with httpx.Client() as client:
            response = client.post(
                url,
                headers={**self._headers, "Content-Type": "application/octet-stream"},
                content=stream.read(),
                timeout=60.0,
            )

        if response.status_code not in (200, 201):
            raise StorageError(
                f"Failed to store upload: {response.status_code} {response.text}",
                code="E_UPLOAD_FAILED",
            )
        return handle

    def open(self, handle: str) -> Iterator[bytes]:
        """Stream object content via authenticated GET request."""
        url = self._object_url(handle)

        client = httpx.Client()
        try:
            response = client.send(
                client.build_request("GET", url, headers=self._headers, timeout=60.0),
                stream=True,
            )
        except httpx.HTTPError as e:
            client.close()
            raise StorageError(f"Failed to fetch blob {handle}: {e}") from e

        if response.status_code != 200:
            status = response.status_code
            response.close()
            client.close()
            # Supabase reports a missing object as 400 or 404 depending on version
            if status in (400, 404):
                raise BlobNotFound(handle)
            raise StorageError(f"Failed to stream object: {status}")

        return _iter_response(client, response)

    def delete(self, handle: str) -> None:
        """Delete object from storage (best-effort)."""
        try:
            url = self._object_url(handle)
            with httpx.Client() as client:
                response = client.delete(url, headers=self._headers, timeout=30.0)
            if response.status_code not in (200, 204, 404):
                logger.warning(
                    "Storage delete failed: %s %s",
                    response.status_code,
                    response.text,
                )
        except (BlobNotFound, httpx.HTTPError) as e:
            logger.warning("Storage delete error: %s", e)


def _iter_response(client: httpx.Client, response: httpx.Response) -> Iterator[bytes]:
    try:
        yield from response.iter_bytes(chunk_size=CHUNK_SIZE)
    finally:
        response.close()
        client.close()


class MemoryBlobStore(BlobStoreBase):
    """In-process blob store for tests and throwaway local runs."""

    def __init__(self):
        self._objects: dict[str, bytes] = {}

    def put(self, stream: BinaryIO, filename: str | None = None) -> str:
        handle = new_blob_handle(filename)
        self._objects[handle] = stream.read()
        return handle

    def open(self, handle: str) -> Iterator[bytes]:
        if handle not in self._objects:
            raise BlobNotFound(handle)
        content = self._objects[handle]
        return iter([content[i : i + CHUNK_SIZE] for i in range(0, len(content), CHUNK_SIZE)])

    def delete(self, handle: str) -> None:
        self._objects.pop(handle, None)

    # Test helper methods

    def put_bytes(self, content: bytes, filename: str | None = None) -> str:
        """Store raw bytes and return the handle (test helper)."""
        handle = new_blob_handle(filename)
        self._objects[handle] = content
        return handle

    def get_bytes(self, handle: str) -> bytes | None:
        """Get stored content directly (test helper)."""
        return self._objects.get(handle)

    def __len__(self) -> int:
        return len(self._objects)


def get_blob_store(settings: Settings) -> BlobStoreBase:
    """Build the blob store selected by BLOB_BACKEND."""
    if settings.blob_backend == BlobBackend.SUPABASE:
        return SupabaseBlobStore(
            supabase_url=settings.supabase_url,  # type: ignore[arg-type]
            service_key=settings.supabase_service_key,  # type: ignore[arg-type]
            bucket=settings.storage_bucket,
        )
    if settings.blob_backend == BlobBackend.MEMORY:
        return MemoryBlobStore()
    return LocalBlobStore(settings.media_dir)
