"""
Content-addressed filesystem blob storage.

Each object is stored at {root}/{h[0:2]}/{h}, where h is the SHA-256 hex
digest of the object key. The two-character subdirectory bounds the number
of files per directory. Uploads are hashed while they are written, so the
etag never requires a second pass over the data.

Uploads are staged in a uniquely named temporary file beside the target and
renamed over it only once complete. A blob file therefore always holds the
full content of exactly one successful upload.
"""

from __future__ import annotations

import contextlib
import hashlib
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiofiles
import aiofiles.os

from object_store.services.errors import (
    ObjectNotFoundError,
    PayloadTooLargeError,
    StorageFailureError,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable

    from aiofiles.threadpool.binary import AsyncBufferedReader

DEFAULT_CHUNK_SIZE = 64 * 1024
PARTIAL_SUFFIX = ".part"


@dataclass(frozen=True)
class StagedBlob:
    """A fully written upload that has not yet replaced the key's blob."""

    temp_path: Path
    target_path: Path
    etag: str
    size: int


class BlobReader:
    """
    Lazy, forward-only async iterator over a stored blob.

    The file handle is closed once the blob is exhausted or when
    aclose() is called, whichever happens first. Not restartable.
    """

    def __init__(self, handle: AsyncBufferedReader, chunk_size: int) -> None:
        self._handle: AsyncBufferedReader | None = handle
        self._chunk_size = chunk_size

    def __aiter__(self) -> BlobReader:
        return self

    async def __anext__(self) -> bytes:
        if self._handle is None:
            raise StopAsyncIteration

        try:
            data = await self._handle.read(self._chunk_size)
        except OSError as e:
            await self.aclose()
            raise StorageFailureError("read", str(e)) from e

        if not data:
            await self.aclose()
            raise StopAsyncIteration
        return data

    @property
    def closed(self) -> bool:
        """True once the underlying file has been released."""
        return self._handle is None

    async def aclose(self) -> None:
        """Release the file handle. Safe to call more than once."""
        handle, self._handle = self._handle, None
        if handle is not None:
            await handle.close()

    async def read_all(self) -> bytes:
        """Drain the remaining chunks into a single bytes object."""
        return b"".join([chunk async for chunk in self])


class FileBlobStore:
    """
    Filesystem blob store addressed by object key.

    Attributes:
        root: Base directory holding the fan-out subdirectories
        chunk_size: Read size used when streaming blobs back out
    """

    def __init__(self, root_dir: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")

        self.root = root_dir
        self.chunk_size = chunk_size
        self.root.mkdir(parents=True, exist_ok=True)

    def locate(self, key: str) -> Path:
        """Return the on-disk location of a key. Pure, never fails."""
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.root / digest[:2] / digest

    async def stage(
        self,
        key: str,
        chunks: AsyncIterable[bytes],
        max_bytes: int,
    ) -> StagedBlob:
        """
        Stream chunks into a private temporary file next to the key's blob.

        The cap is checked before each chunk is written, so the file never
        holds more than max_bytes. The blob currently stored for the key is
        not touched; any failure removes only the temporary file.

        Args:
            key: Object key
            chunks: Finite async sequence of byte chunks
            max_bytes: Hard upper bound on the total size

        Returns:
            StagedBlob ready to be committed or abandoned

        Raises:
            PayloadTooLargeError: If the stream exceeds max_bytes
            StorageFailureError: If the filesystem write fails
        """
        target = self.locate(key)
        temp = target.with_name(f"{target.name}.{uuid.uuid4().hex}{PARTIAL_SUFFIX}")

        try:
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
        except OSError as e:
            raise StorageFailureError("write", str(e)) from e

        hasher = hashlib.sha256()
        size = 0

        try:
            async with aiofiles.open(temp, "xb") as f:
                async for chunk in chunks:
                    if size + len(chunk) > max_bytes:
                        raise PayloadTooLargeError(max_bytes)
                    await f.write(chunk)
                    hasher.update(chunk)
                    size += len(chunk)
                await f.flush()
        except OSError as e:
            await self._discard(temp)
            raise StorageFailureError("write", str(e)) from e
        except BaseException:
            # Cap violations, client disconnects and task cancellation
            await self._discard(temp)
            raise

        return StagedBlob(temp_path=temp, target_path=target, etag=hasher.hexdigest(), size=size)

    async def commit(self, staged: StagedBlob) -> None:
        """
        Atomically make a staged blob the key's content.

        Readers holding the previous blob open keep reading the old bytes.

        Raises:
            StorageFailureError: If the rename fails (the temp file is removed)
        """
        try:
            await aiofiles.os.replace(staged.temp_path, staged.target_path)
        except OSError as e:
            await self._discard(staged.temp_path)
            raise StorageFailureError("write", str(e)) from e

    async def abandon(self, staged: StagedBlob) -> None:
        """Drop a staged blob that will not be committed. Idempotent."""
        await self._discard(staged.temp_path)

    async def write_stream(
        self,
        key: str,
        chunks: AsyncIterable[bytes],
        max_bytes: int,
    ) -> tuple[str, int]:
        """
        Stage and immediately commit the blob for a key.

        Returns:
            Tuple of (sha256 hex digest, total size in bytes)

        Raises:
            PayloadTooLargeError: If the stream exceeds max_bytes
            StorageFailureError: If the filesystem write fails
        """
        staged = await self.stage(key, chunks, max_bytes)
        await self.commit(staged)
        return staged.etag, staged.size

    async def open(self, key: str) -> BlobReader:
        """
        Open the blob for a key for streaming.

        Raises:
            ObjectNotFoundError: If no blob exists for the key
            StorageFailureError: If the file cannot be opened
        """
        path = self.locate(key)
        try:
            handle = await aiofiles.open(path, "rb")
        except FileNotFoundError as e:
            raise ObjectNotFoundError(key) from e
        except OSError as e:
            raise StorageFailureError("open", str(e)) from e
        return BlobReader(handle, self.chunk_size)

    async def delete(self, key: str) -> None:
        """
        Remove the blob for a key.

        Raises:
            ObjectNotFoundError: If no blob exists for the key
            StorageFailureError: If removal fails for another reason
        """
        try:
            await aiofiles.os.remove(self.locate(key))
        except FileNotFoundError as e:
            raise ObjectNotFoundError(key) from e
        except OSError as e:
            raise StorageFailureError("delete", str(e)) from e

    async def exists(self, key: str) -> bool:
        """Check whether a blob file is present for a key."""
        return await aiofiles.os.path.isfile(self.locate(key))

    async def _discard(self, path: Path) -> None:
        """Best-effort removal of a partially written file."""
        with contextlib.suppress(OSError):
            await aiofiles.os.remove(path)
