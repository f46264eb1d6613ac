"""
Object service coordinating the blob store and the metadata catalog.

Writes go blob first, catalog second; deletes go blob first, catalog
second. There is no transaction spanning both sides. A failed upload
never creates or touches a catalog row or the previously stored blob, and
catalog/blob drift is tolerated on the blob side during deletes.

Uploads stream into a staging file without any lock. Publishing the blob
and upserting its record happen under a per-key lock, so the last record
written for a key always describes the bytes on disk.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from object_store.services.catalog import NO_LIMIT, ObjectRecord
from object_store.services.errors import ObjectNotFoundError

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator
    from pathlib import Path

    from object_store.services.blob_store import BlobReader, FileBlobStore
    from object_store.services.catalog import MetadataCatalog

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_DELIMITER = "/"


@dataclass
class ObjectListing:
    """Result of a delimiter-grouped listing."""

    objects: list[ObjectRecord] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of leaf objects in the listing."""
        return len(self.objects)


def group_by_delimiter(
    records: list[ObjectRecord],
    prefix: str,
    delimiter: str,
) -> ObjectListing:
    """
    Split prefix-scan results into leaf objects and virtual folders.

    A record whose key, after the prefix, still contains the delimiter
    belongs to a folder named prefix + segment + delimiter. Everything
    else is a leaf at this level.
    """
    folders: set[str] = set()
    leaves: list[ObjectRecord] = []

    for record in records:
        if not record.key.startswith(prefix):
            continue
        remainder = record.key[len(prefix) :]
        idx = remainder.find(delimiter) if delimiter else -1
        if idx >= 0:
            folders.add(f"{prefix}{remainder[:idx]}{delimiter}")
        else:
            leaves.append(record)

    return ObjectListing(objects=leaves, prefixes=sorted(folders))


class KeyLocks:
    """
    Registry of per-key asyncio locks.

    A key's lock exists only while some task holds or waits for it, so the
    registry never grows with the number of keys ever written.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for a key for the duration of the block."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]


class ObjectService:
    """
    Storage policy for named binary objects.

    Attributes:
        blob_store: Byte storage
        catalog: Metadata catalog, authoritative for existence
        max_upload_bytes: Hard cap applied to every upload
    """

    def __init__(
        self,
        blob_store: FileBlobStore,
        catalog: MetadataCatalog,
        max_upload_bytes: int,
        logger: logging.Logger | None = None,
    ) -> None:
        if max_upload_bytes <= 0:
            raise ValueError(f"Upload cap must be positive, got {max_upload_bytes}")

        self.blob_store = blob_store
        self.catalog = catalog
        self.max_upload_bytes = max_upload_bytes
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._locks = KeyLocks()

    async def put(
        self,
        key: str,
        chunks: AsyncIterable[bytes],
        content_type: str | None = None,
    ) -> ObjectRecord:
        """
        Store an object, replacing any previous object at the key.

        Raises:
            PayloadTooLargeError: Stream exceeded the upload cap
            StorageFailureError: Blob write or catalog upsert failed
        """
        staged = await self.blob_store.stage(key, chunks, self.max_upload_bytes)
        etag, size = staged.etag, staged.size

        record = ObjectRecord(
            id=str(uuid.uuid4()),
            key=key,
            size=size,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            etag=etag,
            created_at=datetime.now(UTC),
        )
        try:
            async with self._locks.hold(key):
                await self.blob_store.commit(staged)
                await self.catalog.upsert(record)
        except BaseException:
            await self.blob_store.abandon(staged)
            raise

        self.logger.info(
            "Object stored",
            extra={"key": key, "size": size, "etag": etag, "content_type": record.content_type},
        )
        return record

    async def head(self, key: str) -> ObjectRecord:
        """
        Return the catalog record for a key.

        Raises:
            ObjectNotFoundError: No record exists
        """
        record = await self.catalog.get(key)
        if record is None:
            raise ObjectNotFoundError(key)
        return record

    async def get(self, key: str) -> tuple[ObjectRecord, BlobReader]:
        """
        Return the record and an open byte stream for a key.

        The blob is only consulted once the catalog confirms the key exists.

        Raises:
            ObjectNotFoundError: No record, or the record's blob is missing
        """
        record = await self.head(key)
        reader = await self.blob_store.open(key)
        return record, reader

    async def info(self, key: str) -> tuple[ObjectRecord, Path]:
        """Return the record for a key together with its blob location."""
        record = await self.head(key)
        return record, self.blob_store.locate(key)

    async def delete(self, key: str) -> None:
        """
        Delete one object.

        A missing blob is ignored; a missing catalog row means the object
        does not exist.

        Raises:
            ObjectNotFoundError: No catalog row existed for the key
        """
        async with self._locks.hold(key):
            try:
                await self.blob_store.delete(key)
            except ObjectNotFoundError:
                self.logger.warning("Blob already absent during delete", extra={"key": key})

            if not await self.catalog.delete(key):
                raise ObjectNotFoundError(key)

        self.logger.info("Object deleted", extra={"key": key})

    async def delete_folder(self, prefix: str, delimiter: str = DEFAULT_DELIMITER) -> int:
        """
        Delete every object under a folder prefix.

        The prefix is forced to end with the delimiter so that "docs" never
        matches "docs2/file". Returns the number of catalog rows removed.
        """
        if not prefix.endswith(delimiter):
            prefix = f"{prefix}{delimiter}"

        records = await self.catalog.list_by_prefix(prefix, limit=NO_LIMIT)

        for record in records:
            async with self._locks.hold(record.key):
                try:
                    await self.blob_store.delete(record.key)
                except ObjectNotFoundError:
                    self.logger.warning(
                        "Blob already absent during folder delete",
                        extra={"key": record.key},
                    )

        deleted = await self.catalog.delete_by_prefix(prefix)

        self.logger.info("Folder deleted", extra={"prefix": prefix, "deleted": deleted})
        return deleted

    async def list_objects(
        self,
        prefix: str | None = None,
        limit: int | None = None,
        delimiter: str | None = None,
    ) -> ObjectListing:
        """List leaf objects and virtual folders directly under a prefix."""
        records = await self.catalog.list_by_prefix(prefix, limit)
        return group_by_delimiter(
            records,
            prefix or "",
            delimiter or DEFAULT_DELIMITER,
        )

    async def search(
        self,
        key: str | None = None,
        content_type: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
        limit: int | None = None,
    ) -> list[ObjectRecord]:
        """Conjunctive metadata search, newest first."""
        return await self.catalog.search(
            key=key,
            content_type=content_type,
            min_size=min_size,
            max_size=max_size,
            limit=limit,
        )

    async def stats(self) -> tuple[int, int]:
        """Return (object count, total size in bytes)."""
        return await self.catalog.stats()
