"""
SQLite-backed metadata catalog.

Holds one row per live object key. The catalog is authoritative for which
keys exist; the blob store is authoritative for their bytes. Every
database error is surfaced as StorageFailureError; absence is reported
through return values, never exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from object_store.services.errors import StorageFailureError

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_LIST_LIMIT = 1000
DEFAULT_SEARCH_LIMIT = 100
# SQLite reads a negative LIMIT as no upper bound
NO_LIMIT = -1

_COLUMNS = "id, key, size, content_type, etag, created_at"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS objects (
    id           TEXT PRIMARY KEY,
    key          TEXT NOT NULL UNIQUE,
    size         INTEGER NOT NULL,
    content_type TEXT NOT NULL,
    etag         TEXT NOT NULL,
    created_at   TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_objects_key ON objects(key);
CREATE INDEX IF NOT EXISTS idx_objects_content_type ON objects(content_type);
CREATE INDEX IF NOT EXISTS idx_objects_size ON objects(size);
"""


@dataclass(frozen=True)
class ObjectRecord:
    """Descriptive metadata for one stored object."""

    id: str
    key: str
    size: int
    content_type: str
    etag: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> ObjectRecord:
        """Build a record from a row selected in _COLUMNS order."""
        return cls(
            id=row[0],
            key=row[1],
            size=row[2],
            content_type=row[3],
            etag=row[4],
            created_at=datetime.fromisoformat(row[5]),
        )


async def connect_catalog(database_path: str) -> aiosqlite.Connection:
    """
    Open the long-lived catalog connection.

    Creates the parent directory of a file-backed database. The returned
    connection is shared by every request for the process lifetime.

    Raises:
        StorageFailureError: If the database cannot be opened
    """
    if database_path != ":memory:":
        Path(database_path).parent.mkdir(parents=True, exist_ok=True)

    try:
        connection = await aiosqlite.connect(database_path)
        await connection.execute("PRAGMA journal_mode = WAL")
        await connection.execute("PRAGMA busy_timeout = 5000")
    except aiosqlite.Error as e:
        raise StorageFailureError("connect", str(e)) from e
    return connection


def _prefix_upper_bound(prefix: str) -> str | None:
    """
    Smallest string greater than every string starting with prefix.

    Bumps the last code point that can be incremented. Returns None
    when no such bound exists (all code points at the maximum).
    """
    for i in range(len(prefix) - 1, -1, -1):
        code = ord(prefix[i])
        # 0xD7FF + 1 would land in the surrogate range, which has no UTF-8 encoding
        if code < 0x10FFFF and code != 0xD7FF:
            return prefix[:i] + chr(code + 1)
    return None


def _prefix_clauses(prefix: str) -> tuple[list[str], list[Any]]:
    """
    WHERE clauses selecting keys that start with prefix.

    A key range lets SQLite walk the key index; the substr comparison keeps
    the match exact and case-sensitive regardless of the range bound.
    """
    clauses = ["key >= ?", "substr(key, 1, ?) = ?"]
    params: list[Any] = [prefix, len(prefix), prefix]

    upper = _prefix_upper_bound(prefix)
    if upper is not None:
        clauses.append("key < ?")
        params.append(upper)

    return clauses, params


class MetadataCatalog:
    """
    Relational index of stored objects.

    Attributes:
        connection: Shared aiosqlite connection, owned by the caller
    """

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self.connection = connection

    async def initialize(self) -> None:
        """Create the objects table and its indexes. Idempotent."""
        try:
            await self.connection.executescript(_SCHEMA)
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise StorageFailureError("initialize", str(e)) from e

    async def upsert(self, record: ObjectRecord) -> None:
        """Insert a record, or replace every non-key field of the existing one."""
        await self._execute(
            "upsert",
            f"""
            INSERT INTO objects ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                id = excluded.id,
                size = excluded.size,
                content_type = excluded.content_type,
                etag = excluded.etag,
                created_at = excluded.created_at
            """,
            (
                record.id,
                record.key,
                record.size,
                record.content_type,
                record.etag,
                record.created_at.astimezone(UTC).isoformat(),
            ),
        )

    async def get(self, key: str) -> ObjectRecord | None:
        """Point lookup. Returns None if the key has no record."""
        rows = await self._fetch(
            "get",
            f"SELECT {_COLUMNS} FROM objects WHERE key = ?",
            (key,),
        )
        return ObjectRecord.from_row(rows[0]) if rows else None

    async def list_by_prefix(
        self,
        prefix: str | None = None,
        limit: int | None = None,
    ) -> list[ObjectRecord]:
        """
        Records whose key starts with prefix, in key order.

        Args:
            prefix: Key prefix; all records when None or empty
            limit: Maximum number of records (default 1000, NO_LIMIT for all)
        """
        clauses: list[str] = []
        params: list[Any] = []
        if prefix:
            clauses, params = _prefix_clauses(prefix)

        sql = f"SELECT {_COLUMNS} FROM objects"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY key LIMIT ?"
        params.append(DEFAULT_LIST_LIMIT if limit is None else limit)

        rows = await self._fetch("list", sql, params)
        return [ObjectRecord.from_row(row) for row in rows]

    async def search(
        self,
        key: str | None = None,
        content_type: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
        limit: int | None = None,
    ) -> list[ObjectRecord]:
        """
        Records matching every supplied criterion, newest first.

        Args:
            key: Substring the key must contain
            content_type: Exact content type
            min_size: Inclusive lower size bound
            max_size: Inclusive upper size bound
            limit: Maximum number of records (default 100)
        """
        filters: list[tuple[str, Any]] = [
            ("instr(key, ?) > 0", key),
            ("content_type = ?", content_type),
            ("size >= ?", min_size),
            ("size <= ?", max_size),
        ]
        clauses = [clause for clause, value in filters if value is not None]
        params: list[Any] = [value for _, value in filters if value is not None]

        sql = f"SELECT {_COLUMNS} FROM objects"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at DESC LIMIT ?"
        params.append(DEFAULT_SEARCH_LIMIT if limit is None else limit)

        rows = await self._fetch("search", sql, params)
        return [ObjectRecord.from_row(row) for row in rows]

    async def delete(self, key: str) -> bool:
        """Remove the record for a key. Returns True if a row was removed."""
        return await self._execute("delete", "DELETE FROM objects WHERE key = ?", (key,)) > 0

    async def delete_by_prefix(self, prefix: str) -> int:
        """Remove every record whose key starts with prefix. Returns the count."""
        if not prefix:
            return await self._execute("delete_by_prefix", "DELETE FROM objects", ())

        clauses, params = _prefix_clauses(prefix)
        return await self._execute(
            "delete_by_prefix",
            "DELETE FROM objects WHERE " + " AND ".join(clauses),
            params,
        )

    async def stats(self) -> tuple[int, int]:
        """Return (record count, total size in bytes) over all records."""
        rows = await self._fetch(
            "stats",
            "SELECT COUNT(*), COALESCE(SUM(size), 0) FROM objects",
            (),
        )
        count, total_size = rows[0]
        return int(count), int(total_size)

    async def _fetch(
        self,
        operation: str,
        sql: str,
        params: Sequence[Any],
    ) -> list[Any]:
        try:
            async with self.connection.execute(sql, tuple(params)) as cursor:
                return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            raise StorageFailureError(operation, str(e)) from e

    async def _execute(
        self,
        operation: str,
        sql: str,
        params: Sequence[Any],
    ) -> int:
        """Run a mutating statement and commit. Returns the affected row count."""
        try:
            async with self.connection.execute(sql, tuple(params)) as cursor:
                affected = cursor.rowcount
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise StorageFailureError(operation, str(e)) from e
        return affected
