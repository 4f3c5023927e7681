"""
SQLite document store implementation.

Lightweight document store using SQLite with async support via aiosqlite.
Documents are stored as JSON text; a view orders one collection by a
JSON path extracted with ``json_extract``, ties broken by document id.

This implementation is suitable for:
- Development and testing environments
- Running migrations against a local file database
- Embedded applications

SQLite-specific adaptations:
- Keys are compared with SQLite ordering (NULL < numbers < text);
  booleans extract as 0/1 and arrays/objects as minified JSON text
- Revisions are stored alongside the document body
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any
from uuid import uuid4

import aiosqlite

from docmigrate.documents import Document, IndexEntry, ViewPage
from docmigrate.exceptions import StoreError, ViewNotFoundError
from docmigrate.observability import (
    ATTR_COLLECTION,
    ATTR_DB_NAME,
    ATTR_DB_SYSTEM,
    ATTR_DESIGN,
    ATTR_DOCUMENT_COUNT,
    ATTR_LIMIT,
    ATTR_VIEW,
    Tracer,
    create_tracer,
)
from docmigrate.stores.in_memory import next_revision
from docmigrate.stores.interface import (
    BulkWriteEntry,
    BulkWriteResult,
    DocumentStore,
    ViewQuery,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    rev TEXT NOT NULL,
    body TEXT NOT NULL,
    PRIMARY KEY (collection, id)
);

CREATE TABLE IF NOT EXISTS views (
    collection TEXT NOT NULL,
    design TEXT NOT NULL,
    name TEXT NOT NULL,
    key_path TEXT NOT NULL,
    PRIMARY KEY (collection, design, name)
);
"""


def _sql_key(key: Any) -> Any:
    """Convert a view key to the value json_extract produces for it."""
    if isinstance(key, list | dict):
        return json.dumps(key, separators=(",", ":"))
    return key


class SQLiteDocumentStore(DocumentStore):
    """
    SQLite implementation of the document store.

    Features:
    - Keyset view queries over an arbitrary JSON path
    - Bulk writes in a single transaction with per-document revision checks
    - WAL mode for better concurrency (optional)
    - OpenTelemetry tracing support via Tracer composition

    Attributes:
        _database: Path to SQLite file or ':memory:' for in-memory database
        _wal_mode: Whether WAL mode is enabled
        _busy_timeout: Timeout in ms for busy database
        _connection: The aiosqlite connection (set after connect/initialize)

    Example:
        >>> async with SQLiteDocumentStore("docs.db") as store:
        ...     await store.initialize()
        ...     await store.define_view("users", "add_email", "all", "$.created")
        ...     page = await store.query_view("users", "add_email", "all", ViewQuery(limit=11))
    """

    def __init__(
        self,
        database: str,
        *,
        wal_mode: bool = True,
        busy_timeout: int = 5000,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the SQLite document store.

        Args:
            database: Path to SQLite database file or ':memory:' for in-memory
            wal_mode: If True, enable WAL mode for better concurrency (default: True)
            busy_timeout: Timeout in milliseconds when database is locked (default: 5000)
            tracer: Optional custom Tracer instance. If not provided, one is
                   created based on enable_tracing setting.
            enable_tracing: Whether to emit OpenTelemetry spans (default: True).
                          Ignored if tracer is explicitly provided.
        """
        self._database = database
        self._wal_mode = wal_mode
        self._busy_timeout = busy_timeout
        self._connection: aiosqlite.Connection | None = None
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    async def __aenter__(self) -> SQLiteDocumentStore:
        await self._connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    async def _connect(self) -> None:
        """Open the database connection and configure settings."""
        if self._connection is not None:
            return

        self._connection = await aiosqlite.connect(self._database)
        await self._connection.execute(f"PRAGMA busy_timeout = {self._busy_timeout}")
        if self._wal_mode:
            await self._connection.execute("PRAGMA journal_mode = WAL")
        self._connection.row_factory = aiosqlite.Row

        logger.debug(
            "Connected to SQLite database: %s (wal_mode=%s, busy_timeout=%d)",
            self._database,
            self._wal_mode,
            self._busy_timeout,
        )

    async def close(self) -> None:
        """
        Close the database connection.

        Safe to call multiple times.
        """
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.debug("Closed SQLite database connection: %s", self._database)

    async def initialize(self) -> None:
        """
        Create the documents and views tables if they don't exist.

        This method is idempotent - safe to call multiple times.
        """
        if self._connection is None:
            await self._connect()

        assert self._connection is not None
        await self._connection.executescript(SCHEMA)
        await self._connection.commit()

        logger.info("Initialized SQLite document store schema: %s", self._database)

    def _ensure_connected(self) -> aiosqlite.Connection:
        """
        Ensure we have an active connection.

        Raises:
            RuntimeError: If not connected
        """
        if self._connection is None:
            raise RuntimeError(
                "Not connected to database. Use 'async with store:' or call 'initialize()' first."
            )
        return self._connection

    async def define_view(
        self,
        collection: str,
        design: str,
        view: str,
        key: str = "$._id",
        *,
        replace: bool = True,
    ) -> bool:
        """
        Define a view ordering ``collection`` by the JSON path ``key``.

        Args:
            collection: Collection the view indexes
            design: Design document name
            view: View name
            key: JSON path of the sort key (e.g. "$.created")
            replace: Overwrite an existing definition (default: True)

        Returns:
            True if the view was (re)defined, False if it already existed
            and replace was False
        """
        conn = self._ensure_connected()
        verb = "INSERT OR REPLACE" if replace else "INSERT OR IGNORE"
        try:
            cursor = await conn.execute(
                f"{verb} INTO views (collection, design, name, key_path) VALUES (?, ?, ?, ?)",
                (collection, design, view, key),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to define view {design}/{view}: {e}") from e

        defined = cursor.rowcount > 0
        if defined:
            logger.debug("Defined view %s/%s on %s by %s", design, view, collection, key)
        return defined

    async def _view_key_path(
        self,
        conn: aiosqlite.Connection,
        collection: str,
        design: str,
        view: str,
    ) -> str:
        cursor = await conn.execute(
            "SELECT key_path FROM views WHERE collection = ? AND design = ? AND name = ?",
            (collection, design, view),
        )
        row = await cursor.fetchone()
        if row is None:
            raise ViewNotFoundError(collection, design, view)
        return str(row["key_path"])

    async def query_view(
        self,
        collection: str,
        design: str,
        view: str,
        query: ViewQuery,
    ) -> ViewPage:
        with self._tracer.span(
            "docmigrate.sqlite_store.query_view",
            {
                ATTR_COLLECTION: collection,
                ATTR_DESIGN: design,
                ATTR_VIEW: view,
                ATTR_LIMIT: query.limit if query.limit is not None else -1,
                ATTR_DB_SYSTEM: "sqlite",
                ATTR_DB_NAME: self._database,
            },
        ):
            conn = self._ensure_connected()
            try:
                key_path = await self._view_key_path(conn, collection, design, view)
                return await self._do_query_view(conn, collection, key_path, query)
            except aiosqlite.Error as e:
                raise StoreError(f"View query {design}/{view} failed: {e}") from e

    async def _do_query_view(
        self,
        conn: aiosqlite.Connection,
        collection: str,
        key_path: str,
        query: ViewQuery,
    ) -> ViewPage:
        cursor = await conn.execute(
            "SELECT COUNT(*) FROM documents WHERE collection = ?",
            (collection,),
        )
        row = await cursor.fetchone()
        total = row[0] if row else 0

        conditions: list[str] = []
        params: list[Any] = [key_path, collection]
        if query.positioned:
            start_key = _sql_key(query.start_key)
            if start_key is None:
                if query.start_id is not None:
                    conditions.append("((k IS NULL AND id >= ?) OR k IS NOT NULL)")
                    params.append(query.start_id)
            elif query.start_id is None:
                conditions.append("k >= ?")
                params.append(start_key)
            else:
                conditions.append("(k > ? OR (k = ? AND id >= ?))")
                params.extend([start_key, start_key, query.start_id])

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(query.limit if query.limit is not None else -1)

        cursor = await conn.execute(
            f"""
            SELECT id, k, body FROM (
                SELECT id, json_extract(body, ?) AS k, body
                FROM documents
                WHERE collection = ?
            )
            {where}
            ORDER BY k, id
            LIMIT ?
            """,
            params,
        )
        rows = [
            IndexEntry(key=r["k"], id=r["id"], value=json.loads(r["body"]))
            for r in await cursor.fetchall()
        ]
        return ViewPage(total_rows=total, rows=rows)

    async def bulk_write(
        self,
        collection: str,
        documents: Sequence[Document],
    ) -> BulkWriteResult:
        with self._tracer.span(
            "docmigrate.sqlite_store.bulk_write",
            {
                ATTR_COLLECTION: collection,
                ATTR_DOCUMENT_COUNT: len(documents),
                ATTR_DB_SYSTEM: "sqlite",
                ATTR_DB_NAME: self._database,
            },
        ):
            conn = self._ensure_connected()
            try:
                entries = [await self._write_one(conn, collection, doc) for doc in documents]
                await conn.commit()
            except (aiosqlite.Error, TypeError, ValueError) as e:
                await conn.rollback()
                raise StoreError(f"Bulk write to '{collection}' failed: {e}") from e

            logger.debug(
                "Bulk wrote %d document(s) to %s (%d conflict(s))",
                len(documents),
                collection,
                sum(1 for entry in entries if not entry.ok),
            )
            return BulkWriteResult(entries=entries)

    async def _write_one(
        self,
        conn: aiosqlite.Connection,
        collection: str,
        document: Document,
    ) -> BulkWriteEntry:
        doc_id = str(document.get("_id") or uuid4().hex)
        cursor = await conn.execute(
            "SELECT rev FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()
        current_rev = row["rev"] if row else None

        if document.get("_rev") != current_rev:
            return BulkWriteEntry(id=doc_id, error="conflict", reason="Document update conflict.")

        new_rev = next_revision(current_rev)
        if document.get("_deleted"):
            await conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
        else:
            body = {**document, "_id": doc_id, "_rev": new_rev}
            await conn.execute(
                "INSERT OR REPLACE INTO documents (collection, id, rev, body) VALUES (?, ?, ?, ?)",
                (collection, doc_id, new_rev, json.dumps(body)),
            )
        return BulkWriteEntry(id=doc_id, rev=new_rev)

    async def get(self, collection: str, doc_id: str) -> Document | None:
        """Return a stored document, or None."""
        conn = self._ensure_connected()
        cursor = await conn.execute(
            "SELECT body FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()
        return json.loads(row["body"]) if row else None

    async def count(self, collection: str) -> int:
        """Number of live documents in a collection."""
        conn = self._ensure_connected()
        cursor = await conn.execute(
            "SELECT COUNT(*) FROM documents WHERE collection = ?",
            (collection,),
        )
        row = await cursor.fetchone()
        return row[0] if row else 0


__all__ = ["SQLiteDocumentStore", "SCHEMA"]
