"""
In-memory document store implementation.

Useful for testing and development. Not suitable for production
as all documents are lost when the process terminates.
"""

import asyncio
import copy
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import Any
from uuid import uuid4

from docmigrate.documents import Document, IndexEntry, ViewPage
from docmigrate.exceptions import StoreError, ViewNotFoundError
from docmigrate.observability import (
    ATTR_COLLECTION,
    ATTR_DB_SYSTEM,
    ATTR_DESIGN,
    ATTR_DOCUMENT_COUNT,
    ATTR_LIMIT,
    ATTR_VIEW,
    Tracer,
    create_tracer,
)
from docmigrate.stores._collation import extract_path, row_key
from docmigrate.stores.interface import (
    BulkWriteEntry,
    BulkWriteResult,
    DocumentStore,
    ViewQuery,
)

logger = logging.getLogger(__name__)

MapFunction = Callable[[Document], Iterable[tuple[Any, Any]]]
"""A view map function: yields (key, value) rows for one document."""


def _path_map(path: str) -> MapFunction:
    def emit(doc: Document) -> Iterable[tuple[Any, Any]]:
        yield extract_path(doc, path), doc

    return emit


def next_revision(previous: str | None) -> str:
    """Return the revision following ``previous`` ("<n>-<hex>")."""
    generation = int(previous.split("-", 1)[0]) if previous else 0
    return f"{generation + 1}-{uuid4().hex}"


class InMemoryDocumentStore(DocumentStore):
    """
    In-memory implementation of the document store.

    Documents are kept per collection in dictionaries keyed by ``_id``;
    every write assigns a new CouchDB-style revision. Views are map
    functions evaluated on each query, so documents written while a
    migration is running show up in later pages.

    Thread-safety:
        Uses a lock for safe concurrent async operations within a single
        process.

    Example:
        >>> store = InMemoryDocumentStore()
        >>> store.define_view("users", "add_email", "all", "$.created")
        >>> await store.bulk_write("users", [{"_id": "u1", "created": 3}])
        >>> page = await store.query_view("users", "add_email", "all", ViewQuery(limit=10))

    Attributes:
        _collections: Mapping of collection name to documents by id
        _views: Mapping of (collection, design, view) to map function
    """

    def __init__(
        self,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize an empty in-memory store.

        Args:
            tracer: Optional custom Tracer instance. If not provided, one is
                   created based on enable_tracing setting.
            enable_tracing: Whether to emit OpenTelemetry spans (default: True).
                          Ignored if tracer is explicitly provided.
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._collections: dict[str, dict[str, Document]] = defaultdict(dict)
        self._views: dict[tuple[str, str, str], MapFunction] = {}
        self._lock: asyncio.Lock = asyncio.Lock()

    def define_view(
        self,
        collection: str,
        design: str,
        view: str,
        key: str | MapFunction = "$._id",
        *,
        replace: bool = True,
    ) -> bool:
        """
        Define a view.

        Args:
            collection: Collection the view indexes
            design: Design document name
            view: View name
            key: Either a ``$.path`` whose value becomes the row key, or a
                map function yielding ``(key, value)`` pairs per document
            replace: Overwrite an existing definition (default: True)

        Returns:
            True if the view was (re)defined, False if it already existed
            and replace was False
        """
        if not replace and self.has_view(collection, design, view):
            return False
        map_fn = _path_map(key) if isinstance(key, str) else key
        self._views[(collection, design, view)] = map_fn
        logger.debug("Defined view %s/%s on %s", design, view, collection)
        return True

    def has_view(self, collection: str, design: str, view: str) -> bool:
        return (collection, design, view) in self._views

    async def query_view(
        self,
        collection: str,
        design: str,
        view: str,
        query: ViewQuery,
    ) -> ViewPage:
        with self._tracer.span(
            "docmigrate.in_memory_store.query_view",
            {
                ATTR_COLLECTION: collection,
                ATTR_DESIGN: design,
                ATTR_VIEW: view,
                ATTR_LIMIT: query.limit if query.limit is not None else -1,
                ATTR_DB_SYSTEM: "memory",
            },
        ):
            map_fn = self._views.get((collection, design, view))
            if map_fn is None:
                raise ViewNotFoundError(collection, design, view)

            async with self._lock:
                rows = [
                    IndexEntry(key=key, id=doc_id, value=copy.deepcopy(value))
                    for doc_id, doc in self._collections[collection].items()
                    for key, value in map_fn(doc)
                ]

            rows.sort(key=lambda row: row_key(row.key, row.id))
            total = len(rows)

            offset = 0
            if query.positioned:
                start = row_key(query.start_key, query.start_id)
                while offset < total and row_key(rows[offset].key, rows[offset].id) < start:
                    offset += 1

            end = total if query.limit is None else offset + query.limit
            return ViewPage(total_rows=total, offset=offset, rows=rows[offset:end])

    async def bulk_write(
        self,
        collection: str,
        documents: Sequence[Document],
    ) -> BulkWriteResult:
        with self._tracer.span(
            "docmigrate.in_memory_store.bulk_write",
            {
                ATTR_COLLECTION: collection,
                ATTR_DOCUMENT_COUNT: len(documents),
                ATTR_DB_SYSTEM: "memory",
            },
        ):
            entries: list[BulkWriteEntry] = []
            async with self._lock:
                stored = self._collections[collection]
                for document in documents:
                    entries.append(self._write_one(stored, document))

            logger.debug(
                "Bulk wrote %d document(s) to %s (%d conflict(s))",
                len(documents),
                collection,
                sum(1 for entry in entries if not entry.ok),
            )
            return BulkWriteResult(entries=entries)

    def _write_one(self, stored: dict[str, Document], document: Document) -> BulkWriteEntry:
        doc_id = str(document.get("_id") or uuid4().hex)
        current = stored.get(doc_id)
        current_rev = current.get("_rev") if current is not None else None

        if document.get("_rev") != current_rev:
            return BulkWriteEntry(
                id=doc_id, error="conflict", reason="Document update conflict."
            )

        new_rev = next_revision(current_rev)
        if document.get("_deleted"):
            stored.pop(doc_id, None)
        else:
            saved = copy.deepcopy(document)
            saved["_id"] = doc_id
            saved["_rev"] = new_rev
            stored[doc_id] = saved
        return BulkWriteEntry(id=doc_id, rev=new_rev)

    async def put(self, collection: str, document: Document) -> str:
        """
        Write a single document, returning its new revision.

        Raises:
            StoreError: If the write conflicts with the stored revision
        """
        result = await self.bulk_write(collection, [document])
        entry = result.entries[0]
        if not entry.ok:
            raise StoreError(f"Conflict writing document {entry.id}: {entry.reason}")
        assert entry.rev is not None
        return entry.rev

    def get(self, collection: str, doc_id: str) -> Document | None:
        """Return a copy of a stored document, or None."""
        document = self._collections[collection].get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    def count(self, collection: str) -> int:
        """Number of live documents in a collection."""
        return len(self._collections[collection])


__all__ = ["InMemoryDocumentStore", "MapFunction", "next_revision"]
