"""
Document store interface and core data structures.

The migration engine treats the database as two operations: a keyset
query against a key-ordered view, and an atomic multi-document write.

This module provides:
- ViewQuery: Parameters of one view query
- BulkWriteEntry: Per-document outcome of a bulk write
- BulkWriteResult: Outcome of a whole bulk write
- DocumentStore: Abstract base class for store implementations
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from docmigrate.documents import Document, ViewPage


@dataclass(frozen=True)
class ViewQuery:
    """
    Parameters for reading one page of a view.

    The start position is inclusive: the row whose key equals
    ``start_key`` and whose id is ``start_id`` is the first row returned.
    ``positioned`` distinguishes "start from the beginning" from a start
    key that happens to be ``None`` (a JSON null key).

    Attributes:
        limit: Maximum number of rows to return (None for no limit)
        start_key: Key of the first row to return
        start_id: Document id breaking ties among rows with ``start_key``
        positioned: Whether ``start_key``/``start_id`` apply at all

    Example:
        >>> # First page of 1000 rows plus one lookahead row
        >>> query = ViewQuery(limit=1001)
        >>>
        >>> # Continue from a previously seen row
        >>> query = ViewQuery(limit=1001, start_key=42, start_id="doc-7", positioned=True)
    """

    limit: int | None = None
    start_key: Any = None
    start_id: str | None = None
    positioned: bool = False

    def __post_init__(self) -> None:
        """Validate options."""
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be >= 0")

    def to_params(self) -> dict[str, Any]:
        """Render as CouchDB-style view parameters (used in logs)."""
        params: dict[str, Any] = {}
        if self.limit is not None:
            params["limit"] = self.limit
        if self.positioned:
            params["startkey"] = self.start_key
            if self.start_id is not None:
                params["startkey_docid"] = self.start_id
        return params


@dataclass(frozen=True)
class BulkWriteEntry:
    """
    Outcome for one document of a bulk write.

    Attributes:
        id: Document id
        rev: New revision when the document was written
        error: Error code (e.g. "conflict") when it was not
        reason: Human readable explanation of the error
    """

    id: str
    rev: str | None = None
    error: str | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BulkWriteResult:
    """
    Result of a bulk write.

    A result is returned whenever the store accepted the request, even if
    some documents were rejected individually; request-level failures are
    raised instead.

    Attributes:
        entries: One entry per submitted document, in submission order
    """

    entries: list[BulkWriteEntry] = field(default_factory=list)

    @property
    def written(self) -> int:
        """Number of documents the store accepted."""
        return sum(1 for entry in self.entries if entry.ok)

    @property
    def conflicts(self) -> list[BulkWriteEntry]:
        """Entries the store rejected individually."""
        return [entry for entry in self.entries if not entry.ok]


class DocumentStore(ABC):
    """
    Abstract base class for document stores.

    Implementations must handle:
    - Key-ordered view queries with an inclusive (key, id) start position
    - Atomic multi-document writes, including deletion tombstones

    Concrete implementations:
    - InMemoryDocumentStore: For testing and development
    - SQLiteDocumentStore: File-backed store using aiosqlite

    Implementations raise StoreError (or a subclass) when a request fails
    as a whole.
    """

    @abstractmethod
    async def query_view(
        self,
        collection: str,
        design: str,
        view: str,
        query: ViewQuery,
    ) -> ViewPage:
        """
        Read one page of a view.

        Args:
            collection: Collection (database) holding the view
            design: Design document (index) name
            view: View name inside the design document
            query: Limit and start position

        Returns:
            ViewPage with rows ordered by (key, id)

        Raises:
            ViewNotFoundError: If the view is not defined
            StoreError: If the query fails
        """
        pass

    @abstractmethod
    async def bulk_write(
        self,
        collection: str,
        documents: Sequence[Document],
    ) -> BulkWriteResult:
        """
        Write documents in a single request.

        Documents carrying ``"_deleted": True`` are deleted. Documents whose
        ``_rev`` does not match the stored revision are reported as
        conflicts in the result rather than raised.

        Args:
            collection: Target collection
            documents: Documents to create, update or delete

        Returns:
            BulkWriteResult with one entry per document

        Raises:
            StoreError: If the request fails as a whole
        """
        pass
