"""
Test helpers shared across the docmigrate test suite.

Store doubles and document builders live here so test modules can
import them; pytest fixtures wrapping them live in conftest.py.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from docmigrate.documents import Document, ViewPage
from docmigrate.exceptions import StoreError
from docmigrate.stores.in_memory import InMemoryDocumentStore
from docmigrate.stores.interface import BulkWriteResult, ViewQuery
from docmigrate.stores.sqlite import SQLiteDocumentStore

COLLECTION = "users"
DESIGN = "add_email"
VIEW = "all"


class RecordingStore(InMemoryDocumentStore):
    """In-memory store that records every query and bulk write."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(enable_tracing=False, **kwargs)
        self.queries: list[ViewQuery] = []
        self.writes: list[list[Document]] = []

    async def query_view(
        self,
        collection: str,
        design: str,
        view: str,
        query: ViewQuery,
    ) -> ViewPage:
        self.queries.append(query)
        return await super().query_view(collection, design, view, query)

    async def bulk_write(
        self,
        collection: str,
        documents: Sequence[Document],
    ) -> BulkWriteResult:
        self.writes.append(list(documents))
        return await super().bulk_write(collection, documents)


class FailingWriteStore(RecordingStore):
    """Rejects the n-th bulk write (1-based) as a whole."""

    def __init__(self, fail_on: int) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.attempts = 0

    async def bulk_write(
        self,
        collection: str,
        documents: Sequence[Document],
    ) -> BulkWriteResult:
        self.attempts += 1
        if self.attempts == self.fail_on:
            raise StoreError("connection reset by peer")
        return await super().bulk_write(collection, documents)


def build_documents(count: int, start: int = 0) -> list[Document]:
    """Documents ``doc-00000`` ... keyed by an increasing ``seq`` field."""
    return [
        {"_id": f"doc-{i:05d}", "seq": i, "name": f"user {i}"}
        for i in range(start, start + count)
    ]


async def seed(
    store: InMemoryDocumentStore | SQLiteDocumentStore,
    count: int,
    *,
    collection: str = COLLECTION,
    design: str = DESIGN,
    view: str = VIEW,
) -> None:
    """Define the ``seq`` view and write ``count`` documents."""
    defined = store.define_view(collection, design, view, "$.seq")
    if not isinstance(defined, bool):
        await defined
    await store.bulk_write(collection, build_documents(count))
