"""
BulkWriter - persists a transformed batch in one request.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from docmigrate.documents import Document
from docmigrate.migration.exceptions import WriteError
from docmigrate.observability import (
    ATTR_COLLECTION,
    ATTR_CONFLICT_COUNT,
    ATTR_DOCUMENT_COUNT,
    Tracer,
    create_tracer,
)
from docmigrate.stores.interface import BulkWriteResult, DocumentStore

logger = logging.getLogger(__name__)


class BulkWriter:
    """
    Writes batches to one collection.

    A request-level failure raises WriteError and is not retried.
    Per-document conflicts inside an accepted request do not fail the
    batch; they are logged and counted in the returned result.

    Example:
        >>> writer = BulkWriter(store, "users")
        >>> result = await writer.save(documents)
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._store = store
        self._collection = collection
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def collection(self) -> str:
        return self._collection

    async def save(self, documents: Sequence[Document]) -> BulkWriteResult:
        """
        Write a batch.

        An empty batch is not sent to the store.

        Args:
            documents: Transformed documents and tombstones.

        Returns:
            BulkWriteResult from the store.

        Raises:
            WriteError: If the store rejects the request.
        """
        if not documents:
            logger.debug("Nothing to write to %s", self._collection)
            return BulkWriteResult()

        with self._tracer.span(
            "docmigrate.bulk_writer.save",
            {
                ATTR_COLLECTION: self._collection,
                ATTR_DOCUMENT_COUNT: len(documents),
            },
        ) as span:
            try:
                result = await self._store.bulk_write(self._collection, documents)
            except Exception as e:
                raise WriteError(self._collection, len(documents), str(e)) from e

            conflicts = result.conflicts
            if span is not None:
                span.set_attribute(ATTR_CONFLICT_COUNT, len(conflicts))
            for entry in conflicts:
                logger.warning(
                    "Document %s was not written to %s: %s (%s)",
                    entry.id,
                    self._collection,
                    entry.error,
                    entry.reason,
                )
            return result


__all__ = ["BulkWriter"]
