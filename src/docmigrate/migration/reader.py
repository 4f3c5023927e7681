"""
ViewReader - fetches one page of a view for a migration.
"""

from __future__ import annotations

import logging

from docmigrate.documents import ViewPage
from docmigrate.migration.cursor import Cursor
from docmigrate.migration.exceptions import QueryError
from docmigrate.observability import (
    ATTR_COLLECTION,
    ATTR_DESIGN,
    ATTR_LIMIT,
    ATTR_ROW_COUNT,
    ATTR_VIEW,
    Tracer,
    create_tracer,
)
from docmigrate.stores.interface import DocumentStore

logger = logging.getLogger(__name__)


class ViewReader:
    """
    Reads pages of one view.

    Every failure reported by the store is wrapped in QueryError and
    re-raised immediately; nothing is retried.

    Example:
        >>> reader = ViewReader(store, "users", "add_email", "all")
        >>> page = await reader.fetch(Cursor(), page_size=1000)  # up to 1001 rows
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        design: str,
        view: str,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._store = store
        self._collection = collection
        self._design = design
        self._view = view
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    async def fetch(self, cursor: Cursor, page_size: int) -> ViewPage:
        """
        Fetch the page starting at ``cursor``.

        Args:
            cursor: Current pagination position.
            page_size: Batch size; one extra row is requested as lookahead.

        Returns:
            ViewPage with at most ``page_size + 1`` rows.

        Raises:
            QueryError: If the store fails or returns a malformed page.
        """
        query = cursor.to_query(page_size)
        params = query.to_params()

        with self._tracer.span(
            "docmigrate.view_reader.fetch",
            {
                ATTR_COLLECTION: self._collection,
                ATTR_DESIGN: self._design,
                ATTR_VIEW: self._view,
                ATTR_LIMIT: page_size + 1,
            },
        ) as span:
            logger.debug("Querying %s/%s with %s", self._design, self._view, params)
            try:
                page = await self._store.query_view(
                    self._collection, self._design, self._view, query
                )
            except Exception as e:
                raise QueryError(self._design, self._view, params, str(e)) from e

            if len(page.rows) > page_size + 1:
                raise QueryError(
                    self._design,
                    self._view,
                    params,
                    f"store returned {len(page.rows)} rows for limit {page_size + 1}",
                )

            if span is not None:
                span.set_attribute(ATTR_ROW_COUNT, len(page.rows))
            return page


__all__ = ["ViewReader"]
