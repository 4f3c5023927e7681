"""
Keyset pagination state for one migration.

Pages are over-fetched by one row. The extra row (the lookahead) is not
processed; its key and id become the inclusive start of the next page,
and its presence is what says another page exists. Documents added to
the view behind the cursor while the migration runs are not revisited;
documents added ahead of it are picked up by later pages.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from docmigrate.documents import IndexEntry
from docmigrate.stores.interface import ViewQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cursor:
    """
    Position of a migration in its view.

    Attributes:
        start_key: Key of the first row of the next page.
        start_id: Document id of the first row of the next page.
        positioned: False until the first page has been saved; the start
            key is meaningless while False.
        processed_count: Documents covered by saved batches so far.
    """

    start_key: Any = None
    start_id: str | None = None
    positioned: bool = False
    processed_count: int = 0

    def to_query(self, page_size: int) -> ViewQuery:
        """Build the query for the next page: ``page_size`` rows plus the lookahead."""
        return ViewQuery(
            limit=page_size + 1,
            start_key=self.start_key,
            start_id=self.start_id,
            positioned=self.positioned,
        )


class BatchCursor:
    """
    Owns the pagination state of one migration run.

    Example:
        >>> cursor = BatchCursor(page_size=1000)
        >>> cursor.observe_total(2500)
        1000
        >>> batch, lookahead = cursor.split(page.rows)
        >>> next_cursor, has_more = cursor.advance(lookahead, len(batch))
    """

    def __init__(self, page_size: int) -> None:
        """
        Args:
            page_size: Configured batch size (must be >= 1).
        """
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._page_size = page_size
        self._cursor = Cursor()
        self._total: int | None = None
        self._observed = False

    @property
    def cursor(self) -> Cursor:
        return self._cursor

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def total(self) -> int | None:
        """Informational total recorded from the first page."""
        return self._total

    @property
    def processed_count(self) -> int:
        return self._cursor.processed_count

    def observe_total(self, total: int | None) -> int:
        """
        Record the view's total from the first page and clamp the page size.

        Only the first call has any effect. A page size larger than the
        total is reduced to the total; a zero or unknown total leaves it
        unchanged.

        Args:
            total: Row count reported with the first page.

        Returns:
            The effective page size.
        """
        if self._observed:
            return self._page_size
        self._observed = True
        self._total = total
        if total is not None and 0 < total < self._page_size:
            logger.debug("Clamping page size from %d to %d", self._page_size, total)
            self._page_size = total
        return self._page_size

    def split(self, rows: Sequence[IndexEntry]) -> tuple[list[IndexEntry], IndexEntry | None]:
        """
        Separate a fetched page into the batch and the lookahead row.

        Returns:
            (first ``page_size`` rows, the row after them or None)
        """
        batch = list(rows[: self._page_size])
        lookahead = rows[self._page_size] if len(rows) > self._page_size else None
        return batch, lookahead

    def advance(self, lookahead: IndexEntry | None, saved: int) -> tuple[Cursor, bool]:
        """
        Move past a saved batch.

        Args:
            lookahead: The extra row of the page, or None if the page was short.
            saved: Number of documents in the saved batch.

        Returns:
            (the new cursor, whether another page exists)
        """
        if saved < 0:
            raise ValueError(f"saved must be >= 0, got {saved}")
        processed = self._cursor.processed_count + saved

        if lookahead is None:
            self._cursor = replace(self._cursor, processed_count=processed)
            return self._cursor, False

        self._cursor = Cursor(
            start_key=lookahead.key,
            start_id=lookahead.id,
            positioned=True,
            processed_count=processed,
        )
        return self._cursor, True


__all__ = ["Cursor", "BatchCursor"]
