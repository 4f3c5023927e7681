"""
Document and view row models.

Documents are plain dictionaries carrying at least an ``_id`` field.
Rows returned by a view are parsed into IndexEntry models so that a
malformed store response fails loudly at the read boundary instead of
deep inside a transformation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Document = dict[str, Any]
"""A structured record with at least an ``_id`` field."""


class IndexEntry(BaseModel):
    """
    One row of a view.

    Rows of a fixed view query are totally ordered by ``(key, id)``;
    ``id`` is the tie-break between rows that share a key.

    Attributes:
        key: Sort key emitted by the view
        id: Identifier of the document that emitted the row
        value: The document itself
    """

    model_config = ConfigDict(frozen=True)

    key: Any = None
    id: str | None = None
    value: Document = Field(default_factory=dict)

    @property
    def document_id(self) -> str | None:
        """The document identifier, preferring the document's own ``_id``."""
        doc_id = self.value.get("_id")
        if doc_id is not None:
            return str(doc_id)
        return self.id


class ViewPage(BaseModel):
    """
    Result of a single view query.

    Attributes:
        total_rows: Number of rows in the whole view, if the store reports it
        offset: Position of the first returned row in the view, if known
        rows: Returned rows in view order
    """

    total_rows: int | None = None
    offset: int | None = None
    rows: list[IndexEntry] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


__all__ = ["Document", "IndexEntry", "ViewPage"]
