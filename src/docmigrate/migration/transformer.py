"""
Transformer - applies a migration unit's transform to view rows.

The transform function receives a deep copy of each document and a
logger, and returns one of:

- a dict: the migrated document, written back
- None or UNCHANGED: the document is left as it is
- DELETE: the document is deleted

Errors raised by the transform never propagate out of the Transformer;
they are returned as TransformFailed so the runner decides what a
failure means for the batch.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from docmigrate.documents import Document, IndexEntry
from docmigrate.migration.models import TransformFunction

logger = logging.getLogger(__name__)


class Marker(Enum):
    """Special return values of a transform function."""

    DELETE = "delete"
    UNCHANGED = "unchanged"


DELETE = Marker.DELETE
UNCHANGED = Marker.UNCHANGED


@dataclass(frozen=True)
class Transformed:
    """The transform produced a new version of the document."""

    document_id: str | None
    document: Document


@dataclass(frozen=True)
class Unchanged:
    """The transform left the document alone; nothing is written."""

    document_id: str | None


@dataclass(frozen=True)
class Deleted:
    """The transform asked for deletion; ``document`` is the tombstone."""

    document_id: str | None
    document: Document


@dataclass(frozen=True)
class TransformFailed:
    """The transform raised or returned something unusable."""

    document_id: str | None
    error: Exception


TransformOutcome = Transformed | Unchanged | Deleted | TransformFailed


def tombstone(document: Document) -> Document:
    """Build the deletion marker written in place of ``document``."""
    marker: Document = {"_id": document.get("_id"), "_deleted": True}
    if document.get("_rev") is not None:
        marker["_rev"] = document["_rev"]
    return marker


class Transformer:
    """
    Applies one transform function to view rows.

    Example:
        >>> transformer = Transformer(add_email, logging.getLogger("docmigrate.units.add_email"))
        >>> outcomes, failure = transformer.apply_batch(batch)
        >>> if failure is not None:
        ...     raise TransformError(failure.document_id, failure.error)
    """

    def __init__(self, transform: TransformFunction, unit_logger: logging.Logger) -> None:
        """
        Args:
            transform: Per-document transform function.
            unit_logger: Logger handed to the transform for progress lines.
        """
        self._transform = transform
        self._unit_logger = unit_logger

    def apply(self, entry: IndexEntry) -> TransformOutcome:
        """
        Transform the document of one row.

        Args:
            entry: View row whose value is the document.

        Returns:
            Transformed, Unchanged, Deleted or TransformFailed.
        """
        document_id = entry.document_id
        original = entry.value
        try:
            result = self._transform(copy.deepcopy(original), self._unit_logger)
        except Exception as e:
            logger.debug("Transform raised on document %s: %r", document_id, e)
            return TransformFailed(document_id, e)

        if result is None or result is UNCHANGED:
            return Unchanged(document_id)
        if result is DELETE:
            return Deleted(document_id, tombstone(original))
        if isinstance(result, dict):
            return Transformed(document_id, result)
        return TransformFailed(
            document_id,
            TypeError(
                f"transform must return a dict, None, UNCHANGED or DELETE, "
                f"got {type(result).__name__}"
            ),
        )

    def apply_batch(
        self,
        entries: Sequence[IndexEntry],
    ) -> tuple[list[TransformOutcome], TransformFailed | None]:
        """
        Transform every row of a batch, stopping at the first failure.

        Returns:
            (outcomes in row order, the failure or None)
        """
        outcomes: list[TransformOutcome] = []
        for entry in entries:
            outcome = self.apply(entry)
            if isinstance(outcome, TransformFailed):
                return outcomes, outcome
            outcomes.append(outcome)
        return outcomes, None


__all__ = [
    "DELETE",
    "UNCHANGED",
    "Marker",
    "Transformer",
    "Transformed",
    "Unchanged",
    "Deleted",
    "TransformFailed",
    "TransformOutcome",
    "tombstone",
]
