"""
Data models for the migration engine.

This module defines:
- RunnerState: State machine of a single migration run
- MigrationSpec: One migration unit (target, batch size, transform)
- BatchProgress: Progress report after each saved batch
- MigrationResult: Outcome of a completed migration
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from docmigrate.documents import Document
from docmigrate.exceptions import ConfigError

TransformFunction = Callable[[Document, logging.Logger], Any]
"""Per-document transform: receives a copy of the document and a logger."""


class RunnerState(Enum):
    """
    States of a migration run.

    State machine transitions:
        INIT -> FETCHING -> TRANSFORMING -> SAVING -> ADVANCE -> FETCHING
                    |                                    |
                    +-> DONE (empty view)                +-> DONE (no lookahead)
        Any non-terminal state ---------------------------> FAILED

    Attributes:
        INIT: Resolving target collection and batch size.
        FETCHING: Reading the next page from the view.
        TRANSFORMING: Applying the transform to the batch.
        SAVING: Writing the transformed batch.
        ADVANCE: Moving the cursor past the saved batch.
        DONE: Migration finished successfully.
        FAILED: Migration aborted by an error.
    """

    INIT = "init"
    FETCHING = "fetching"
    TRANSFORMING = "transforming"
    SAVING = "saving"
    ADVANCE = "advance"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """DONE and FAILED are final."""
        return self in (RunnerState.DONE, RunnerState.FAILED)

    def can_transition_to(self, target: RunnerState) -> bool:
        """
        Check if transition to target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        if self.is_terminal:
            return False

        if target is RunnerState.FAILED:
            return True

        valid_transitions: dict[RunnerState, tuple[RunnerState, ...]] = {
            RunnerState.INIT: (RunnerState.FETCHING,),
            RunnerState.FETCHING: (RunnerState.TRANSFORMING, RunnerState.DONE),
            RunnerState.TRANSFORMING: (RunnerState.SAVING,),
            RunnerState.SAVING: (RunnerState.ADVANCE,),
            RunnerState.ADVANCE: (RunnerState.FETCHING, RunnerState.DONE),
        }
        return target in valid_transitions.get(self, ())


@dataclass(frozen=True)
class MigrationSpec:
    """
    One migration unit.

    Immutable for the duration of a run.

    Attributes:
        name: Design document (index) holding the view to walk.
        transform: Function applied to every document.
        collection: Target collection; falls back to the run default.
        batch_size: Documents per batch; falls back to the run default.
        view: View inside the design document; falls back to the run default.
        view_key: Store-specific key definition used when the view has to
            be created (a JSON path such as "$.created").
        source: File the unit was loaded from, if any.

    Example:
        >>> def add_email(doc, log):
        ...     doc.setdefault("email", None)
        ...     return doc
        >>> spec = MigrationSpec(name="add_email", transform=add_email, collection="users")
    """

    name: str
    transform: TransformFunction
    collection: str | None = None
    batch_size: int | None = None
    view: str | None = None
    view_key: str | None = None
    source: Path | None = None

    def __post_init__(self) -> None:
        """Validate the unit."""
        if not self.name:
            raise ConfigError("migration name must not be empty")
        if not callable(self.transform):
            raise ConfigError(f"migration '{self.name}' transform is not callable")
        if self.batch_size is not None and self.batch_size < 1:
            raise ConfigError(
                f"migration '{self.name}' batch_size must be >= 1, got {self.batch_size}"
            )


@dataclass(frozen=True)
class BatchProgress:
    """
    Progress information emitted after each saved batch.

    Attributes:
        migration: Name of the migration.
        batch_number: 1-based batch counter.
        range_start: Processed count before this batch.
        range_end: Processed count after this batch.
        total: Informational total from the first page (None if unknown).
        written: Documents written in this batch.
        deleted: Documents deleted in this batch.
        unchanged: Documents left untouched in this batch.
        conflicts: Per-document conflicts reported by the store.
    """

    migration: str
    batch_number: int
    range_start: int
    range_end: int
    total: int | None
    written: int
    deleted: int
    unchanged: int
    conflicts: int = 0

    @property
    def progress_percent(self) -> float:
        """
        Progress as a percentage (0-100).

        Returns:
            0.0 if the total is unknown or zero.
        """
        if not self.total:
            return 0.0
        return min(100.0, (self.range_end / self.total) * 100)


@dataclass(frozen=True)
class MigrationResult:
    """
    Result of a completed migration.

    Attributes:
        migration: Name of the migration.
        collection: Collection that was written.
        processed: Documents covered by saved batches.
        batches: Number of batches saved.
        written: Documents written (created or updated).
        deleted: Documents deleted.
        unchanged: Documents the transform left untouched.
        conflicts: Per-document conflicts reported by the store.
        total: Informational total from the first page.
        batch_size: Effective batch size after clamping.
        duration_seconds: Wall-clock time of the run.
    """

    migration: str
    collection: str
    processed: int
    batches: int
    written: int
    deleted: int
    unchanged: int
    conflicts: int
    total: int | None
    batch_size: int
    duration_seconds: float


__all__ = [
    "RunnerState",
    "MigrationSpec",
    "BatchProgress",
    "MigrationResult",
    "TransformFunction",
]
