"""
Keyset-paginated batch migration engine.

Walks a key-ordered view of a collection page by page, applies a
per-document transform and writes each page back as one bulk request
before moving on.

Key Components:
    - BatchCursor: Keyset pagination state with one row of lookahead
    - ViewReader: Fetches one page of a view
    - Transformer: Applies a migration unit's transform to a batch
    - BulkWriter: Writes a batch in one request
    - MigrationRunner: Drives one migration through its state machine
    - MigrationQueue: Runs migrations one at a time, stopping at the first failure

Usage:
    >>> from docmigrate.migration import MigrationQueue, MigrationSpec
    >>>
    >>> def add_email(doc, log):
    ...     doc.setdefault("email", None)
    ...     return doc
    >>>
    >>> queue = MigrationQueue(
    ...     [MigrationSpec(name="add_email", transform=add_email, collection="users")],
    ...     store,
    ... )
    >>> result = await queue.run()
"""

from docmigrate.migration.cursor import BatchCursor, Cursor
from docmigrate.migration.exceptions import (
    MigrationError,
    MigrationStateError,
    QueryError,
    TransformError,
    WriteError,
)
from docmigrate.migration.models import (
    BatchProgress,
    MigrationResult,
    MigrationSpec,
    RunnerState,
    TransformFunction,
)
from docmigrate.migration.queue import MigrationQueue, QueueResult
from docmigrate.migration.reader import ViewReader
from docmigrate.migration.runner import MigrationRunner
from docmigrate.migration.transformer import (
    DELETE,
    UNCHANGED,
    Deleted,
    Transformed,
    TransformFailed,
    Transformer,
    TransformOutcome,
    Unchanged,
)
from docmigrate.migration.writer import BulkWriter

__all__ = [
    # Models
    "BatchProgress",
    "MigrationResult",
    "MigrationSpec",
    "RunnerState",
    "TransformFunction",
    # Cursor
    "BatchCursor",
    "Cursor",
    # Components
    "ViewReader",
    "Transformer",
    "BulkWriter",
    "MigrationRunner",
    "MigrationQueue",
    "QueueResult",
    # Transform outcomes
    "DELETE",
    "UNCHANGED",
    "Transformed",
    "Unchanged",
    "Deleted",
    "TransformFailed",
    "TransformOutcome",
    # Exceptions
    "MigrationError",
    "MigrationStateError",
    "QueryError",
    "TransformError",
    "WriteError",
]
