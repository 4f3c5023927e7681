"""
Migration-specific exceptions.

Every error raised while a migration runs is fatal: it aborts the
current migration and the remaining queue. There is no retry tier.

Exception Hierarchy:
    MigrationError (base)
    +-- MigrationStateError
    +-- QueryError
    +-- TransformError
    +-- WriteError
"""

from __future__ import annotations

from typing import Any

from docmigrate.exceptions import DocMigrateError


class MigrationError(DocMigrateError):
    """
    Base exception for all migration-related errors.

    Attributes:
        message: Human-readable error description.
        migration: Name of the migration that failed, if known.
        processed: Documents saved by the migration before the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        migration: str | None = None,
        processed: int = 0,
    ) -> None:
        self.message = message
        self.migration = migration
        self.processed = processed
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error string with context."""
        parts = [self.message]
        if self.migration:
            parts.append(f"migration={self.migration}")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for logging or reporting.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error": type(self).__name__,
            "message": self.message,
            "migration": self.migration,
            "processed": self.processed,
        }


class MigrationStateError(MigrationError):
    """
    Raised when a runner is driven through an invalid state transition.

    This typically means a runner was started twice.
    """

    def __init__(self, current: str, target: str, migration: str | None = None) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid runner transition from {current} to {target}",
            migration=migration,
        )


class QueryError(MigrationError):
    """
    Raised when reading a page from the view fails.

    Covers network failures, malformed queries or responses and missing
    views. Not retried.

    Attributes:
        design: Design document that was queried.
        view: View that was queried.
        params: View parameters of the failing request.
    """

    def __init__(
        self,
        design: str,
        view: str,
        params: dict[str, Any],
        error: str,
    ) -> None:
        self.design = design
        self.view = view
        self.params = params
        self.original_error = error
        super().__init__(f"Query on {design}/{view} {params} failed: {error}")


class TransformError(MigrationError):
    """
    Raised when the transform function fails on a document.

    A failure on one document is treated as a defect of the migration
    unit, so the batch is abandoned before anything of it is written.

    Attributes:
        document_id: Id of the document being transformed.
        cause: The exception raised by the transform function.
    """

    def __init__(self, document_id: str | None, cause: BaseException) -> None:
        self.document_id = document_id
        self.cause = cause
        super().__init__(
            f"Processing document with id '{document_id}' failed: "
            f"{type(cause).__name__}: {cause}"
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["document_id"] = self.document_id
        return data


class WriteError(MigrationError):
    """
    Raised when a bulk write fails as a whole.

    Attributes:
        collection: Target collection of the write.
        document_count: Number of documents in the rejected batch.
    """

    def __init__(self, collection: str, document_count: int, error: str) -> None:
        self.collection = collection
        self.document_count = document_count
        self.original_error = error
        super().__init__(
            f"Bulk update of {document_count} document(s) in '{collection}' failed: {error}"
        )


__all__ = [
    "MigrationError",
    "MigrationStateError",
    "QueryError",
    "TransformError",
    "WriteError",
]
