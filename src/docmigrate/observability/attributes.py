"""
Standard span attributes for docmigrate.

This module defines attribute constants used across docmigrate components
for consistent span naming. These follow OpenTelemetry semantic
conventions where applicable.

Example:
    >>> from docmigrate.observability.attributes import (
    ...     ATTR_COLLECTION,
    ...     ATTR_DOCUMENT_COUNT,
    ... )
    >>>
    >>> with tracer.span(
    ...     "docmigrate.bulk_writer.save",
    ...     {ATTR_COLLECTION: "users", ATTR_DOCUMENT_COUNT: len(docs)},
    ... ):
    ...     pass
"""

# =============================================================================
# Document Attributes
# =============================================================================

ATTR_COLLECTION = "docmigrate.collection"
"""Name of the collection (database) being read or written."""

ATTR_DOCUMENT_ID = "docmigrate.document.id"
"""Identifier of a single document."""

ATTR_DOCUMENT_COUNT = "docmigrate.document.count"
"""Number of documents in an operation (integer)."""

ATTR_CONFLICT_COUNT = "docmigrate.document.conflicts"
"""Number of per-document conflicts reported by a bulk write (integer)."""

# =============================================================================
# View Attributes
# =============================================================================

ATTR_DESIGN = "docmigrate.view.design"
"""Design document (index) name."""

ATTR_VIEW = "docmigrate.view.name"
"""View name inside the design document."""

ATTR_LIMIT = "docmigrate.view.limit"
"""Row limit requested from the view (integer)."""

ATTR_ROW_COUNT = "docmigrate.view.rows"
"""Number of rows returned by the view (integer)."""

# =============================================================================
# Migration Attributes
# =============================================================================

ATTR_MIGRATION_NAME = "docmigrate.migration.name"
"""Name of the migration unit."""

ATTR_BATCH_SIZE = "docmigrate.batch.size"
"""Effective batch size (integer)."""

ATTR_BATCH_NUMBER = "docmigrate.batch.number"
"""1-based number of the batch within a migration (integer)."""

ATTR_PROCESSED = "docmigrate.migration.processed"
"""Documents processed so far (integer)."""

ATTR_QUEUE_SIZE = "docmigrate.queue.size"
"""Number of migrations in a queue (integer)."""

# =============================================================================
# Database Attributes (OpenTelemetry Semantic Conventions)
# =============================================================================

ATTR_DB_SYSTEM = "db.system"
"""Database system identifier (e.g., 'sqlite', 'memory')."""

ATTR_DB_NAME = "db.name"
"""Database name or file path."""


__all__ = [
    "ATTR_COLLECTION",
    "ATTR_DOCUMENT_ID",
    "ATTR_DOCUMENT_COUNT",
    "ATTR_CONFLICT_COUNT",
    "ATTR_DESIGN",
    "ATTR_VIEW",
    "ATTR_LIMIT",
    "ATTR_ROW_COUNT",
    "ATTR_MIGRATION_NAME",
    "ATTR_BATCH_SIZE",
    "ATTR_BATCH_NUMBER",
    "ATTR_PROCESSED",
    "ATTR_QUEUE_SIZE",
    "ATTR_DB_SYSTEM",
    "ATTR_DB_NAME",
]
