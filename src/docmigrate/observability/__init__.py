"""
Observability utilities for docmigrate.

Provides the composition-based Tracer used by the stores and the
migration engine, and the standard span attribute names.

Example:
    >>> from docmigrate.observability import create_tracer, ATTR_COLLECTION
    >>>
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.span("docmigrate.example", {ATTR_COLLECTION: "users"}):
    ...     pass
"""

from docmigrate.observability.attributes import (
    ATTR_BATCH_NUMBER,
    ATTR_BATCH_SIZE,
    ATTR_COLLECTION,
    ATTR_CONFLICT_COUNT,
    ATTR_DB_NAME,
    ATTR_DB_SYSTEM,
    ATTR_DESIGN,
    ATTR_DOCUMENT_COUNT,
    ATTR_DOCUMENT_ID,
    ATTR_LIMIT,
    ATTR_MIGRATION_NAME,
    ATTR_PROCESSED,
    ATTR_QUEUE_SIZE,
    ATTR_ROW_COUNT,
    ATTR_VIEW,
)
from docmigrate.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    Tracer,
    create_tracer,
)

__all__ = [
    # Tracer
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
    # Attributes
    "ATTR_BATCH_NUMBER",
    "ATTR_BATCH_SIZE",
    "ATTR_COLLECTION",
    "ATTR_CONFLICT_COUNT",
    "ATTR_DB_NAME",
    "ATTR_DB_SYSTEM",
    "ATTR_DESIGN",
    "ATTR_DOCUMENT_COUNT",
    "ATTR_DOCUMENT_ID",
    "ATTR_LIMIT",
    "ATTR_MIGRATION_NAME",
    "ATTR_PROCESSED",
    "ATTR_QUEUE_SIZE",
    "ATTR_ROW_COUNT",
    "ATTR_VIEW",
]
