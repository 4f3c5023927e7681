"""Document store implementations for the docmigrate package."""

from docmigrate.stores.in_memory import InMemoryDocumentStore, MapFunction
from docmigrate.stores.interface import (
    BulkWriteEntry,
    BulkWriteResult,
    DocumentStore,
    ViewQuery,
)
from docmigrate.stores.sqlite import SQLiteDocumentStore

__all__ = [
    # Data structures
    "ViewQuery",
    "BulkWriteEntry",
    "BulkWriteResult",
    # Abstract base classes
    "DocumentStore",
    # Concrete implementations
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
    # Views
    "MapFunction",
]
