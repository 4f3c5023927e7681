"""
docmigrate - batch migrations for document databases.

This library provides:
- A keyset-paginated migration engine walking a key-ordered view
- Per-document transforms written as plain Python functions
- One atomic bulk write per batch and fail-fast error handling
- In-memory and SQLite document stores
- A command line runner for folders of migration files
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("docmigrate")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

# Configuration
from docmigrate.config import MigrationSettings

# Documents
from docmigrate.documents import Document, IndexEntry, ViewPage

# Exceptions
from docmigrate.exceptions import (
    ConfigError,
    DocMigrateError,
    StoreError,
    ViewNotFoundError,
)

# Loader
from docmigrate.loader import ensure_views, load_migrations

# Migration engine
from docmigrate.migration import (
    DELETE,
    UNCHANGED,
    BatchProgress,
    MigrationError,
    MigrationQueue,
    MigrationResult,
    MigrationRunner,
    MigrationSpec,
    QueryError,
    QueueResult,
    RunnerState,
    TransformError,
    WriteError,
)

# Stores
from docmigrate.stores import (
    BulkWriteEntry,
    BulkWriteResult,
    DocumentStore,
    InMemoryDocumentStore,
    SQLiteDocumentStore,
    ViewQuery,
)

__all__ = [
    "__version__",
    # Configuration
    "MigrationSettings",
    # Documents
    "Document",
    "IndexEntry",
    "ViewPage",
    # Exceptions
    "DocMigrateError",
    "StoreError",
    "ViewNotFoundError",
    "ConfigError",
    "MigrationError",
    "QueryError",
    "TransformError",
    "WriteError",
    # Loader
    "load_migrations",
    "ensure_views",
    # Migration engine
    "DELETE",
    "UNCHANGED",
    "BatchProgress",
    "MigrationQueue",
    "MigrationResult",
    "MigrationRunner",
    "MigrationSpec",
    "QueueResult",
    "RunnerState",
    # Stores
    "ViewQuery",
    "BulkWriteEntry",
    "BulkWriteResult",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
]
