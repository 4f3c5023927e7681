"""
Shared pytest fixtures for the docmigrate tests.

This module provides:
- Document fixtures (make_documents)
- Store fixtures (in_memory_store, populated_store, sqlite_store)
- Settings and tracer fixtures (settings, mock_tracer)
- Migration folder fixtures (migrations_dir, write_unit)

Store doubles and builders live in tests.helpers.
"""

from __future__ import annotations

import textwrap
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
import pytest_asyncio

from docmigrate.config import MigrationSettings
from docmigrate.documents import Document
from docmigrate.observability import MockTracer
from docmigrate.stores.in_memory import InMemoryDocumentStore
from docmigrate.stores.sqlite import SQLiteDocumentStore
from tests.helpers import RecordingStore, build_documents, seed

# ============================================================================
# Document fixtures
# ============================================================================


@pytest.fixture
def make_documents() -> Callable[..., list[Document]]:
    """
    Factory fixture for creating test documents.

    Example:
        def test_something(make_documents):
            docs = make_documents(25)
    """
    return build_documents


# ============================================================================
# Store fixtures
# ============================================================================


@pytest.fixture
def in_memory_store() -> InMemoryDocumentStore:
    """Provide a fresh in-memory document store with tracing disabled."""
    return InMemoryDocumentStore(enable_tracing=False)


@pytest_asyncio.fixture
async def populated_store() -> RecordingStore:
    """
    Provide a recording store holding 25 documents under the ``seq`` view.

    The view is ``add_email/all`` on the ``users`` collection. Queries and
    writes made while seeding are cleared.
    """
    store = RecordingStore()
    await seed(store, 25)
    store.queries.clear()
    store.writes.clear()
    return store


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> AsyncGenerator[SQLiteDocumentStore, None]:
    """Provide an initialized SQLite document store in a temporary file."""
    async with SQLiteDocumentStore(str(tmp_path / "docs.db"), enable_tracing=False) as store:
        await store.initialize()
        yield store


# ============================================================================
# Settings and tracing
# ============================================================================


@pytest.fixture
def settings() -> MigrationSettings:
    """Settings with a small batch size and tracing disabled."""
    return MigrationSettings(default_batch_size=10, enable_tracing=False)


@pytest.fixture
def mock_tracer() -> MockTracer:
    """Provide a tracer that records span names and attributes."""
    return MockTracer()


# ============================================================================
# Migration folder fixtures
# ============================================================================


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    """An empty folder for migration files."""
    folder = tmp_path / "migrations"
    folder.mkdir()
    return folder


@pytest.fixture
def write_unit(migrations_dir: Path) -> Callable[[str, str], Path]:
    """
    Write a migration file into ``migrations_dir``.

    Example:
        def test_loading(write_unit):
            write_unit("add_email", '''
                collection = "users"

                def transform(doc, log):
                    return doc
            ''')
    """

    def _write(name: str, source: str) -> Path:
        path = migrations_dir / f"{name}.py"
        path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return path

    return _write
