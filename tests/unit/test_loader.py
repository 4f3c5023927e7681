"""
Unit tests for migration unit discovery.
"""

from pathlib import Path

import pytest

from docmigrate.config import MigrationSettings
from docmigrate.exceptions import ConfigError
from docmigrate.loader import DEFAULT_VIEW_KEY, ensure_views, load_migration, load_migrations
from docmigrate.stores.in_memory import InMemoryDocumentStore
from docmigrate.stores.interface import DocumentStore, ViewQuery

ADD_EMAIL = '''
    collection = "users"
    batch_size = 500
    view_key = "$.created"

    def transform(doc, log):
        doc["email"] = None
        return doc
'''


class TestLoadMigration:
    """Tests for load_migration()."""

    def test_reads_module_attributes(self, write_unit) -> None:
        """Module attributes become the unit's settings."""
        path = write_unit("add_email", ADD_EMAIL)

        spec = load_migration(path)

        assert spec.name == "add_email"
        assert spec.collection == "users"
        assert spec.batch_size == 500
        assert spec.view is None
        assert spec.view_key == "$.created"
        assert spec.source == path
        assert spec.transform({"_id": "a"}, None) == {"_id": "a", "email": None}

    def test_process_and_db_aliases(self, write_unit) -> None:
        """``process`` and ``db`` are accepted as aliases."""
        path = write_unit(
            "legacy",
            '''
            db = "accounts"

            def process(doc, log):
                return None
            ''',
        )

        spec = load_migration(path)

        assert spec.collection == "accounts"
        assert spec.transform({}, None) is None

    def test_missing_transform(self, write_unit) -> None:
        """A file without a transform function is rejected."""
        path = write_unit("empty", 'collection = "users"\n')

        with pytest.raises(ConfigError, match="defines no 'transform'"):
            load_migration(path)

    def test_import_error_is_config_error(self, write_unit) -> None:
        """Errors raised while importing the file are configuration errors."""
        path = write_unit("broken", "raise RuntimeError('nope')\n")

        with pytest.raises(ConfigError, match="Failed to import") as exc_info:
            load_migration(path)

        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_syntax_error_is_config_error(self, write_unit) -> None:
        """A file that does not parse is a configuration error."""
        path = write_unit("bad_syntax", "def transform(doc, log)\n    return doc\n")

        with pytest.raises(ConfigError):
            load_migration(path)

    def test_invalid_batch_size(self, write_unit) -> None:
        """Invalid unit settings are rejected."""
        path = write_unit(
            "zero",
            '''
            batch_size = 0

            def transform(doc, log):
                return doc
            ''',
        )

        with pytest.raises(ConfigError, match="batch_size"):
            load_migration(path)


class TestLoadMigrations:
    """Tests for load_migrations()."""

    def test_sorted_by_file_name(self, write_unit, migrations_dir: Path) -> None:
        """Units load in file name order."""
        for name in ("002_b", "001_a", "010_c"):
            write_unit(name, ADD_EMAIL)

        specs = load_migrations(migrations_dir)

        assert [spec.name for spec in specs] == ["001_a", "002_b", "010_c"]

    def test_skips_private_and_other_files(self, write_unit, migrations_dir: Path) -> None:
        """Files starting with _ and non-Python files are ignored."""
        write_unit("add_email", ADD_EMAIL)
        write_unit("_helpers", "VALUE = 1\n")
        (migrations_dir / "README.txt").write_text("notes", encoding="utf-8")
        (migrations_dir / "sub").mkdir()

        specs = load_migrations(migrations_dir)

        assert [spec.name for spec in specs] == ["add_email"]

    def test_accepts_string_path(self, write_unit, migrations_dir: Path) -> None:
        """The folder may be given as a string."""
        write_unit("add_email", ADD_EMAIL)
        assert len(load_migrations(str(migrations_dir))) == 1

    def test_empty_folder(self, migrations_dir: Path) -> None:
        """An empty folder yields no units."""
        assert load_migrations(migrations_dir) == []

    def test_missing_folder(self, tmp_path: Path) -> None:
        """A missing folder is a configuration error."""
        with pytest.raises(ConfigError, match="Migration folder not found"):
            load_migrations(tmp_path / "nope")


class TestEnsureViews:
    """Tests for ensure_views()."""

    @pytest.mark.asyncio
    async def test_defines_views_on_in_memory_store(
        self, write_unit, migrations_dir: Path, in_memory_store: InMemoryDocumentStore
    ) -> None:
        """Each unit's view is created under its design name."""
        write_unit("add_email", ADD_EMAIL)
        write_unit(
            "rename",
            '''
            view = "by_id"

            def transform(doc, log):
                return doc
            ''',
        )
        specs = load_migrations(migrations_dir)

        await ensure_views(in_memory_store, specs, MigrationSettings(default_collection="users"))

        assert in_memory_store.has_view("users", "add_email", "all")
        assert in_memory_store.has_view("users", "rename", "by_id")

    @pytest.mark.asyncio
    async def test_keeps_existing_view(
        self, write_unit, migrations_dir: Path, in_memory_store: InMemoryDocumentStore
    ) -> None:
        """A view that already exists is not replaced."""
        write_unit("add_email", ADD_EMAIL)
        in_memory_store.define_view("users", "add_email", "all", "$.other")
        specs = load_migrations(migrations_dir)
        await in_memory_store.bulk_write(
            "users", [{"_id": "a", "other": 2, "created": 1}, {"_id": "b", "other": 1, "created": 2}]
        )

        await ensure_views(in_memory_store, specs, MigrationSettings())

        page = await in_memory_store.query_view("users", "add_email", "all", ViewQuery())
        assert [row.id for row in page.rows] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_missing_collection(
        self, write_unit, migrations_dir: Path, in_memory_store: InMemoryDocumentStore
    ) -> None:
        """A unit without any collection fails before anything runs."""
        write_unit(
            "orphan",
            '''
            def transform(doc, log):
                return doc
            ''',
        )

        with pytest.raises(ConfigError, match="--db"):
            await ensure_views(in_memory_store, load_migrations(migrations_dir), MigrationSettings())

    @pytest.mark.asyncio
    async def test_store_without_define_view(self, write_unit, migrations_dir: Path) -> None:
        """Stores that cannot define views are left alone."""

        class ReadOnlyStore(DocumentStore):
            async def query_view(self, collection, design, view, query):
                raise NotImplementedError

            async def bulk_write(self, collection, documents):
                raise NotImplementedError

        write_unit("add_email", ADD_EMAIL)

        await ensure_views(ReadOnlyStore(), load_migrations(migrations_dir), MigrationSettings())

    def test_default_view_key(self) -> None:
        """Views default to ordering by document id."""
        assert DEFAULT_VIEW_KEY == "$._id"
