"""
Migration unit discovery.

A migration folder holds one Python file per migration unit. The file
stem names the design document whose view the migration walks; the
module provides the transform function and optional settings:

    # users_add_email.py
    collection = "users"
    batch_size = 500
    view_key = "$.created"

    def transform(doc, log):
        doc.setdefault("email", None)
        return doc

``process`` and ``db`` are accepted in place of ``transform`` and
``collection``. Files starting with ``_`` are ignored. Units run in
file-name order.
"""

from __future__ import annotations

import asyncio
import importlib.util
import logging
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType

from docmigrate.config import MigrationSettings
from docmigrate.exceptions import ConfigError
from docmigrate.migration.models import MigrationSpec
from docmigrate.stores.interface import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_VIEW_KEY = "$._id"


def _import_unit(path: Path) -> ModuleType:
    module_name = f"docmigrate_unit_{path.stem}"
    module_spec = importlib.util.spec_from_file_location(module_name, path)
    if module_spec is None or module_spec.loader is None:
        raise ConfigError(f"Cannot load migration file {path}")

    module = importlib.util.module_from_spec(module_spec)
    try:
        module_spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigError(f"Failed to import migration file {path}: {e}") from e
    return module


def load_migration(path: Path) -> MigrationSpec:
    """
    Build a MigrationSpec from one migration file.

    Raises:
        ConfigError: If the file cannot be imported or defines no transform
    """
    module = _import_unit(path)
    transform = getattr(module, "transform", None) or getattr(module, "process", None)
    if transform is None:
        raise ConfigError(f"Migration file {path} defines no 'transform' function")

    return MigrationSpec(
        name=path.stem,
        transform=transform,
        collection=getattr(module, "collection", None) or getattr(module, "db", None),
        batch_size=getattr(module, "batch_size", None),
        view=getattr(module, "view", None),
        view_key=getattr(module, "view_key", None),
        source=path,
    )


def load_migrations(folder: str | Path) -> list[MigrationSpec]:
    """
    Load every migration unit of a folder, sorted by file name.

    Args:
        folder: Directory holding the migration files

    Returns:
        One MigrationSpec per file, in run order

    Raises:
        ConfigError: If the folder is missing or a file is invalid
    """
    root = Path(folder)
    if not root.is_dir():
        raise ConfigError(f"Migration folder not found: {root}")

    try:
        paths = sorted(
            p for p in root.iterdir() if p.suffix == ".py" and not p.name.startswith("_")
        )
    except OSError as e:
        raise ConfigError(f"Cannot list migration folder {root}: {e}") from e

    specs = [load_migration(path) for path in paths]
    logger.info("Found %d migration(s) in %s", len(specs), root)
    return specs


async def ensure_views(
    store: DocumentStore,
    specs: Sequence[MigrationSpec],
    settings: MigrationSettings,
) -> None:
    """
    Create the view of each migration on stores that can define views.

    Existing view definitions are kept. Stores without ``define_view``
    are expected to carry their views already.

    Raises:
        ConfigError: If a migration has no target collection
    """
    define_view = getattr(store, "define_view", None)
    if define_view is None:
        return

    for spec in specs:
        collection = settings.resolve_collection(spec.collection, spec.name)
        view = spec.view or settings.view
        defined = define_view(
            collection,
            spec.name,
            view,
            spec.view_key or DEFAULT_VIEW_KEY,
            replace=False,
        )
        if asyncio.iscoroutine(defined):
            defined = await defined
        if defined:
            logger.info("Created view %s/%s on %s", spec.name, view, collection)


__all__ = ["DEFAULT_VIEW_KEY", "ensure_views", "load_migration", "load_migrations"]
