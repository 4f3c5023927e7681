"""
Command line entry point.

    docmigrate FOLDER [-s N] [--db COLLECTION] [--database PATH] [--debug] [--log-file PATH]

Runs every migration file of FOLDER in name order against a SQLite
document database and exits 0 on success, 1 on the first failure.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from docmigrate.config import DEFAULT_BATCH_SIZE, DEFAULT_DATABASE, MigrationSettings
from docmigrate.exceptions import ConfigError
from docmigrate.loader import ensure_views, load_migrations
from docmigrate.migration.queue import MigrationQueue
from docmigrate.stores.sqlite import SQLiteDocumentStore

logger = logging.getLogger("docmigrate.cli")


def configure_logging(debug: bool, log_file: Path | None) -> None:
    level = logging.DEBUG if debug else logging.INFO
    handlers: list[logging.Handler] = []
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    else:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        handlers=handlers,
    )

    if not debug:
        logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="docmigrate",
        description="Run batch migrations over the documents of a collection",
    )
    p.add_argument("folder", type=Path, help="Folder holding the migration files")
    p.add_argument("-s", "--batch-size", type=_positive_int, default=DEFAULT_BATCH_SIZE,
                   help="Documents per batch unless a migration sets its own "
                        f"(default: {DEFAULT_BATCH_SIZE})")
    p.add_argument("--db", dest="collection", default=None,
                   help="Target collection for migrations that do not name one")
    p.add_argument("--database", default=DEFAULT_DATABASE,
                   help=f"SQLite database file (default: {DEFAULT_DATABASE})")
    p.add_argument("--no-tracing", dest="tracing", action="store_false",
                   help="Do not emit OpenTelemetry spans.")
    p.add_argument("--debug", action="store_true",
                   help="Enable verbose debug logging.")
    p.add_argument("--log-file", type=Path, default=None,
                   help="Write logs to this file instead of stderr.")
    return p


async def run(folder: Path, settings: MigrationSettings) -> int:
    """
    Load and run the migrations of ``folder``.

    Returns:
        Process exit status

    Raises:
        ConfigError: If the folder or a migration file is invalid
    """
    specs = load_migrations(folder)
    async with SQLiteDocumentStore(
        settings.database, enable_tracing=settings.enable_tracing
    ) as store:
        await store.initialize()
        await ensure_views(store, specs, settings)
        queue = MigrationQueue(specs, store, settings)
        result = await queue.run()
    return result.exit_code


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug, args.log_file)
    logger.debug("Parsed args: %s", vars(args))

    try:
        settings = MigrationSettings(
            default_batch_size=args.batch_size,
            default_collection=args.collection,
            database=args.database,
            enable_tracing=args.tracing,
        )
        code = asyncio.run(run(args.folder, settings))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        sys.exit(130)
    except Exception:
        logger.exception("Unhandled error during execution")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
