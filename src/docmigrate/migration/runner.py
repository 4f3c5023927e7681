"""
MigrationRunner - runs one migration unit over its view.

The runner drives a single control loop:

    FETCHING -> TRANSFORMING -> SAVING -> ADVANCE -> FETCHING ... -> DONE

Exactly one page is in flight at a time. The store is only awaited at
the view fetch and at the bulk write. Any error moves the runner to
FAILED and is re-raised; documents saved by earlier batches stay saved
and nothing is rolled back.

Usage:
    >>> runner = MigrationRunner(spec, store, settings)
    >>> result = await runner.run()
    >>> print(f"{result.processed} document(s) in {result.duration_seconds:.1f}s")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from docmigrate.config import MigrationSettings
from docmigrate.exceptions import DocMigrateError
from docmigrate.migration.cursor import BatchCursor
from docmigrate.migration.exceptions import (
    MigrationError,
    MigrationStateError,
    TransformError,
)
from docmigrate.migration.models import (
    BatchProgress,
    MigrationResult,
    MigrationSpec,
    RunnerState,
)
from docmigrate.migration.reader import ViewReader
from docmigrate.migration.transformer import Deleted, Transformed, Transformer
from docmigrate.migration.writer import BulkWriter
from docmigrate.observability import (
    ATTR_BATCH_NUMBER,
    ATTR_BATCH_SIZE,
    ATTR_COLLECTION,
    ATTR_DOCUMENT_COUNT,
    ATTR_MIGRATION_NAME,
    ATTR_PROCESSED,
    Tracer,
    create_tracer,
)
from docmigrate.stores.interface import DocumentStore

logger = logging.getLogger(__name__)

UNIT_LOGGER_PREFIX = "docmigrate.units"


class MigrationRunner:
    """
    Runs one migration from INIT to DONE or FAILED.

    A runner owns its cursor and batch exclusively and is single-use.

    Attributes:
        _spec: The migration unit being run.
        _store: Store holding the view and the target collection.
        _settings: Run-wide defaults for batch size, collection and view.
        _progress_callback: Called with a BatchProgress after each saved batch.
        _state: Current RunnerState.
        _error: The error that moved the runner to FAILED.
    """

    def __init__(
        self,
        spec: MigrationSpec,
        store: DocumentStore,
        settings: MigrationSettings | None = None,
        *,
        progress_callback: Callable[[BatchProgress], None] | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        """
        Initialize the runner.

        Args:
            spec: Migration unit to run.
            store: Store to read from and write to.
            settings: Run-wide defaults (default: MigrationSettings()).
            progress_callback: Optional callback for per-batch progress.
            tracer: Optional custom Tracer instance. If not provided, one is
                   created based on settings.enable_tracing.
        """
        self._spec = spec
        self._store = store
        self._settings = settings or MigrationSettings()
        self._progress_callback = progress_callback
        self._tracer = tracer or create_tracer(__name__, self._settings.enable_tracing)

        self._state = RunnerState.INIT
        self._started = False
        self._error: Exception | None = None
        self._result: MigrationResult | None = None
        self._cursor: BatchCursor | None = None

    @property
    def spec(self) -> MigrationSpec:
        return self._spec

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def result(self) -> MigrationResult | None:
        return self._result

    @property
    def processed_count(self) -> int:
        """Documents covered by saved batches so far."""
        return self._cursor.processed_count if self._cursor is not None else 0

    def _transition(self, target: RunnerState) -> None:
        if not self._state.can_transition_to(target):
            raise MigrationStateError(self._state.value, target.value, self._spec.name)
        self._state = target

    async def run(self) -> MigrationResult:
        """
        Run the migration.

        Returns:
            MigrationResult with counts and timing.

        Raises:
            ConfigError: If no target collection can be resolved.
            QueryError: If a view fetch fails.
            TransformError: If the transform fails on a document.
            WriteError: If a bulk write fails.
            MigrationStateError: If the runner was already run.
        """
        if self._started:
            raise MigrationStateError(
                self._state.value, RunnerState.FETCHING.value, self._spec.name
            )
        self._started = True

        with self._tracer.span(
            "docmigrate.runner.run",
            {ATTR_MIGRATION_NAME: self._spec.name},
        ):
            try:
                self._result = await self._execute()
            except Exception as e:
                self._fail(e)
                raise
            return self._result

    def _fail(self, error: Exception) -> None:
        if isinstance(error, MigrationError):
            error.migration = error.migration or self._spec.name
            error.processed = self.processed_count
        self._error = error
        if not self._state.is_terminal:
            self._state = RunnerState.FAILED

        if isinstance(error, DocMigrateError):
            logger.error(
                "%s MIGRATION FAILED after %d document(s): %s",
                self._spec.name,
                self.processed_count,
                error,
            )
        else:
            logger.exception("%s MIGRATION FAILED with an unexpected error", self._spec.name)

    async def _execute(self) -> MigrationResult:
        spec = self._spec
        start_time = time.monotonic()

        # INIT
        collection = self._settings.resolve_collection(spec.collection, spec.name)
        batch_size = self._settings.resolve_batch_size(spec.batch_size)
        view = spec.view or self._settings.view

        cursor = BatchCursor(batch_size)
        self._cursor = cursor
        reader = ViewReader(self._store, collection, spec.name, view, tracer=self._tracer)
        writer = BulkWriter(self._store, collection, tracer=self._tracer)
        transformer = Transformer(
            spec.transform,
            logging.getLogger(f"{UNIT_LOGGER_PREFIX}.{spec.name}"),
        )

        logger.info("%s/%s MIGRATION START (collection '%s')", spec.name, view, collection)

        batches = written = deleted = unchanged = conflicts = 0
        first_page = True

        while True:
            self._transition(RunnerState.FETCHING)
            page = await reader.fetch(cursor.cursor, cursor.page_size)

            if first_page:
                first_page = False
                page_size = cursor.observe_total(page.total_rows)
                if cursor.total is not None:
                    logger.info("%d document(s) to be migrated", cursor.total)
                    if cursor.total > page_size:
                        logger.info("Batching by group of %d item(s)", page_size)

            batch, lookahead = cursor.split(page.rows)
            if not batch:
                self._transition(RunnerState.DONE)
                break

            range_start = cursor.processed_count
            batch_number = batches + 1

            with self._tracer.span(
                "docmigrate.runner.batch",
                {
                    ATTR_MIGRATION_NAME: spec.name,
                    ATTR_COLLECTION: collection,
                    ATTR_BATCH_NUMBER: batch_number,
                    ATTR_BATCH_SIZE: cursor.page_size,
                    ATTR_DOCUMENT_COUNT: len(batch),
                    ATTR_PROCESSED: range_start,
                },
            ):
                self._transition(RunnerState.TRANSFORMING)
                outcomes, failure = transformer.apply_batch(batch)
                if failure is not None:
                    raise TransformError(failure.document_id, failure.error) from failure.error

                documents = [
                    outcome.document
                    for outcome in outcomes
                    if isinstance(outcome, Transformed | Deleted)
                ]
                batch_deleted = sum(1 for outcome in outcomes if isinstance(outcome, Deleted))

                self._transition(RunnerState.SAVING)
                save_result = await writer.save(documents)

                self._transition(RunnerState.ADVANCE)
                _, has_more = cursor.advance(lookahead, len(batch))

            batches = batch_number
            deleted += batch_deleted
            written += len(documents) - batch_deleted
            unchanged += len(batch) - len(documents)
            conflicts += len(save_result.conflicts)

            progress = BatchProgress(
                migration=spec.name,
                batch_number=batch_number,
                range_start=range_start,
                range_end=cursor.processed_count,
                total=cursor.total,
                written=len(documents) - batch_deleted,
                deleted=batch_deleted,
                unchanged=len(batch) - len(documents),
                conflicts=len(save_result.conflicts),
            )
            logger.info(
                "%d..%d BULK UPDATE OK (%d written, %d deleted, %d unchanged)",
                progress.range_start,
                progress.range_end,
                progress.written,
                progress.deleted,
                progress.unchanged,
            )
            if self._progress_callback:
                self._progress_callback(progress)

            if not has_more:
                self._transition(RunnerState.DONE)
                break

        duration = time.monotonic() - start_time
        logger.info("%s/%s MIGRATION DONE", spec.name, view)
        logger.info(
            "Total of %d document(s) processed in %.3fs",
            cursor.processed_count,
            duration,
        )

        return MigrationResult(
            migration=spec.name,
            collection=collection,
            processed=cursor.processed_count,
            batches=batches,
            written=written,
            deleted=deleted,
            unchanged=unchanged,
            conflicts=conflicts,
            total=cursor.total,
            batch_size=cursor.page_size,
            duration_seconds=duration,
        )


__all__ = ["MigrationRunner", "UNIT_LOGGER_PREFIX"]
