"""
MigrationQueue - runs migration units one after another.

Each migration starts only after the previous one reached DONE or
FAILED. The first failure stops the queue: later migrations are
reported as skipped and never started.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from docmigrate.config import MigrationSettings
from docmigrate.exceptions import DocMigrateError
from docmigrate.migration.models import BatchProgress, MigrationResult, MigrationSpec
from docmigrate.migration.runner import MigrationRunner
from docmigrate.observability import ATTR_QUEUE_SIZE, Tracer, create_tracer
from docmigrate.stores.interface import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class QueueResult:
    """
    Outcome of a queue run.

    Attributes:
        completed: Results of migrations that reached DONE, in order.
        failed: Name of the migration that failed, if any.
        error: The error that stopped the queue, if any.
        skipped: Names of migrations never started because of the failure.
    """

    completed: list[MigrationResult] = field(default_factory=list)
    failed: str | None = None
    error: DocMigrateError | None = None
    skipped: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        """Process exit status: 0 on success, 1 on any failure."""
        return 0 if self.success else 1

    @property
    def processed(self) -> int:
        """Documents processed across completed migrations."""
        return sum(result.processed for result in self.completed)


class MigrationQueue:
    """
    Runs a sequence of migrations strictly in order.

    Example:
        >>> queue = MigrationQueue(specs, store, settings)
        >>> result = await queue.run()
        >>> sys.exit(result.exit_code)
    """

    def __init__(
        self,
        specs: Sequence[MigrationSpec],
        store: DocumentStore,
        settings: MigrationSettings | None = None,
        *,
        progress_callback: Callable[[BatchProgress], None] | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self._specs = list(specs)
        self._store = store
        self._settings = settings or MigrationSettings()
        self._progress_callback = progress_callback
        self._tracer = tracer or create_tracer(__name__, self._settings.enable_tracing)

    def __len__(self) -> int:
        return len(self._specs)

    async def run(self) -> QueueResult:
        """
        Run every migration, stopping at the first failure.

        Errors of the docmigrate hierarchy are captured in the result;
        anything else is a bug and propagates.

        Returns:
            QueueResult describing completed, failed and skipped migrations.
        """
        result = QueueResult()
        if not self._specs:
            logger.info("No migrations to run")
            return result

        with self._tracer.span(
            "docmigrate.queue.run",
            {ATTR_QUEUE_SIZE: len(self._specs)},
        ):
            for index, spec in enumerate(self._specs):
                runner = MigrationRunner(
                    spec,
                    self._store,
                    self._settings,
                    progress_callback=self._progress_callback,
                    tracer=self._tracer,
                )
                try:
                    result.completed.append(await runner.run())
                except DocMigrateError as e:
                    result.failed = spec.name
                    result.error = e
                    result.skipped = [s.name for s in self._specs[index + 1 :]]
                    if result.skipped:
                        logger.error(
                            "Stopping queue after '%s' failed; %d migration(s) not started: %s",
                            spec.name,
                            len(result.skipped),
                            ", ".join(result.skipped),
                        )
                    break

        logger.info(
            "%d of %d migration(s) completed, %d document(s) processed",
            len(result.completed),
            len(self._specs),
            result.processed,
        )
        return result


__all__ = ["MigrationQueue", "QueueResult"]
