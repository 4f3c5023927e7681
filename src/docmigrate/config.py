"""
Configuration for a migration run.

MigrationSettings holds the run-wide defaults that individual migration
units may override (batch size, target collection).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from docmigrate.exceptions import ConfigError

DEFAULT_BATCH_SIZE = 1000
DEFAULT_VIEW = "all"
DEFAULT_DATABASE = "docmigrate.db"


@dataclass(frozen=True)
class MigrationSettings:
    """
    Run-wide defaults for migrations.

    This class is immutable (frozen) so the defaults cannot drift while a
    queue of migrations is running.

    Attributes:
        default_batch_size: Documents per batch when a migration unit does
            not set its own (default 1000).
        default_collection: Target collection for migration units that do
            not name one (default None, meaning every unit must name one).
        view: Name of the view read inside each migration's design
            document (default "all").
        database: Database file used by the command line (default
            "docmigrate.db").
        enable_tracing: Whether components emit OpenTelemetry spans.

    Example:
        >>> settings = MigrationSettings(default_batch_size=500, default_collection="users")
        >>> settings.resolve_batch_size(None)
        500
    """

    default_batch_size: int = DEFAULT_BATCH_SIZE
    default_collection: str | None = None
    view: str = DEFAULT_VIEW
    database: str = DEFAULT_DATABASE
    enable_tracing: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.default_batch_size < 1:
            raise ConfigError(f"batch size must be >= 1, got {self.default_batch_size}")
        if self.default_collection is not None and not self.default_collection.strip():
            raise ConfigError("default collection must not be blank")
        if not self.view:
            raise ConfigError("view name must not be empty")

    def resolve_batch_size(self, batch_size: int | None) -> int:
        """
        Effective batch size: an explicit size overrides the default.

        Raises:
            ConfigError: If the explicit size is below 1
        """
        if batch_size is None:
            return self.default_batch_size
        if batch_size < 1:
            raise ConfigError(f"batch size must be >= 1, got {batch_size}")
        return batch_size

    def resolve_collection(self, collection: str | None, migration: str) -> str:
        """
        Target collection: the migration's own, else the default.

        Raises:
            ConfigError: If neither is set
        """
        target = collection or self.default_collection
        if not target:
            raise ConfigError(
                f"Migration '{migration}' has no target collection. Set 'collection' "
                "in the migration file or pass --db on the command line."
            )
        return target

    def with_overrides(self, **changes: Any) -> MigrationSettings:
        """Return a copy with the non-None values of ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = [
    "MigrationSettings",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_VIEW",
    "DEFAULT_DATABASE",
]
