"""
Unit tests for migration data models and run settings.

Tests cover:
- RunnerState transitions
- MigrationSpec validation
- BatchProgress calculations
- MigrationSettings validation and resolution
"""

import pytest

from docmigrate.config import DEFAULT_BATCH_SIZE, DEFAULT_VIEW, MigrationSettings
from docmigrate.exceptions import ConfigError
from docmigrate.migration.models import BatchProgress, MigrationSpec, RunnerState


def noop(doc, log):
    return doc


class TestRunnerState:
    """Tests for the RunnerState state machine."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (RunnerState.INIT, RunnerState.FETCHING),
            (RunnerState.FETCHING, RunnerState.TRANSFORMING),
            (RunnerState.FETCHING, RunnerState.DONE),
            (RunnerState.TRANSFORMING, RunnerState.SAVING),
            (RunnerState.SAVING, RunnerState.ADVANCE),
            (RunnerState.ADVANCE, RunnerState.FETCHING),
            (RunnerState.ADVANCE, RunnerState.DONE),
        ],
    )
    def test_valid_transitions(self, current: RunnerState, target: RunnerState) -> None:
        """The loop moves forward through its states."""
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (RunnerState.INIT, RunnerState.SAVING),
            (RunnerState.FETCHING, RunnerState.SAVING),
            (RunnerState.TRANSFORMING, RunnerState.DONE),
            (RunnerState.SAVING, RunnerState.FETCHING),
            (RunnerState.DONE, RunnerState.FETCHING),
            (RunnerState.FAILED, RunnerState.FETCHING),
        ],
    )
    def test_invalid_transitions(self, current: RunnerState, target: RunnerState) -> None:
        """Steps cannot be skipped and terminal states are final."""
        assert not current.can_transition_to(target)

    @pytest.mark.parametrize(
        "state",
        [
            RunnerState.INIT,
            RunnerState.FETCHING,
            RunnerState.TRANSFORMING,
            RunnerState.SAVING,
            RunnerState.ADVANCE,
        ],
    )
    def test_any_active_state_can_fail(self, state: RunnerState) -> None:
        """Every non-terminal state may move to FAILED."""
        assert state.can_transition_to(RunnerState.FAILED)

    def test_terminal_states(self) -> None:
        """Only DONE and FAILED are terminal."""
        terminal = {state for state in RunnerState if state.is_terminal}
        assert terminal == {RunnerState.DONE, RunnerState.FAILED}

    def test_failed_cannot_fail_again(self) -> None:
        """A failed runner stays failed."""
        assert not RunnerState.FAILED.can_transition_to(RunnerState.FAILED)


class TestMigrationSpec:
    """Tests for MigrationSpec validation."""

    def test_defaults(self) -> None:
        """Optional settings default to None."""
        spec = MigrationSpec(name="add_email", transform=noop)
        assert spec.collection is None
        assert spec.batch_size is None
        assert spec.view is None
        assert spec.view_key is None
        assert spec.source is None

    def test_empty_name_rejected(self) -> None:
        """A unit needs a design document name."""
        with pytest.raises(ConfigError, match="name"):
            MigrationSpec(name="", transform=noop)

    def test_non_callable_transform_rejected(self) -> None:
        """The transform must be callable."""
        with pytest.raises(ConfigError, match="not callable"):
            MigrationSpec(name="x", transform="not a function")  # type: ignore[arg-type]

    def test_batch_size_below_one_rejected(self) -> None:
        """A unit's batch size must be positive."""
        with pytest.raises(ConfigError, match="batch_size"):
            MigrationSpec(name="x", transform=noop, batch_size=0)

    def test_spec_is_frozen(self) -> None:
        """Specs cannot change during a run."""
        spec = MigrationSpec(name="x", transform=noop)
        with pytest.raises(AttributeError):
            spec.name = "y"  # type: ignore[misc]


class TestBatchProgress:
    """Tests for BatchProgress."""

    def test_progress_percent(self) -> None:
        """Progress is the share of the total covered so far."""
        progress = BatchProgress(
            migration="x", batch_number=1, range_start=0, range_end=1000,
            total=2500, written=1000, deleted=0, unchanged=0,
        )
        assert progress.progress_percent == 40.0

    def test_progress_percent_unknown_total(self) -> None:
        """Without a total the percentage is zero."""
        progress = BatchProgress(
            migration="x", batch_number=1, range_start=0, range_end=10,
            total=None, written=10, deleted=0, unchanged=0,
        )
        assert progress.progress_percent == 0.0

    def test_progress_percent_capped(self) -> None:
        """Documents added during the run do not push progress above 100."""
        progress = BatchProgress(
            migration="x", batch_number=3, range_start=20, range_end=27,
            total=25, written=7, deleted=0, unchanged=0,
        )
        assert progress.progress_percent == 100.0


class TestMigrationSettings:
    """Tests for MigrationSettings."""

    def test_defaults(self) -> None:
        """Defaults match the command line defaults."""
        settings = MigrationSettings()
        assert settings.default_batch_size == DEFAULT_BATCH_SIZE == 1000
        assert settings.view == DEFAULT_VIEW == "all"
        assert settings.default_collection is None

    def test_invalid_batch_size(self) -> None:
        """A default batch size below one is rejected."""
        with pytest.raises(ConfigError):
            MigrationSettings(default_batch_size=0)

    def test_blank_collection(self) -> None:
        """A blank default collection is rejected."""
        with pytest.raises(ConfigError):
            MigrationSettings(default_collection="  ")

    def test_empty_view(self) -> None:
        """The view name cannot be empty."""
        with pytest.raises(ConfigError):
            MigrationSettings(view="")

    def test_resolve_batch_size(self) -> None:
        """An explicit batch size wins over the default."""
        settings = MigrationSettings(default_batch_size=500)
        assert settings.resolve_batch_size(None) == 500
        assert settings.resolve_batch_size(20) == 20

    def test_resolve_batch_size_rejects_zero(self) -> None:
        """An explicit batch size below one is rejected."""
        with pytest.raises(ConfigError):
            MigrationSettings().resolve_batch_size(0)

    def test_resolve_collection_prefers_unit(self) -> None:
        """The unit's own collection wins over the default."""
        settings = MigrationSettings(default_collection="fallback")
        assert settings.resolve_collection("users", "x") == "users"
        assert settings.resolve_collection(None, "x") == "fallback"

    def test_resolve_collection_missing(self) -> None:
        """Without any collection the error names the migration and the flag."""
        with pytest.raises(ConfigError, match="Migration 'x' has no target collection"):
            MigrationSettings().resolve_collection(None, "x")

    def test_with_overrides_ignores_none(self) -> None:
        """None values leave settings untouched."""
        settings = MigrationSettings().with_overrides(default_batch_size=50, default_collection=None)
        assert settings.default_batch_size == 50
        assert settings.default_collection is None

    def test_with_overrides_validates(self) -> None:
        """Overrides go through validation."""
        with pytest.raises(ConfigError):
            MigrationSettings().with_overrides(default_batch_size=-1)
