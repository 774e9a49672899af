"""Tests for the D1/D3/D7 checkpoint calculator."""

from datetime import datetime, timedelta

import pytest

from guardian.config import AnalysisConfig
from guardian.models.proposal_models import Checkpoint, CheckpointState
from guardian.monitoring.checkpoints import (
    calculate_checkpoint,
    checkpoint_state,
    days_until_next_checkpoint,
    elapsed_days,
    get_all_passed_checkpoints,
    has_reached_checkpoint,
    next_due_checkpoint,
)
from tests.conftest import NOW


class TestCalculateCheckpoint:
    def test_four_days_after_execution(self):
        executed_at = NOW - timedelta(days=4)
        assert calculate_checkpoint(executed_at, NOW) == Checkpoint.D3
        assert Checkpoint.D7 not in get_all_passed_checkpoints(executed_at, NOW)
        assert days_until_next_checkpoint(executed_at, NOW) == 3

    def test_before_first_checkpoint(self):
        executed_at = NOW - timedelta(hours=12)
        assert calculate_checkpoint(executed_at, NOW) is None
        assert days_until_next_checkpoint(executed_at, NOW) == 1

    def test_after_last_checkpoint(self):
        executed_at = NOW - timedelta(days=9)
        assert calculate_checkpoint(executed_at, NOW) == Checkpoint.D7
        assert days_until_next_checkpoint(executed_at, NOW) is None

    def test_exact_boundary_counts(self):
        executed_at = NOW - timedelta(days=3)
        assert has_reached_checkpoint(executed_at, Checkpoint.D3, NOW)
        assert not has_reached_checkpoint(
            executed_at + timedelta(seconds=1), Checkpoint.D3, NOW
        )

    def test_future_execution_is_zero_days(self):
        assert elapsed_days(NOW + timedelta(days=2), NOW) == 0

    def test_iso_strings(self):
        assert elapsed_days("2024-02-26T12:00:00Z", "2024-03-01T12:00:00Z") == 4

    def test_naive_timestamps_are_utc(self):
        naive = datetime(2024, 2, 26, 12, 0)
        assert elapsed_days(naive, NOW) == 4

    def test_custom_checkpoint_days(self):
        config = AnalysisConfig(checkpoint_days=(2, 5, 14))
        executed_at = NOW - timedelta(days=4)
        assert calculate_checkpoint(executed_at, NOW, config) == Checkpoint.D1
        assert days_until_next_checkpoint(executed_at, NOW, config) == 1


class TestMonotonicity:
    def test_passed_set_only_grows(self):
        executed_at = NOW
        previous = set()
        for hours in range(0, 24 * 10, 5):
            passed = set(get_all_passed_checkpoints(executed_at, NOW + timedelta(hours=hours)))
            assert previous <= passed
            previous = passed
        assert previous == {Checkpoint.D1, Checkpoint.D3, Checkpoint.D7}


class TestNextDue:
    def test_backfills_missed_checkpoint(self):
        executed_at = NOW - timedelta(days=8)
        assert next_due_checkpoint(executed_at, NOW) == Checkpoint.D1
        assert next_due_checkpoint(executed_at, NOW, [Checkpoint.D1]) == Checkpoint.D3

    def test_nothing_due(self):
        executed_at = NOW - timedelta(days=4)
        recorded = [Checkpoint.D1, Checkpoint.D3]
        assert next_due_checkpoint(executed_at, NOW, recorded) is None


class TestCheckpointState:
    @pytest.mark.parametrize(
        "recorded, state",
        [
            ([], CheckpointState.AWAITING_D1),
            ([Checkpoint.D1], CheckpointState.AWAITING_D3),
            ([Checkpoint.D1, Checkpoint.D3], CheckpointState.AWAITING_D7),
            ([Checkpoint.D3], CheckpointState.AWAITING_D1),
            ([Checkpoint.D1, Checkpoint.D3, Checkpoint.D7], CheckpointState.COMPLETE),
        ],
    )
    def test_states(self, recorded, state):
        assert checkpoint_state(recorded) == state
