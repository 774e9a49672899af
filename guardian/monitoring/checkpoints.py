"""Guardian - Checkpoint Calculator.

Observation checkpoints after a proposal is executed:
- D1: 1 day after execution
- D3: 3 days after execution
- D7: 7 days after execution (final)

Every function is a pure function of ``(executed_at, now)`` plus, where
noted, the checkpoints already recorded.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from guardian.config import AnalysisConfig
from guardian.models.proposal_models import Checkpoint, CheckpointState

CHECKPOINT_ORDER = [Checkpoint.D1, Checkpoint.D3, Checkpoint.D7]

AWAITING = {
    Checkpoint.D1: CheckpointState.AWAITING_D1,
    Checkpoint.D3: CheckpointState.AWAITING_D3,
    Checkpoint.D7: CheckpointState.AWAITING_D7,
}

Timestamp = Union[datetime, str]


def to_datetime(value: Timestamp) -> datetime:
    """Coerce to an aware datetime; naive values are taken as UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise TypeError(f"Expected datetime or ISO string, got {type(value).__name__}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _thresholds(config: AnalysisConfig | None) -> dict[Checkpoint, int]:
    days = (config or AnalysisConfig()).checkpoint_days
    return dict(zip(CHECKPOINT_ORDER, days))


def elapsed_days(executed_at: Timestamp, now: Timestamp) -> int:
    """Whole days since execution, never negative."""
    delta = to_datetime(now) - to_datetime(executed_at)
    return max(0, int(delta.total_seconds() // 86400))


def get_all_passed_checkpoints(
    executed_at: Timestamp,
    now: Timestamp,
    config: AnalysisConfig | None = None,
) -> List[Checkpoint]:
    """Checkpoints whose elapsed-day threshold has passed, in order.

    Purely time-based: recorded observations are not consulted, so callers
    can detect and backfill missed checkpoints.
    """
    days = elapsed_days(executed_at, now)
    return [cp for cp, n in _thresholds(config).items() if days >= n]


def calculate_checkpoint(
    executed_at: Timestamp,
    now: Timestamp,
    config: AnalysisConfig | None = None,
) -> Optional[Checkpoint]:
    """Most recently passed checkpoint, or None before D1."""
    passed = get_all_passed_checkpoints(executed_at, now, config)
    return passed[-1] if passed else None


def has_reached_checkpoint(
    executed_at: Timestamp,
    checkpoint: Checkpoint,
    now: Timestamp,
    config: AnalysisConfig | None = None,
) -> bool:
    return elapsed_days(executed_at, now) >= _thresholds(config)[checkpoint]


def days_until_next_checkpoint(
    executed_at: Timestamp,
    now: Timestamp,
    config: AnalysisConfig | None = None,
) -> Optional[int]:
    """Days until the next checkpoint that has not passed; None after D7."""
    days = elapsed_days(executed_at, now)
    for n in _thresholds(config).values():
        if days < n:
            return n - days
    return None


def next_due_checkpoint(
    executed_at: Timestamp,
    now: Timestamp,
    recorded: Iterable[Checkpoint] = (),
    config: AnalysisConfig | None = None,
) -> Optional[Checkpoint]:
    """Earliest passed checkpoint without a recorded observation."""
    done = set(recorded)
    for cp in get_all_passed_checkpoints(executed_at, now, config):
        if cp not in done:
            return cp
    return None


def checkpoint_state(recorded: Iterable[Checkpoint] = ()) -> CheckpointState:
    """Position in AWAITING_D1 → AWAITING_D3 → AWAITING_D7 → COMPLETE.

    The state waits on the earliest checkpoint without an observation, so a
    missed D1 keeps the proposal in AWAITING_D1 until it is backfilled.
    Whether that checkpoint is due yet is ``next_due_checkpoint``'s call.
    """
    done = set(recorded)
    for cp in CHECKPOINT_ORDER:
        if cp not in done:
            return AWAITING[cp]
    return CheckpointState.COMPLETE
