"""Guardian - Monitoring Check.

For every executed proposal still inside its monitoring window:
  next due checkpoint → fetch current metrics → compare with the
  pre-execution snapshot → record observation → close after D7

One failing proposal is logged and reported; it never aborts the batch.
"""

from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional, Sequence

from pydantic import BaseModel

from guardian.config import AnalysisConfig
from guardian.models.metric_models import DailyMetric
from guardian.models.proposal_models import (
    Checkpoint,
    MetricsSnapshot,
    Proposal,
    ProposalStatus,
)
from guardian.monitoring.checkpoints import next_due_checkpoint, to_datetime
from guardian.monitoring.comparison import (
    build_observation,
    closing_status,
    compare_metrics,
)
from guardian.monitoring.store import ProposalStore
from guardian.analyzer.stats_engine import compute_basics
from guardian.core.logging import get_logger

logger = get_logger("monitoring.job")

MetricsFetcher = Callable[[Proposal], Awaitable[Optional[MetricsSnapshot]]]

ACTIVE_STATUSES = (ProposalStatus.EXECUTED, ProposalStatus.MONITORING)


class MonitoringResult(BaseModel):
    processed: int = 0
    observations_created: int = 0
    closed: int = 0
    errors: List[str] = []


def snapshot_from_days(days: Sequence[DailyMetric]) -> Optional[MetricsSnapshot]:
    """Aggregate a window of days into one snapshot; None for no data."""
    if not days:
        return None
    basics = compute_basics(days)
    return MetricsSnapshot(
        cpp=basics.avg_cpp,
        roas=basics.avg_roas,
        spend=basics.total_spend,
        purchases=basics.total_purchases,
        ctr=basics.avg_ctr,
        revenue=basics.total_revenue,
    )


def _monitoring_expired(
    proposal: Proposal, now: datetime, config: AnalysisConfig
) -> bool:
    until = proposal.monitoring_until or (
        proposal.executed_at + timedelta(days=config.monitoring_window_days)
    )
    return to_datetime(now) > to_datetime(until)


async def check_proposal(
    proposal: Proposal,
    store: ProposalStore,
    fetch_metrics: MetricsFetcher,
    now: datetime,
    config: AnalysisConfig,
    result: MonitoringResult,
) -> None:
    """Record the next due observation for one proposal, if any."""
    if proposal.executed_at is None:
        logger.warning(f"Proposal {proposal.id} has no execution time, skipping")
        return
    if _monitoring_expired(proposal, now, config):
        logger.info(f"Monitoring window over for {proposal.id}, skipping")
        return

    observations = await store.list_observations(proposal.id)
    checkpoint = next_due_checkpoint(
        proposal.executed_at, now, [o.checkpoint for o in observations], config
    )
    if checkpoint is None:
        return

    after = await fetch_metrics(proposal)
    if after is None:
        result.errors.append(f"{proposal.id}: no metrics for {checkpoint.value}")
        logger.warning(f"No metrics for {proposal.id} at {checkpoint.value}")
        return

    comparison = compare_metrics(proposal.metrics_before, after, config)
    observation = build_observation(proposal.id, checkpoint, comparison, now)
    await store.record_observation(observation)
    result.observations_created += 1
    logger.info(
        f"{proposal.id} {checkpoint.value}: {observation.summary}",
        extra={"proposal_id": proposal.id, "checkpoint": checkpoint.value},
    )

    if checkpoint == Checkpoint.D7:
        status = closing_status(comparison.classification)
        await store.update_status(proposal.id, status)
        result.closed += 1
        logger.info(f"Closed {proposal.id} as {status.value}")
    elif proposal.status == ProposalStatus.EXECUTED:
        await store.update_status(proposal.id, ProposalStatus.MONITORING)


async def run_monitoring_check(
    store: ProposalStore,
    fetch_metrics: MetricsFetcher,
    now: datetime,
    config: AnalysisConfig | None = None,
) -> MonitoringResult:
    """Process every active proposal once."""
    config = config or AnalysisConfig()
    result = MonitoringResult()
    proposals = await store.list_proposals(ACTIVE_STATUSES)
    logger.info(f"Monitoring check: {len(proposals)} active proposals")

    for proposal in proposals:
        result.processed += 1
        try:
            await check_proposal(proposal, store, fetch_metrics, now, config, result)
        except Exception as e:
            logger.error(f"Monitoring failed for {proposal.id}: {e}")
            result.errors.append(f"{proposal.id}: {e}")

    logger.info(
        f"Monitoring check done: {result.observations_created} observations, "
        f"{result.closed} closed, {len(result.errors)} errors"
    )
    return result
