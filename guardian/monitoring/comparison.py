"""Guardian - Before/After Metrics Comparison.

Percentage deltas between the snapshot taken before a proposal was executed
and one taken at a checkpoint, plus a fixed-policy classification:
- improved: ROAS up by at least the threshold and CPP not higher
- worsened: ROAS down by at least the threshold and CPP not lower
- neutral: everything else
"""

from datetime import datetime
from typing import Dict

from guardian.config import AnalysisConfig
from guardian.models.proposal_models import (
    Checkpoint,
    Classification,
    MetricsComparison,
    MetricsSnapshot,
    Observation,
    ProposalStatus,
)
from guardian.analyzer.stats_engine import pct_change
from guardian.core.metric_registry import is_lower_better

REQUIRED_METRICS = ("cpp", "roas", "spend")
OPTIONAL_METRICS = ("purchases", "ctr", "revenue")

CLOSING_STATUS = {
    Classification.IMPROVED: ProposalStatus.CLOSED_SUCCESS,
    Classification.WORSENED: ProposalStatus.CLOSED_FAIL,
    Classification.NEUTRAL: ProposalStatus.CLOSED_NEUTRAL,
}


def compute_deltas(before: MetricsSnapshot, after: MetricsSnapshot) -> Dict[str, float]:
    """% change per metric; optional metrics only when both sides have them."""
    deltas = {m: pct_change(getattr(before, m), getattr(after, m)) for m in REQUIRED_METRICS}
    for m in OPTIONAL_METRICS:
        b, a = getattr(before, m), getattr(after, m)
        if b is not None and a is not None:
            deltas[m] = pct_change(b, a)
    return deltas


def classify(deltas: Dict[str, float], config: AnalysisConfig | None = None) -> Classification:
    """Boundary values count: +10% ROAS with flat CPP is an improvement."""
    threshold = (config or AnalysisConfig()).roas_improvement_threshold
    roas, cpp = deltas["roas"], deltas["cpp"]
    if roas >= threshold and cpp <= 0:
        return Classification.IMPROVED
    if roas <= -threshold and cpp >= 0:
        return Classification.WORSENED
    return Classification.NEUTRAL


def compare_metrics(
    before: MetricsSnapshot,
    after: MetricsSnapshot,
    config: AnalysisConfig | None = None,
) -> MetricsComparison:
    """Compare two snapshots and classify the intervention."""
    if not isinstance(before, MetricsSnapshot) or not isinstance(after, MetricsSnapshot):
        raise TypeError("compare_metrics expects two MetricsSnapshot instances")
    deltas = compute_deltas(before, after)
    return MetricsComparison(
        before=before,
        after=after,
        deltas=deltas,
        classification=classify(deltas, config),
    )


def evaluate_change(metric: str, change: float) -> str:
    """Grade a single delta: 'excellent' | 'good' | 'neutral' | 'bad'."""
    effective = -change if is_lower_better(metric) else change
    if effective >= 20:
        return "excellent"
    if effective >= 10:
        return "good"
    if effective >= -5:
        return "neutral"
    return "bad"


def format_percent_change(change: float) -> str:
    return f"{change:+.1f}%"


def summarize_comparison(comparison: MetricsComparison) -> str:
    """One-line human summary of the notable deltas."""
    parts = []
    for metric in ("cpp", "roas", "spend", "purchases"):
        change = comparison.deltas.get(metric)
        if change is None or evaluate_change(metric, change) == "neutral":
            continue
        parts.append(f"{metric.upper()} {format_percent_change(change)}")
    if not parts:
        return "Metrics stable, no significant change"
    return f"{', '.join(parts)} ({comparison.classification.value})"


def build_observation(
    proposal_id: str,
    checkpoint: Checkpoint,
    comparison: MetricsComparison,
    observed_at: datetime,
) -> Observation:
    return Observation(
        proposal_id=proposal_id,
        checkpoint=checkpoint,
        observed_at=observed_at,
        metrics_snapshot=comparison.after,
        delta=comparison.deltas,
        classification=comparison.classification,
        summary=summarize_comparison(comparison),
    )


def closing_status(classification: Classification) -> ProposalStatus:
    """Final proposal status a caller applies after the D7 observation."""
    return CLOSING_STATUS[classification]
