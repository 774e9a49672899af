"""Guardian - Unified Metric Registry.

Defines the canonical daily metrics and their classifications. The
comparator reads ``higher_is_better`` to judge before/after deltas, and the
LLM context builder reads units and descriptions.
"""

from enum import Enum
from typing import Dict


class MetricType(str, Enum):
    """How a metric is categorised."""

    VOLUME = "volume"  # Raw counts: impressions, clicks, purchases
    COST = "cost"  # Monetary: spend
    REVENUE = "revenue"  # Income: purchase value
    RATE = "rate"  # Source-side rates: frequency
    DERIVED = "derived"  # Computed by the normalizer: cpp, roas, ctr


class MetricDefinition:
    """Describes a single metric."""

    def __init__(
        self,
        name: str,
        metric_type: MetricType,
        unit: str = "",
        description: str = "",
        higher_is_better: bool = True,
    ):
        self.name = name
        self.metric_type = metric_type
        self.unit = unit
        self.description = description
        self.higher_is_better = higher_is_better

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.metric_type.value})>"


# ─────────────────────────────────────────────
# DAILY METRICS - Canonical Registry
# ─────────────────────────────────────────────

DAILY_METRICS: Dict[str, MetricDefinition] = {
    "spend": MetricDefinition(
        "spend", MetricType.COST, "currency", "Amount spent", higher_is_better=False
    ),
    "impressions": MetricDefinition(
        "impressions", MetricType.VOLUME, "count", "Number of times ad was shown"
    ),
    "clicks": MetricDefinition("clicks", MetricType.VOLUME, "count", "Total clicks"),
    "purchases": MetricDefinition(
        "purchases", MetricType.VOLUME, "count", "Purchase conversions"
    ),
    "revenue": MetricDefinition(
        "revenue", MetricType.REVENUE, "currency", "Purchase conversion value"
    ),
    "frequency": MetricDefinition(
        "frequency",
        MetricType.RATE,
        "avg",
        "Average times ad shown per user",
        higher_is_better=False,
    ),
}


# ─────────────────────────────────────────────
# DERIVED METRICS - Computed by the normalizer
# ─────────────────────────────────────────────

DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "cpp": MetricDefinition(
        "cpp",
        MetricType.DERIVED,
        "currency",
        "Cost per purchase",
        higher_is_better=False,
    ),
    "roas": MetricDefinition("roas", MetricType.DERIVED, "ratio", "Return on ad spend"),
    "ctr": MetricDefinition("ctr", MetricType.DERIVED, "%", "Click-through rate"),
    "cpc": MetricDefinition(
        "cpc", MetricType.DERIVED, "currency", "Cost per click", higher_is_better=False
    ),
    "cpm": MetricDefinition(
        "cpm",
        MetricType.DERIVED,
        "currency",
        "Cost per 1000 impressions",
        higher_is_better=False,
    ),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

ALL_METRICS = {**DAILY_METRICS, **DERIVED_METRICS}


def get_metric(name: str) -> MetricDefinition | None:
    """Look up a metric by name."""
    return ALL_METRICS.get(name)


def is_lower_better(name: str) -> bool:
    """True for cost-like metrics where a decrease is an improvement."""
    metric = get_metric(name)
    return metric is not None and not metric.higher_is_better
