"""Guardian - LLM Context Builder.

Packs the preprocessed insights, the most recent daily rows and the metric
units into one JSON-ready dict, and measures it before it is sent.
"""

import json
import math
from typing import Any, Dict, Mapping, Sequence

from guardian.config import AnalysisConfig
from guardian.analyzer.pipeline import prepare_series
from guardian.models.insight_models import PreprocessedInsights
from guardian.models.metric_models import DailyMetric
from guardian.core.metric_registry import ALL_METRICS
from guardian.core.logging import get_logger

logger = get_logger("ai.context")

CHARS_PER_TOKEN = 4
DAILY_FIELDS = ("spend", "purchases", "revenue", "cpp", "roas", "ctr", "frequency")


def _daily_row(day: DailyMetric) -> Dict[str, Any]:
    row: Dict[str, Any] = {"date": day.date.isoformat()}
    for field in DAILY_FIELDS:
        value = getattr(day, field)
        row[field] = round(value, 4) if value is not None else None
    if day.learning:
        row["learning"] = True
    return row


def build_analysis_context(
    campaign: Mapping[str, Any],
    insights: PreprocessedInsights,
    series: Sequence[DailyMetric],
    config: AnalysisConfig | None = None,
    currency: str = "VND",
) -> Dict[str, Any]:
    """Structured context for the LLM analysis service.

    Only the latest ``max_context_days`` rows are included; ``dailyTruncated``
    tells the model when older days were dropped.
    """
    config = config or AnalysisConfig()
    ordered = prepare_series(series)
    recent = ordered[-config.max_context_days:] if config.max_context_days > 0 else []

    context = {
        "campaign": {
            "id": str(campaign.get("id", "")),
            "name": str(campaign.get("name", "")),
        },
        "currency": currency,
        "insights": insights.model_dump(by_alias=True, mode="json"),
        "daily": [_daily_row(d) for d in recent],
        "dailyTruncated": len(recent) < len(ordered),
        "metrics": {
            name: {
                "unit": m.unit,
                "description": m.description,
                "higherIsBetter": m.higher_is_better,
            }
            for name, m in ALL_METRICS.items()
        },
    }
    if context["dailyTruncated"]:
        logger.info(
            f"Context truncated to {len(recent)} of {len(ordered)} days",
            extra={"campaign_id": context["campaign"]["id"]},
        )
    return context


def measure_context(context: Mapping[str, Any]) -> Dict[str, int]:
    """Serialized size and a rough token estimate."""
    chars = len(json.dumps(context, ensure_ascii=False))
    return {
        "chars": chars,
        "approx_tokens": math.ceil(chars / CHARS_PER_TOKEN),
        "daily_rows": len(context.get("daily", [])),
    }
