"""Guardian - Meta Raw → DailyMetric Transformer.

Converts raw Meta insight rows (stringified numbers, ``actions`` lists) into
canonical ``DailyMetric`` records. Numeric faults never propagate: every
field goes through ``parse_number`` and falls back to zero.
"""

import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from guardian.config import ActionPolicy, AnalysisConfig
from guardian.models.metric_models import DailyMetric, ParsedNumber
from guardian.core.logging import get_logger

logger = get_logger("meta.transformer")


def parse_number(value: Any) -> ParsedNumber:
    """Parse an upstream numeric value; never raises.

    Missing, unparseable, NaN and infinite inputs come back as
    ``ParsedNumber(0.0, ok=False)``.
    """
    if value is None or isinstance(value, bool):
        return ParsedNumber(0.0, False)
    try:
        number = float(str(value).strip().replace(",", ""))
    except (TypeError, ValueError):
        return ParsedNumber(0.0, False)
    if math.isnan(number) or math.isinf(number):
        return ParsedNumber(0.0, False)
    return ParsedNumber(number, True)


def _non_negative(value: Any, field: str) -> float:
    parsed = parse_number(value)
    if not parsed.ok and value not in (None, ""):
        logger.debug(f"Unparseable {field}={value!r}, defaulting to 0")
    return max(parsed.value, 0.0)


def _parse_date(raw: Mapping[str, Any]) -> date:
    value = raw.get("date_start") or raw.get("date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValueError(f"Insight row has no valid date: {value!r}") from None


def extract_action_total(
    entries: Optional[Iterable[Mapping[str, Any]]],
    action_types: Iterable[str],
    policy: ActionPolicy = ActionPolicy.SUM,
) -> float:
    """Total of the configured action types in an ``actions``-style list.

    Each action type contributes at most once (first occurrence wins), so a
    repeated entry for the same type is not double counted.
    """
    wanted = list(action_types)
    seen: Dict[str, float] = {}
    for entry in entries or []:
        if not isinstance(entry, Mapping):
            continue
        action_type = entry.get("action_type", "")
        if action_type in wanted and action_type not in seen:
            seen[action_type] = max(parse_number(entry.get("value")).value, 0.0)

    if policy == ActionPolicy.PRECEDENCE:
        for action_type in wanted:
            if action_type in seen:
                return seen[action_type]
        return 0.0
    return sum(seen.values())


def normalize_daily_record(
    raw: Mapping[str, Any],
    config: AnalysisConfig | None = None,
) -> DailyMetric:
    """Convert one raw daily insight row into a ``DailyMetric``.

    Graph insights rows carry no learning state. Callers that know a day
    ran in the learning phase (e.g. from the ad set's ``learning_stage_info``)
    set ``is_learning`` on the row before normalizing; otherwise the day is
    treated as out of learning and no ``learning`` phase is tagged.
    """
    if not isinstance(raw, Mapping):
        raise TypeError(f"Insight row must be a mapping, got {type(raw).__name__}")
    config = config or AnalysisConfig()

    frequency_parsed = parse_number(raw.get("frequency"))
    frequency = max(frequency_parsed.value, 0.0) if frequency_parsed.ok else None

    purchases = extract_action_total(
        raw.get("actions"), config.purchase_action_types, config.action_policy
    )
    revenue = extract_action_total(
        raw.get("action_values"), config.purchase_action_types, config.action_policy
    )

    return DailyMetric.from_totals(
        date=_parse_date(raw),
        spend=_non_negative(raw.get("spend"), "spend"),
        impressions=int(_non_negative(raw.get("impressions"), "impressions")),
        clicks=int(_non_negative(raw.get("clicks"), "clicks")),
        purchases=int(purchases),
        revenue=revenue,
        frequency=frequency,
        learning=str(raw.get("is_learning", "")).lower() in ("true", "1"),
    )


def normalize_daily_records(
    raw_rows: Iterable[Mapping[str, Any]],
    config: AnalysisConfig | None = None,
) -> List[DailyMetric]:
    """Normalize a batch of rows, skipping rows without a usable date."""
    metrics: List[DailyMetric] = []
    skipped = 0
    for row in raw_rows:
        try:
            metrics.append(normalize_daily_record(row, config))
        except ValueError as e:
            skipped += 1
            logger.warning(f"Skipping insight row: {e}")
    logger.info(f"Normalized {len(metrics)} daily rows ({skipped} skipped)")
    return metrics
