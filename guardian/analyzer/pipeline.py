"""Guardian - Analysis Pipeline Orchestrator.

Runs the full preprocessing flow for one campaign series:
  sort/dedupe → basics → peak/trough → day-of-week → volatility → fatigue
  → trend → phases → budget → warnings → prediction

Pure and deterministic: the same series always yields the same output, and
an empty series yields a degraded result instead of an exception.
"""

from collections.abc import Sequence
from typing import Dict, List

from guardian.config import AnalysisConfig
from guardian.models.metric_models import DailyMetric
from guardian.models.insight_models import DataStatus, PreprocessedInsights
from guardian.analyzer.stats_engine import (
    analyze_day_of_week,
    compute_basics,
    compute_volatility,
    find_peak_and_trough,
)
from guardian.analyzer.fatigue_engine import detect_creative_fatigue
from guardian.analyzer.trend_engine import analyze_trend, segment_phases
from guardian.analyzer.budget_engine import analyze_budget_impact
from guardian.analyzer.warning_engine import build_prediction, synthesize_warnings
from guardian.core.logging import get_logger

logger = get_logger("analyzer.pipeline")


def prepare_series(series: Sequence[DailyMetric]) -> List[DailyMetric]:
    """Sort ascending by date and keep one record per date (the last one)."""
    if isinstance(series, (str, bytes)) or not isinstance(series, Sequence):
        raise TypeError(
            f"series must be a sequence of DailyMetric, got {type(series).__name__}"
        )
    by_date: Dict = {}
    for item in series:
        if not isinstance(item, DailyMetric):
            raise TypeError(
                f"series items must be DailyMetric, got {type(item).__name__}"
            )
        by_date[item.date] = item

    if len(by_date) < len(series):
        logger.warning(
            f"Dropped {len(series) - len(by_date)} duplicate daily records"
        )
    return [by_date[d] for d in sorted(by_date)]


def empty_insights() -> PreprocessedInsights:
    """Degraded result for a series with no days."""
    return PreprocessedInsights(status=DataStatus.INSUFFICIENT_DATA)


def preprocess(
    series: Sequence[DailyMetric],
    config: AnalysisConfig | None = None,
) -> PreprocessedInsights:
    """Derive every diagnostic signal from one campaign's daily series."""
    config = config or AnalysisConfig()
    days = prepare_series(series)

    if not days:
        logger.info("Empty series, returning insufficient-data insights")
        return empty_insights()

    basics = compute_basics(days)
    peak_day, trough_day = find_peak_and_trough(days, basics)
    day_of_week = analyze_day_of_week(days, config)
    volatility = compute_volatility(days, config)
    fatigue = detect_creative_fatigue(days, config)
    trend = analyze_trend(days, basics, volatility, config)
    phases = segment_phases(days, config)
    budget = analyze_budget_impact(days, config)

    signals = synthesize_warnings(
        days, basics, day_of_week, fatigue, trend, volatility, budget, config
    )
    prediction = build_prediction(trend, fatigue, signals)

    logger.info(
        f"Preprocessed {basics.total_days} days: trend={trend.direction.value}, "
        f"fatigue={fatigue.status.value}, {len(signals)} warnings"
    )
    return PreprocessedInsights(
        status=DataStatus.OK,
        basics=basics,
        peak_day=peak_day,
        trough_day=trough_day,
        day_of_week_pattern=day_of_week,
        creative_fatigue=fatigue,
        trend=trend,
        phases=phases,
        volatility=volatility,
        budget_analysis=budget,
        warning_signals=signals,
        prediction=prediction,
    )
