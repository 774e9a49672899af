"""Guardian - Trend Engine.

Compares the earliest and latest 3-day moving averages to classify the
overall direction, and splits the series into contiguous phases.
"""

from typing import List, Optional, Sequence

from guardian.config import AnalysisConfig
from guardian.models.metric_models import DailyMetric
from guardian.models.insight_models import (
    Basics,
    Phase,
    PhaseType,
    Trend,
    TrendDirection,
    Volatility,
    VolatilityLevel,
)
from guardian.analyzer.stats_engine import (
    coeff_var,
    format_money,
    latest_moving_average,
    moving_average_series,
    window_ratios,
)
from guardian.core.logging import get_logger

logger = get_logger("analyzer.trend")


def _change(before: float, after: float) -> float:
    """% change; zero baseline means no measurable change."""
    if before <= 0:
        return 0.0
    return (after - before) / before * 100


def analyze_trend(
    series: Sequence[DailyMetric],
    basics: Basics,
    volatility: Volatility,
    config: AnalysisConfig,
) -> Trend:
    """Overall direction from the first vs last short-window average."""
    ma_short = latest_moving_average(series, config.short_window, basics)
    ma_long = latest_moving_average(series, config.long_window, basics)
    points = moving_average_series(series, config.short_window)

    if len(points) < 2:
        direction = (
            TrendDirection.VOLATILE
            if volatility.level == VolatilityLevel.HIGH
            else TrendDirection.STABLE
        )
        return Trend(
            direction=direction,
            moving_avg_3_day=ma_short,
            moving_avg_7_day=ma_long,
            insight="Not enough days to read a trend.",
        )

    first, last = points[0], points[-1]
    cpp_change = _change(first.cpp, last.cpp)
    roas_change = _change(first.roas, last.roas)
    threshold = config.trend_change_threshold

    if volatility.level == VolatilityLevel.HIGH:
        direction = TrendDirection.VOLATILE
    elif roas_change > threshold and cpp_change < -threshold:
        direction = TrendDirection.IMPROVING
    elif roas_change < -threshold and cpp_change > threshold:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE

    if direction == TrendDirection.IMPROVING:
        insight = f"Improving: CPP {cpp_change:+.0f}% ({format_money(first.cpp)} → {format_money(last.cpp)}), ROAS {roas_change:+.0f}%."
    elif direction == TrendDirection.DECLINING:
        insight = f"Declining: CPP {cpp_change:+.0f}% ({format_money(first.cpp)} → {format_money(last.cpp)}), ROAS {roas_change:+.0f}%."
    elif direction == TrendDirection.VOLATILE:
        insight = "Volatile: CPP swings too much to call a direction. Collect more data."
    else:
        insight = f"Stable: CPP {cpp_change:+.0f}%, ROAS {roas_change:+.0f}% between the first and latest 3-day windows."

    logger.info(
        f"Trend: {direction.value} (cpp {cpp_change:+.1f}%, roas {roas_change:+.1f}%)"
    )
    return Trend(
        direction=direction,
        cpp_change=cpp_change,
        roas_change=roas_change,
        moving_avg_3_day=ma_short,
        moving_avg_7_day=ma_long,
        insight=insight,
    )


# ─────────────────────────────────────────────
# PHASE SEGMENTATION
# ─────────────────────────────────────────────


def _daily_labels(
    series: Sequence[DailyMetric], config: AnalysisConfig
) -> List[PhaseType]:
    """Direction of each day against the day before, on trailing averages."""
    window = config.short_window
    rolling = [
        window_ratios(series[max(0, i - window + 1) : i + 1])
        for i in range(len(series))
    ]
    threshold = config.phase_change_threshold

    labels: List[Optional[PhaseType]] = [None]
    for i in range(1, len(series)):
        prev_cpp, prev_roas = rolling[i - 1]
        cur_cpp, cur_roas = rolling[i]
        label = PhaseType.STABLE
        if prev_cpp > 0 and cur_cpp > 0:
            change = (cur_cpp - prev_cpp) / prev_cpp * 100
            if change > threshold:
                label = PhaseType.DECLINING
            elif change < -threshold:
                label = PhaseType.GROWTH
        elif prev_roas > 0:
            change = (cur_roas - prev_roas) / prev_roas * 100
            if change > threshold:
                label = PhaseType.GROWTH
            elif change < -threshold:
                label = PhaseType.DECLINING
        labels.append(label)

    labels[0] = labels[1] if len(labels) > 1 else PhaseType.STABLE
    return labels  # type: ignore[return-value]


def _build_phase(
    days: Sequence[DailyMetric], phase_type: PhaseType, config: AnalysisConfig
) -> Phase:
    cpp, roas = window_ratios(days)
    cpp_values = [d.cpp for d in days if d.purchases > 0]
    if len(days) >= 3 and len(cpp_values) >= 2:
        if coeff_var(cpp_values) > config.volatility_high_cv:
            phase_type = PhaseType.VOLATILE
    return Phase(
        start_date=days[0].date.isoformat(),
        end_date=days[-1].date.isoformat(),
        type=phase_type,
        avg_cpp=cpp,
        avg_roas=roas,
        days_count=len(days),
    )


def segment_phases(
    series: Sequence[DailyMetric], config: AnalysisConfig
) -> List[Phase]:
    """Split the series into contiguous phases of one trend regime.

    A new phase starts only when a changed direction holds for at least
    ``phase_min_run`` consecutive days; single-day blips stay inside the
    current phase.
    """
    if not series:
        return []

    labels = _daily_labels(series, config)
    bounds: List[tuple[int, int, PhaseType]] = []
    start, current = 0, labels[0]

    for i in range(1, len(series)):
        if labels[i] == current:
            continue
        run = 1
        while i + run < len(labels) and labels[i + run] == labels[i]:
            run += 1
        if run >= config.phase_min_run:
            bounds.append((start, i - 1, current))
            start, current = i, labels[i]
    bounds.append((start, len(series) - 1, current))

    phases = [
        _build_phase(series[s : e + 1], phase_type, config)
        for s, e, phase_type in bounds
    ]
    if any(d.learning for d in series):
        phases[0] = phases[0].model_copy(update={"type": PhaseType.LEARNING})

    logger.info(f"Segmented {len(series)} days into {len(phases)} phases")
    return phases
