"""Guardian - Statistical Aggregator.

Totals, peak/trough days, day-of-week averages, moving averages and
volatility over a chronologically sorted daily series.
"""

import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from guardian.config import AnalysisConfig
from guardian.models.metric_models import DailyMetric
from guardian.models.insight_models import (
    Basics,
    DayOfWeekPattern,
    ExtremeDay,
    MovingAverage,
    MovingAveragePoint,
    Volatility,
    VolatilityLevel,
    WeekdayAverage,
)
from guardian.core.logging import get_logger

logger = get_logger("analyzer.stats")

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
WEEKEND_DAYS = {"Fri", "Sat", "Sun"}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if not values:
        return 0.0
    m = mean(values)
    return math.sqrt(sum((v - m) ** 2 for v in values) / len(values))


def coeff_var(values: Sequence[float]) -> float:
    m = mean(values)
    return std_dev(values) / m if m > 0 else 0.0


def pct_change(before: float, after: float) -> float:
    """Percentage change; a zero baseline reads as +100% (or 0 if flat)."""
    if before == 0:
        return 100.0 if after > 0 else 0.0
    return (after - before) / before * 100


def window_ratios(days: Sequence[DailyMetric]) -> Tuple[float, float]:
    """(cpp, roas) from the window's totals."""
    spend = sum(d.spend for d in days)
    purchases = sum(d.purchases for d in days)
    revenue = sum(d.revenue for d in days)
    cpp = spend / purchases if purchases > 0 else 0.0
    roas = revenue / spend if spend > 0 else 0.0
    return cpp, roas


def weekday(day: DailyMetric) -> str:
    return WEEKDAY_NAMES[day.date.weekday()]


def format_money(amount: float) -> str:
    return f"{amount:,.0f}"


# ─────────────────────────────────────────────
# BASICS
# ─────────────────────────────────────────────


def compute_basics(series: Sequence[DailyMetric]) -> Basics:
    """Totals and ratio-of-totals averages."""
    total_spend = sum(d.spend for d in series)
    total_purchases = sum(d.purchases for d in series)
    total_revenue = sum(d.revenue for d in series)
    total_clicks = sum(d.clicks for d in series)
    total_impressions = sum(d.impressions for d in series)

    return Basics(
        total_days=len(series),
        total_spend=total_spend,
        total_purchases=total_purchases,
        total_revenue=total_revenue,
        avg_cpp=total_spend / total_purchases if total_purchases > 0 else 0.0,
        avg_roas=total_revenue / total_spend if total_spend > 0 else 0.0,
        avg_ctr=(
            total_clicks / total_impressions * 100 if total_impressions > 0 else 0.0
        ),
    )


# ─────────────────────────────────────────────
# PEAK / TROUGH
# ─────────────────────────────────────────────


def _relative(value: float, average: float) -> str:
    if average <= 0:
        return "n/a"
    return f"{(value / average - 1) * 100:+.0f}%"


def _extreme_day(day: DailyMetric, label: str, basics: Basics) -> ExtremeDay:
    reason = (
        f"{label} CPP {format_money(day.cpp)} ({_relative(day.cpp, basics.avg_cpp)} vs "
        f"average {format_money(basics.avg_cpp)}), ROAS {day.roas:.2f}x vs average "
        f"{basics.avg_roas:.2f}x, {day.purchases} purchases"
    )
    return ExtremeDay(
        date=day.date.isoformat(),
        day_of_week=weekday(day),
        cpp=day.cpp,
        roas=day.roas,
        purchases=day.purchases,
        reason=reason,
    )


def find_peak_and_trough(
    series: Sequence[DailyMetric], basics: Basics
) -> Tuple[Optional[ExtremeDay], Optional[ExtremeDay]]:
    """Cheapest and most expensive purchase days.

    Days without purchases have no meaningful CPP and are not candidates.
    ``min``/``max`` keep the first of equal keys, so on a sorted series ties
    resolve to the earliest date.
    """
    candidates = [d for d in series if d.purchases > 0]
    if not candidates:
        return None, None

    peak = min(candidates, key=lambda d: d.cpp)
    trough = max(candidates, key=lambda d: d.cpp)
    return (
        _extreme_day(peak, "Lowest", basics),
        _extreme_day(trough, "Highest", basics),
    )


# ─────────────────────────────────────────────
# DAY OF WEEK
# ─────────────────────────────────────────────


def analyze_day_of_week(
    series: Sequence[DailyMetric], config: AnalysisConfig
) -> DayOfWeekPattern:
    """Per-weekday averages and best/worst tertiles by CPP."""
    by_day: Dict[str, List[DailyMetric]] = defaultdict(list)
    for d in series:
        by_day[weekday(d)].append(d)

    avg_by_day: Dict[str, WeekdayAverage] = {}
    for name in WEEKDAY_NAMES:
        days = by_day.get(name)
        if not days:
            continue
        cpp, roas = window_ratios(days)
        avg_by_day[name] = WeekdayAverage(
            cpp=cpp,
            roas=roas,
            purchases=sum(d.purchases for d in days) / len(days),
        )

    candidates = [(n, v) for n, v in avg_by_day.items() if v.purchases > 0]
    cpp_values = [v.cpp for _, v in candidates]
    cv = coeff_var(cpp_values) if len(candidates) >= 2 else 0.0
    has_clear_pattern = len(candidates) >= 2 and cv > config.dow_cv_threshold

    best_days: List[str] = []
    worst_days: List[str] = []
    if has_clear_pattern:
        order = {name: i for i, name in enumerate(WEEKDAY_NAMES)}
        ranked = sorted(candidates, key=lambda item: (item[1].cpp, order[item[0]]))
        k = math.ceil(len(ranked) / 3)
        best_days = [n for n, _ in ranked[:k]]
        worst = sorted(
            candidates, key=lambda item: (-item[1].cpp, order[item[0]])
        )[:k]
        worst_days = [n for n, _ in worst]

    return DayOfWeekPattern(
        best_days=best_days,
        worst_days=worst_days,
        avg_by_day=avg_by_day,
        has_clear_pattern=has_clear_pattern,
        cpp_coeff_var=cv,
        insight=_day_of_week_insight(has_clear_pattern, best_days, worst_days),
    )


def _day_of_week_insight(
    has_clear_pattern: bool, best_days: List[str], worst_days: List[str]
) -> str:
    if not has_clear_pattern:
        return "No clear day-of-week pattern."
    if all(d in WEEKEND_DAYS for d in best_days):
        return (
            f"Weekend-driven pattern: {', '.join(best_days)} deliver the cheapest "
            f"purchases; weakest on {', '.join(worst_days)}."
        )
    return f"Best days: {', '.join(best_days)}. Weakest days: {', '.join(worst_days)}."


# ─────────────────────────────────────────────
# MOVING AVERAGES
# ─────────────────────────────────────────────


def moving_average_series(
    series: Sequence[DailyMetric], window: int
) -> List[MovingAveragePoint]:
    """Every trailing window of ``window`` days, oldest first."""
    points: List[MovingAveragePoint] = []
    for end in range(window, len(series) + 1):
        cpp, roas = window_ratios(series[end - window : end])
        points.append(
            MovingAveragePoint(
                end_date=series[end - 1].date.isoformat(), cpp=cpp, roas=roas
            )
        )
    return points


def latest_moving_average(
    series: Sequence[DailyMetric], window: int, basics: Basics
) -> MovingAverage:
    """Latest trailing window, or the full-series average when too short."""
    if len(series) < window:
        return MovingAverage(
            cpp=basics.avg_cpp, roas=basics.avg_roas, window=window, degraded=True
        )
    cpp, roas = window_ratios(series[-window:])
    return MovingAverage(cpp=cpp, roas=roas, window=window)


# ─────────────────────────────────────────────
# VOLATILITY
# ─────────────────────────────────────────────


def compute_volatility(
    series: Sequence[DailyMetric], config: AnalysisConfig
) -> Volatility:
    """Spread of daily CPP across purchasing days."""
    cpp_values = [d.cpp for d in series if d.purchases > 0]
    if len(cpp_values) < 2:
        return Volatility(insight="Not enough purchasing days to measure volatility.")

    sd = std_dev(cpp_values)
    cv = coeff_var(cpp_values)

    if cv > config.volatility_high_cv:
        level = VolatilityLevel.HIGH
        insight = f"High volatility: CPP swings ±{format_money(sd)}. Hard to predict; wait for it to settle."
    elif cv > config.volatility_medium_cv:
        level = VolatilityLevel.MEDIUM
        insight = f"Moderate volatility: CPP moves ±{format_money(sd)} but stays manageable."
    else:
        level = VolatilityLevel.LOW
        insight = f"Stable: CPP varies ±{format_money(sd)}. Predictable enough to scale."

    return Volatility(level=level, cpp_std_dev=sd, cpp_coeff_var=cv, insight=insight)
