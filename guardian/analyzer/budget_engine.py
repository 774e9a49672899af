"""Guardian - Budget Impact Engine.

Relates daily spend to CPP:
- Optimal spend tier (lowest CPP among thirds by spend)
- Day-over-day budget spikes and their CPP impact
- Pearson correlation between spend and CPP
"""

import math
from typing import List, Optional, Sequence

from guardian.config import AnalysisConfig
from guardian.models.metric_models import DailyMetric
from guardian.models.insight_models import BudgetAnalysis, BudgetSpike, SpendRange
from guardian.analyzer.stats_engine import format_money, mean, window_ratios
from guardian.core.logging import get_logger

logger = get_logger("analyzer.budget")

MIN_TIER_DAYS = 5


def _optimal_range(days: Sequence[DailyMetric]) -> Optional[SpendRange]:
    if len(days) < MIN_TIER_DAYS:
        return None
    by_spend = sorted(days, key=lambda d: d.spend)
    third = math.ceil(len(by_spend) / 3)
    tiers = [by_spend[:third], by_spend[third : third * 2], by_spend[third * 2 :]]

    best: Optional[SpendRange] = None
    for tier in tiers:
        if not tier:
            continue
        cpp, _ = window_ratios(tier)
        if best is None or cpp < best.avg_cpp:
            best = SpendRange(min=tier[0].spend, max=tier[-1].spend, avg_cpp=cpp)
    return best


def _spikes(series: Sequence[DailyMetric], config: AnalysisConfig) -> List[BudgetSpike]:
    spikes: List[BudgetSpike] = []
    for prev, cur in zip(series, series[1:]):
        if prev.spend <= 0 or cur.spend <= 0:
            continue
        change = (cur.spend - prev.spend) / prev.spend * 100
        if change <= config.budget_spike_pct:
            continue
        impact = (cur.cpp - prev.cpp) / prev.cpp * 100 if prev.cpp > 0 else 0.0
        spikes.append(
            BudgetSpike(
                date=cur.date.isoformat(),
                spend=cur.spend,
                previous_spend=prev.spend,
                change_percent=change,
                cpp_impact=impact,
            )
        )
    return spikes


def _correlation(days: Sequence[DailyMetric], threshold: float) -> str:
    if len(days) < MIN_TIER_DAYS:
        return "none"
    spend = [d.spend for d in days]
    cpp = [d.cpp for d in days]
    mean_spend, mean_cpp = mean(spend), mean(cpp)
    num = sum((s - mean_spend) * (c - mean_cpp) for s, c in zip(spend, cpp))
    denom = math.sqrt(
        sum((s - mean_spend) ** 2 for s in spend) * sum((c - mean_cpp) ** 2 for c in cpp)
    )
    r = num / denom if denom > 0 else 0.0
    if r > threshold:
        return "positive"
    if r < -threshold:
        return "negative"
    return "none"


def analyze_budget_impact(
    series: Sequence[DailyMetric], config: AnalysisConfig
) -> BudgetAnalysis:
    """Budget/CPP relationship for a sorted daily series."""
    spends = [d.spend for d in series if d.spend > 0]
    if len(spends) < 3:
        return BudgetAnalysis(
            avg_daily_spend=mean(spends),
            min_daily_spend=min(spends, default=0.0),
            max_daily_spend=max(spends, default=0.0),
            insight="Not enough spending days to analyze budget impact.",
        )

    purchasing = [d for d in series if d.spend > 0 and d.purchases > 0]
    optimal = _optimal_range(purchasing)
    spikes = _spikes(series, config)
    correlation = _correlation(purchasing, config.spend_correlation_threshold)

    if correlation == "positive" and optimal:
        insight = f"Budget warning: more spend drives CPP up. Sweet spot {format_money(optimal.min)}-{format_money(optimal.max)}/day (CPP {format_money(optimal.avg_cpp)})."
    elif correlation == "positive":
        insight = "More spend drives CPP up. The campaign is budget-sensitive; scale slowly."
    elif optimal:
        insight = f"Best spend range {format_money(optimal.min)}-{format_money(optimal.max)}/day (CPP {format_money(optimal.avg_cpp)})."
    else:
        insight = "Not enough purchasing days to locate an optimal spend range."

    bad_spikes = [s for s in spikes if s.cpp_impact > config.budget_spike_cpp_impact]
    if bad_spikes:
        insight += f" {len(bad_spikes)} sudden budget increase(s) pushed CPP up."

    logger.info(
        f"Budget analysis: correlation={correlation}, {len(spikes)} spikes"
    )
    return BudgetAnalysis(
        avg_daily_spend=mean(spends),
        min_daily_spend=min(spends),
        max_daily_spend=max(spends),
        optimal_spend_range=optimal,
        spend_cpp_correlation=correlation,
        budget_spikes=spikes,
        insight=insight,
    )
