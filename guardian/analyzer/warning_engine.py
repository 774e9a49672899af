"""Guardian - Warning Signal Synthesizer.

Deterministic rules over aggregator and detector outputs. Rules are evaluated
in a fixed priority order; the result is sorted by severity with ties kept in
rule order. No AI call happens here.
"""

from typing import List, Sequence

from guardian.config import AnalysisConfig
from guardian.models.metric_models import DailyMetric
from guardian.models.insight_models import (
    SEVERITY_RANK,
    Basics,
    BudgetAnalysis,
    CreativeFatigue,
    DayOfWeekPattern,
    FatigueStatus,
    Prediction,
    Severity,
    Trend,
    TrendDirection,
    Volatility,
    VolatilityLevel,
    WarningSignal,
)
from guardian.analyzer.stats_engine import format_money
from guardian.core.logging import get_logger

logger = get_logger("analyzer.warnings")


def synthesize_warnings(
    series: Sequence[DailyMetric],
    basics: Basics,
    day_of_week: DayOfWeekPattern,
    fatigue: CreativeFatigue,
    trend: Trend,
    volatility: Volatility,
    budget: BudgetAnalysis,
    config: AnalysisConfig,
) -> List[WarningSignal]:
    """Evaluate every rule and return signals, most severe first."""
    signals: List[WarningSignal] = []

    # 1. Creative fatigue
    if fatigue.status == FatigueStatus.CRITICAL:
        signals.append(
            WarningSignal(
                type="creative_exhausted",
                severity=Severity.CRITICAL,
                evidence=fatigue.diagnosis,
                recommendation=fatigue.recommendation,
            )
        )
    elif fatigue.status == FatigueStatus.FATIGUED:
        signals.append(
            WarningSignal(
                type="creative_fatigue",
                severity=Severity.HIGH,
                evidence=fatigue.diagnosis,
                recommendation=fatigue.recommendation,
            )
        )

    # 2. Declining trend
    if trend.direction == TrendDirection.DECLINING:
        signals.append(
            WarningSignal(
                type="declining_trend",
                severity=Severity.HIGH,
                evidence=trend.insight,
                recommendation="Do not scale. Find the cause first: creative, audience or bid.",
            )
        )

    # 3. High volatility
    if volatility.level == VolatilityLevel.HIGH:
        signals.append(
            WarningSignal(
                type="high_volatility",
                severity=Severity.MEDIUM,
                evidence=volatility.insight,
                recommendation="Wait for CPP to settle before scaling or cutting.",
            )
        )

    # 4. Unclear seasonality
    if basics.total_days >= config.seasonality_min_days and not day_of_week.has_clear_pattern:
        signals.append(
            WarningSignal(
                type="unclear_seasonality",
                severity=Severity.LOW,
                evidence=f"Weekday CPP spread (cv {day_of_week.cpp_coeff_var:.2f}) is within noise.",
                recommendation="Do not schedule budget by weekday yet.",
            )
        )

    # 5. ROAS below break-even
    if basics.total_spend > 0 and basics.avg_roas < config.break_even_roas:
        critical = basics.avg_roas < config.critical_roas
        signals.append(
            WarningSignal(
                type="low_roas",
                severity=Severity.CRITICAL if critical else Severity.HIGH,
                evidence=f"ROAS {basics.avg_roas:.2f}x < {config.break_even_roas:.1f}x break-even.",
                recommendation=(
                    "Pause or cut budget by 50% now."
                    if critical
                    else "Watch closely and be ready to pause if it keeps falling."
                ),
            )
        )

    # 6. Spend without conversions
    recent = series[-2:]
    recent_spend = sum(d.spend for d in recent)
    if recent_spend > 0 and sum(d.purchases for d in recent) == 0:
        signals.append(
            WarningSignal(
                type="no_conversions",
                severity=Severity.CRITICAL,
                evidence=f"0 purchases over the last {len(recent)} days despite {format_money(recent_spend)} spend.",
                recommendation="Stop now. Check pixel, landing page and audience.",
            )
        )

    # 7. Budget spike
    if budget.budget_spikes:
        spike = budget.budget_spikes[-1]
        if spike.cpp_impact > config.budget_spike_cpp_impact:
            signals.append(
                WarningSignal(
                    type="budget_spike",
                    severity=Severity.HIGH if spike.cpp_impact > 50 else Severity.MEDIUM,
                    evidence=f"{spike.date}: budget +{spike.change_percent:.0f}% ({format_money(spike.previous_spend)} → {format_money(spike.spend)}) pushed CPP +{spike.cpp_impact:.0f}%.",
                    recommendation=(
                        f"Return to {format_money(budget.optimal_spend_range.min)}-{format_money(budget.optimal_spend_range.max)}/day."
                        if budget.optimal_spend_range
                        else "Return the budget to its pre-spike level."
                    ),
                )
            )

    # sorted() is stable: equal severities keep rule order
    signals = sorted(signals, key=lambda s: -SEVERITY_RANK[s.severity])
    logger.info(f"Synthesized {len(signals)} warning signals")
    return signals


def build_prediction(
    trend: Trend, fatigue: CreativeFatigue, signals: Sequence[WarningSignal]
) -> Prediction:
    """Two narrative outlooks: doing nothing vs acting on the signals."""
    if any(s.severity == Severity.CRITICAL for s in signals):
        return Prediction(
            no_action="Money keeps burning. CPP may rise another 20-50% over the next 3 days.",
            with_action="Pausing or cutting budget stops the loss now; then rebuild creative/audience.",
        )
    if trend.direction == TrendDirection.DECLINING:
        return Prediction(
            no_action=f"CPP likely keeps rising by about {min(trend.cpp_change * 0.5, 30):.0f}% without intervention.",
            with_action="Refreshing the creative or trimming budget 20-30% should stabilise CPP.",
        )
    if fatigue.status == FatigueStatus.FATIGUED:
        return Prediction(
            no_action="CTR keeps sliding and CPP creeps up over the next 5-7 days.",
            with_action="A new creative resets CTR and holds CPP.",
        )
    if trend.direction == TrendDirection.IMPROVING:
        return Prediction(
            no_action="Campaign is doing well. Hold or scale gently by 10-20%.",
            with_action="Scale 30% if ROAS stays above 3x and the creative is healthy.",
        )
    return Prediction(
        no_action="Performance is steady and can run another 5-7 days.",
        with_action="Prepare a backup creative so a refresh is ready when needed.",
    )
