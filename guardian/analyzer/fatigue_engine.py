"""Guardian - Creative Fatigue Engine.

Detects creative fatigue from two signals read together:
- CTR declining between the leading and trailing windows
- Frequency elevated (audience seeing the ad too often)

A CTR drop with normal frequency points at weak content rather than an
exhausted audience and stays at ``early_warning``.
"""

from typing import Optional, Sequence

from guardian.config import AnalysisConfig
from guardian.models.metric_models import DailyMetric
from guardian.models.insight_models import (
    CreativeFatigue,
    CtrTrend,
    FatigueStatus,
    FrequencyLevel,
)
from guardian.analyzer.stats_engine import mean
from guardian.core.logging import get_logger

logger = get_logger("analyzer.fatigue")


def classify_frequency(value: float, config: AnalysisConfig) -> FrequencyLevel:
    low, medium, high = config.frequency_bands
    if value < low:
        return FrequencyLevel.LOW
    if value < medium:
        return FrequencyLevel.MEDIUM
    if value < high:
        return FrequencyLevel.HIGH
    return FrequencyLevel.SATURATED


def _windows(series: Sequence[DailyMetric], config: AnalysisConfig):
    """Leading and trailing windows; short series compare against all days."""
    size = config.fatigue_window
    trailing = series[-size:]
    if len(series) >= size * 2:
        leading = series[:size]
    else:
        leading = series
    return leading, trailing


def _frequency_means(
    leading: Sequence[DailyMetric], trailing: Sequence[DailyMetric]
) -> Optional[tuple[float, float]]:
    lead = [d.frequency for d in leading if d.frequency is not None]
    trail = [d.frequency for d in trailing if d.frequency is not None]
    if not lead or not trail:
        return None
    return mean(lead), mean(trail)


def detect_creative_fatigue(
    series: Sequence[DailyMetric], config: AnalysisConfig
) -> CreativeFatigue:
    """Classify creative fatigue for a sorted daily series."""
    if len(series) < 2:
        return CreativeFatigue(
            frequency_level=None,
            confidence="low",
            diagnosis="Not enough data to assess creative fatigue.",
            recommendation="Keep monitoring.",
        )

    leading, trailing = _windows(series, config)
    ctr_lead = mean([d.ctr for d in leading])
    ctr_trail = mean([d.ctr for d in trailing])
    decline = (ctr_lead - ctr_trail) / ctr_lead * 100 if ctr_lead > 0 else 0.0

    if decline > config.ctr_decline_threshold:
        ctr_trend = CtrTrend.DECLINING
    elif decline < -config.ctr_decline_threshold:
        ctr_trend = CtrTrend.IMPROVING
    else:
        ctr_trend = CtrTrend.STABLE

    confidence = "high" if len(series) >= config.fatigue_window * 2 else "medium"

    freq = _frequency_means(leading, trailing)
    if freq is None:
        result = _ctr_only(decline, ctr_trend, config)
        logger.info(f"Creative fatigue (CTR only): {result.status.value}")
        return result

    freq_lead, freq_trail = freq
    # Rising frequency is judged by where it lands one window ahead
    projected = max(freq_trail, freq_trail + (freq_trail - freq_lead))
    level = classify_frequency(projected, config)
    declining = ctr_trend == CtrTrend.DECLINING
    elevated = level in (FrequencyLevel.HIGH, FrequencyLevel.SATURATED)

    if declining and level == FrequencyLevel.SATURATED:
        status = FatigueStatus.CRITICAL
        diagnosis = f"Creative exhausted: CTR down {decline:.0f}% with frequency heading to {projected:.1f} (saturated)."
        recommendation = "Replace the creative with a completely new concept now."
    elif declining and level == FrequencyLevel.HIGH:
        status = FatigueStatus.FATIGUED
        diagnosis = f"Creative tiring: CTR down {decline:.0f}% while frequency climbs to {projected:.1f}."
        recommendation = "Prepare a backup creative within 24-48h; test fresh interests."
    elif declining:
        status = FatigueStatus.EARLY_WARNING
        diagnosis = f"CTR down {decline:.0f}% but frequency is still {freq_trail:.1f}: likely weak content, not audience exhaustion."
        recommendation = "Review the hook/angle and test another variant."
    elif elevated:
        status = FatigueStatus.EARLY_WARNING
        diagnosis = f"Frequency {projected:.1f} is high while CTR holds. Audience is close to saturation."
        recommendation = "Broaden the audience or line up a new creative before CTR drops."
    else:
        status = FatigueStatus.HEALTHY
        diagnosis = f"Creative healthy: CTR steady, frequency {freq_trail:.1f}."
        recommendation = "Keep running and check daily."

    logger.info(
        f"Creative fatigue: {status.value} (ctr {decline:+.1f}%, frequency {level.value})"
    )
    return CreativeFatigue(
        status=status,
        ctr_trend=ctr_trend,
        ctr_decline_percent=decline,
        frequency_level=level,
        frequency_value=freq_trail,
        projected_frequency=projected,
        confidence=confidence,
        diagnosis=diagnosis,
        recommendation=recommendation,
    )


def _ctr_only(
    decline: float, ctr_trend: CtrTrend, config: AnalysisConfig
) -> CreativeFatigue:
    """Fallback when no day reports frequency; never escalates to critical."""
    if decline >= config.ctr_severe_decline:
        status = FatigueStatus.FATIGUED
        diagnosis = f"CTR down {decline:.0f}% (frequency unavailable, lower confidence)."
        recommendation = "Prepare a new creative and verify frequency in Ads Manager."
    elif ctr_trend == CtrTrend.DECLINING:
        status = FatigueStatus.EARLY_WARNING
        diagnosis = f"CTR down {decline:.0f}% (frequency unavailable, lower confidence)."
        recommendation = "Review the hook/angle and watch CTR for another few days."
    else:
        status = FatigueStatus.HEALTHY
        diagnosis = "CTR steady (frequency unavailable, lower confidence)."
        recommendation = "Keep running and check daily."

    return CreativeFatigue(
        status=status,
        ctr_trend=ctr_trend,
        ctr_decline_percent=decline,
        frequency_level=None,
        confidence="low",
        diagnosis=diagnosis,
        recommendation=recommendation,
    )
