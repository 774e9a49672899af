"""Tests for the creative fatigue detector."""

import pytest

from guardian.analyzer.fatigue_engine import classify_frequency, detect_creative_fatigue
from guardian.models.insight_models import CtrTrend, FatigueStatus, FrequencyLevel
from tests.conftest import make_day


def _series(clicks, frequency=None):
    return [make_day(i, clicks=c, frequency=frequency) for i, c in enumerate(clicks)]


class TestClassifyFrequency:
    @pytest.mark.parametrize(
        "value, level",
        [
            (1.49, FrequencyLevel.LOW),
            (1.5, FrequencyLevel.MEDIUM),
            (3.0, FrequencyLevel.HIGH),
            (4.99, FrequencyLevel.HIGH),
            (5.0, FrequencyLevel.SATURATED),
        ],
    )
    def test_bands(self, config, value, level):
        assert classify_frequency(value, config) == level


class TestDetectCreativeFatigue:
    def test_declining_ctr_with_rising_frequency(self, config, fatigued_creative_series):
        result = detect_creative_fatigue(fatigued_creative_series, config)
        assert result.status in (FatigueStatus.FATIGUED, FatigueStatus.CRITICAL)
        assert result.frequency_level == FrequencyLevel.SATURATED
        assert result.ctr_trend == CtrTrend.DECLINING
        assert result.ctr_decline_percent == pytest.approx(44.44, abs=0.01)
        assert result.projected_frequency == pytest.approx(6.15)
        assert result.confidence == "high"

    def test_healthy(self, config):
        result = detect_creative_fatigue(_series([200] * 7, frequency=1.0), config)
        assert result.status == FatigueStatus.HEALTHY
        assert result.frequency_level == FrequencyLevel.LOW
        assert result.ctr_trend == CtrTrend.STABLE

    def test_ctr_drop_with_low_frequency_is_content_problem(self, config):
        result = detect_creative_fatigue(
            _series([200, 200, 200, 150, 150, 150, 150], frequency=1.0), config
        )
        assert result.status == FatigueStatus.EARLY_WARNING
        assert result.ctr_decline_percent == pytest.approx(25.0)

    def test_missing_frequency_uses_ctr_only(self, config):
        result = detect_creative_fatigue(
            _series([200, 200, 200, 150, 120, 100, 100]), config
        )
        assert result.status == FatigueStatus.FATIGUED
        assert result.frequency_level is None
        assert result.confidence == "low"

    def test_ctr_only_never_critical(self, config):
        result = detect_creative_fatigue(_series([200, 200, 200, 10, 10, 10]), config)
        assert result.status == FatigueStatus.FATIGUED

    def test_short_series_compares_against_all_days(self, config):
        result = detect_creative_fatigue(_series([200, 200, 100, 50, 50], 1.0), config)
        assert result.confidence == "medium"
        assert result.ctr_trend == CtrTrend.DECLINING

    def test_single_day(self, config):
        result = detect_creative_fatigue(_series([200]), config)
        assert result.status == FatigueStatus.HEALTHY
        assert result.frequency_level is None
        assert result.confidence == "low"
