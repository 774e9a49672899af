"""Tests for trend classification and phase segmentation."""

import pytest

from guardian.analyzer.stats_engine import compute_basics, compute_volatility
from guardian.analyzer.trend_engine import analyze_trend, segment_phases
from guardian.models.insight_models import PhaseType, TrendDirection
from tests.conftest import day, make_day, make_series


def _trend(series, config):
    basics = compute_basics(series)
    return analyze_trend(series, basics, compute_volatility(series, config), config)


class TestAnalyzeTrend:
    def test_improving(self, config):
        trend = _trend(make_series([1, 1, 1, 2, 2, 2]), config)
        assert trend.direction == TrendDirection.IMPROVING
        assert trend.cpp_change == pytest.approx(-50.0)
        assert trend.roas_change == pytest.approx(100.0)

    def test_declining(self, config):
        trend = _trend(make_series([2, 2, 2, 1, 1, 1]), config)
        assert trend.direction == TrendDirection.DECLINING
        assert trend.cpp_change == pytest.approx(100.0)
        assert trend.roas_change == pytest.approx(-50.0)

    def test_stable(self, config, flat_series):
        trend = _trend(flat_series, config)
        assert trend.direction == TrendDirection.STABLE
        assert trend.cpp_change == 0.0
        assert trend.moving_avg_7_day.degraded is False

    def test_volatile_overrides_direction(self, config):
        trend = _trend(make_series([1, 4, 1, 4, 1, 4]), config)
        assert trend.direction == TrendDirection.VOLATILE

    def test_short_series(self, config):
        trend = _trend(make_series([1, 1, 1]), config)
        assert trend.direction == TrendDirection.STABLE
        assert trend.insight.startswith("Not enough")
        assert trend.moving_avg_7_day.degraded is True


class TestSegmentPhases:
    def test_flat_is_one_phase(self, config, flat_series):
        phases = segment_phases(flat_series, config)
        assert len(phases) == 1
        assert phases[0].type == PhaseType.STABLE
        assert phases[0].days_count == 7

    def test_growth_phase(self, config):
        phases = segment_phases(make_series([1, 1, 1, 2, 2, 2]), config)
        assert [p.type for p in phases] == [PhaseType.STABLE, PhaseType.GROWTH]
        assert phases[1].start_date == day(3).isoformat()
        assert phases[1].avg_cpp == pytest.approx(50.0)

    def test_single_day_blip_does_not_split(self, config):
        phases = segment_phases(make_series([1, 1, 1, 2, 1, 1, 1]), config)
        assert len(phases) == 1
        assert phases[0].days_count == 7

    def test_phases_cover_series_contiguously(self, config):
        series = make_series([1, 1, 1, 2, 2, 2, 1, 1, 1])
        phases = segment_phases(series, config)
        assert phases[0].start_date == series[0].date.isoformat()
        assert phases[-1].end_date == series[-1].date.isoformat()
        assert sum(p.days_count for p in phases) == len(series)

    def test_learning_tags_first_phase(self, config):
        series = [make_day(0, learning=True)] + [make_day(i) for i in range(1, 6)]
        phases = segment_phases(series, config)
        assert phases[0].type == PhaseType.LEARNING

    def test_empty(self, config):
        assert segment_phases([], config) == []
