"""Tests for the statistical aggregator."""

import pytest

from guardian.analyzer.stats_engine import (
    analyze_day_of_week,
    compute_basics,
    compute_volatility,
    find_peak_and_trough,
    latest_moving_average,
    moving_average_series,
    pct_change,
)
from guardian.models.insight_models import VolatilityLevel
from tests.conftest import day, make_day, make_series


class TestHelpers:
    def test_pct_change_zero_baseline(self):
        assert pct_change(0, 5) == 100.0
        assert pct_change(0, 0) == 0.0

    def test_pct_change(self):
        assert pct_change(100, 110) == pytest.approx(10.0)
        assert pct_change(100, 50) == pytest.approx(-50.0)


class TestBasics:
    def test_ratio_of_totals(self, zero_purchase_day_series):
        basics = compute_basics(zero_purchase_day_series)
        assert basics.total_days == 7
        assert basics.total_spend == 700.0
        assert basics.total_purchases == 6
        assert basics.avg_cpp == pytest.approx(700 / 6)
        assert basics.avg_roas == pytest.approx(1.0)
        assert basics.avg_ctr == pytest.approx(2.0)

    def test_no_purchases(self):
        basics = compute_basics(make_series([0, 0, 0]))
        assert basics.avg_cpp == 0.0
        assert basics.avg_roas == 0.0


class TestPeakTrough:
    def test_cheapest_and_most_expensive(self):
        series = make_series([1, 2, 4, 0, 2])
        basics = compute_basics(series)
        peak, trough = find_peak_and_trough(series, basics)
        assert peak.date == day(2).isoformat()
        assert peak.cpp == pytest.approx(25.0)
        assert trough.date == day(0).isoformat()
        assert trough.day_of_week == "Mon"
        assert "Lowest CPP" in peak.reason

    def test_zero_purchase_days_are_excluded(self, zero_purchase_day_series):
        basics = compute_basics(zero_purchase_day_series)
        peak, trough = find_peak_and_trough(zero_purchase_day_series, basics)
        assert peak.date != day(3).isoformat()
        assert trough.date != day(3).isoformat()

    def test_ties_resolve_to_earliest_date(self, flat_series):
        basics = compute_basics(flat_series)
        peak, trough = find_peak_and_trough(flat_series, basics)
        assert peak.date == day(0).isoformat()
        assert trough.date == day(0).isoformat()

    def test_no_purchasing_days(self):
        series = make_series([0, 0])
        assert find_peak_and_trough(series, compute_basics(series)) == (None, None)


class TestDayOfWeek:
    def test_weekend_pattern(self, config):
        # Fri/Sat/Sun get 4 purchases (CPP 25), weekdays 1 (CPP 100)
        purchases = [4 if i % 7 in (4, 5, 6) else 1 for i in range(14)]
        pattern = analyze_day_of_week(make_series(purchases), config)
        assert pattern.has_clear_pattern is True
        assert pattern.best_days == ["Fri", "Sat", "Sun"]
        assert pattern.worst_days == ["Mon", "Tue", "Wed"]
        assert pattern.avg_by_day["Sat"].cpp == pytest.approx(25.0)
        assert pattern.insight.startswith("Weekend-driven")

    def test_flat_series_has_no_pattern(self, config, flat_series):
        pattern = analyze_day_of_week(flat_series, config)
        assert pattern.has_clear_pattern is False
        assert pattern.best_days == []
        assert pattern.cpp_coeff_var == 0.0


class TestMovingAverages:
    def test_series_points(self):
        series = make_series([1, 1, 2, 2, 2])
        points = moving_average_series(series, 3)
        assert len(points) == 3
        assert points[-1].end_date == day(4).isoformat()
        assert points[-1].cpp == pytest.approx(50.0)
        assert points[0].cpp == pytest.approx(75.0)

    def test_short_series_degrades(self):
        series = make_series([1, 2])
        basics = compute_basics(series)
        ma = latest_moving_average(series, 3, basics)
        assert ma.degraded is True
        assert ma.cpp == pytest.approx(basics.avg_cpp)


class TestVolatility:
    def test_stable(self, config, flat_series):
        vol = compute_volatility(flat_series, config)
        assert vol.level == VolatilityLevel.LOW
        assert vol.cpp_coeff_var == 0.0

    def test_high(self, config):
        vol = compute_volatility(make_series([1, 4, 1, 4]), config)
        assert vol.cpp_coeff_var == pytest.approx(0.6)
        assert vol.level == VolatilityLevel.HIGH

    def test_single_purchasing_day(self, config):
        vol = compute_volatility([make_day(0), make_day(1, purchases=0)], config)
        assert vol.level == VolatilityLevel.LOW
        assert vol.insight.startswith("Not enough")
