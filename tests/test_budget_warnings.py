"""Tests for budget impact analysis and warning synthesis."""

import pytest

from guardian.analyzer.budget_engine import analyze_budget_impact
from guardian.analyzer.pipeline import preprocess
from guardian.models.insight_models import SEVERITY_RANK, Severity
from tests.conftest import day, make_day, make_series


def _spike_series():
    spends = [100, 100, 100, 200, 200, 200]
    return [make_day(i, spend=s) for i, s in enumerate(spends)]


class TestBudgetImpact:
    def test_spike_and_positive_correlation(self, config):
        budget = analyze_budget_impact(_spike_series(), config)
        assert len(budget.budget_spikes) == 1
        spike = budget.budget_spikes[0]
        assert spike.date == day(3).isoformat()
        assert spike.change_percent == pytest.approx(100.0)
        assert spike.cpp_impact == pytest.approx(100.0)
        assert budget.spend_cpp_correlation == "positive"
        assert budget.optimal_spend_range.max == 100.0
        assert budget.optimal_spend_range.avg_cpp == pytest.approx(100.0)
        assert budget.insight.startswith("Budget warning")

    def test_flat_spend(self, config, flat_series):
        budget = analyze_budget_impact(flat_series, config)
        assert budget.budget_spikes == []
        assert budget.spend_cpp_correlation == "none"
        assert budget.avg_daily_spend == 100.0

    def test_too_few_spending_days(self, config):
        budget = analyze_budget_impact(make_series([1, 1]), config)
        assert budget.optimal_spend_range is None
        assert budget.insight.startswith("Not enough")


class TestWarnings:
    def test_flat_week_only_flags_seasonality(self, flat_series):
        insights = preprocess(flat_series)
        assert [w.type for w in insights.warning_signals] == ["unclear_seasonality"]
        assert insights.warning_signals[0].severity == Severity.LOW
        assert insights.prediction.no_action.startswith("Performance is steady")

    def test_low_roas_is_critical_below_threshold(self):
        insights = preprocess(make_series([1] * 7, revenue_per_purchase=100.0))
        low = [w for w in insights.warning_signals if w.type == "low_roas"]
        assert low and low[0].severity == Severity.CRITICAL

    def test_low_roas_is_high_between_thresholds(self):
        insights = preprocess(make_series([1] * 7, revenue_per_purchase=180.0))
        low = [w for w in insights.warning_signals if w.type == "low_roas"]
        assert low and low[0].severity == Severity.HIGH

    def test_sorted_by_severity_then_rule_order(self):
        insights = preprocess(make_series([1, 1, 1, 1, 1, 0, 0]))
        types = [w.type for w in insights.warning_signals]
        assert types == ["no_conversions", "declining_trend", "unclear_seasonality"]
        assert insights.prediction.no_action.startswith("Money keeps burning")

    def test_severities_non_increasing(self, fatigued_creative_series):
        signals = preprocess(fatigued_creative_series).warning_signals
        ranks = [SEVERITY_RANK[s.severity] for s in signals]
        assert ranks == sorted(ranks, reverse=True)

    def test_budget_spike_warning(self):
        insights = preprocess(_spike_series())
        spikes = [w for w in insights.warning_signals if w.type == "budget_spike"]
        assert spikes and spikes[0].severity == Severity.HIGH
