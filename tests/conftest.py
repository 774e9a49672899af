"""
Shared fixtures for the Guardian test-suite.

Series builders produce chronologically sorted ``DailyMetric`` lists starting
on Monday 2024-01-01, so weekday positions are predictable.
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence

import pytest

from guardian.config import AnalysisConfig, Settings
from guardian.models.metric_models import DailyMetric

START = date(2024, 1, 1)  # Monday
NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def day(i: int) -> date:
    return START + timedelta(days=i)


def make_day(
    i: int,
    spend: float = 100.0,
    purchases: int = 1,
    revenue: float = 300.0,
    impressions: int = 10000,
    clicks: int = 200,
    frequency: Optional[float] = None,
    learning: bool = False,
) -> DailyMetric:
    return DailyMetric.from_totals(
        date=day(i),
        spend=spend,
        impressions=impressions,
        clicks=clicks,
        purchases=purchases,
        revenue=revenue,
        frequency=frequency,
        learning=learning,
    )


def make_series(
    purchases: Sequence[int],
    spend: float = 100.0,
    revenue_per_purchase: float = 300.0,
) -> List[DailyMetric]:
    return [
        make_day(i, spend=spend, purchases=p, revenue=p * revenue_per_purchase)
        for i, p in enumerate(purchases)
    ]


# ============================================================
# FIXTURES
# ============================================================


@pytest.fixture
def config() -> AnalysisConfig:
    return AnalysisConfig()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        meta_access_token="test-token",
        sheets_proxy_url="https://script.example.com/exec",
        sheets_proxy_secret="s3cret",
        anthropic_api_key=None,
    )


@pytest.fixture
def flat_series() -> List[DailyMetric]:
    """7 identical days: CPP 100, ROAS 3.0, CTR 2%."""
    return make_series([1] * 7)


@pytest.fixture
def zero_purchase_day_series() -> List[DailyMetric]:
    """spend 100, 1 purchase, revenue 100 daily; day 4 has no purchase."""
    return [
        make_day(i, spend=100.0, purchases=0 if i == 3 else 1, revenue=100.0)
        for i in range(7)
    ]


@pytest.fixture
def fatigued_creative_series() -> List[DailyMetric]:
    """CTR 2.0% → 0.8% while frequency climbs 1.2 → 4.5 over 7 days."""
    clicks = [200, 180, 160, 140, 120, 100, 80]
    return [
        make_day(i, clicks=c, frequency=round(1.2 + 0.55 * i, 2))
        for i, c in enumerate(clicks)
    ]
