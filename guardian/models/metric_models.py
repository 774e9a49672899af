"""Guardian - Daily Metric Models.

``DailyMetric`` is the canonical record every connector normalizes into.
Derived ratios are stored alongside the raw counts so downstream engines
never divide by zero themselves.
"""

from datetime import date as Date
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field


class ParsedNumber(NamedTuple):
    """Tagged result of parsing an upstream numeric field.

    ``ok`` is False when the input was missing or unparseable and ``value``
    fell back to zero.
    """

    value: float
    ok: bool


class DailyMetric(BaseModel):
    """One calendar day of campaign performance."""

    date: Date
    spend: float = Field(default=0.0, ge=0)
    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    purchases: int = Field(default=0, ge=0)
    revenue: float = Field(default=0.0, ge=0)
    ctr: float = Field(default=0.0, ge=0)
    cpc: float = Field(default=0.0, ge=0)
    cpm: float = Field(default=0.0, ge=0)
    cpp: float = Field(default=0.0, ge=0)
    roas: float = Field(default=0.0, ge=0)
    frequency: Optional[float] = Field(default=None, ge=0)
    learning: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_totals(
        cls,
        date: Date,
        spend: float = 0.0,
        impressions: int = 0,
        clicks: int = 0,
        purchases: int = 0,
        revenue: float = 0.0,
        frequency: Optional[float] = None,
        learning: bool = False,
    ) -> "DailyMetric":
        """Build a record from raw counts, deriving every ratio."""
        return cls(
            date=date,
            spend=spend,
            impressions=impressions,
            clicks=clicks,
            purchases=purchases,
            revenue=revenue,
            ctr=(clicks / impressions * 100) if impressions > 0 else 0.0,
            cpc=(spend / clicks) if clicks > 0 else 0.0,
            cpm=(spend / impressions * 1000) if impressions > 0 else 0.0,
            cpp=(spend / purchases) if purchases > 0 else 0.0,
            roas=(revenue / spend) if spend > 0 else 0.0,
            frequency=frequency,
            learning=learning,
        )
