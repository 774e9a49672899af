"""Guardian - Central Configuration via Pydantic Settings.

Two layers:
- ``AnalysisConfig``: the fixed policy constants of the analysis core. Plain
  pydantic model, passed explicitly into every core function.
- ``Settings``: environment-bound settings for the adapters (Meta, sheets
  proxy, AI provider, scheduler). Built once through ``get_settings()``.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional, Tuple

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class ActionPolicy(str, Enum):
    """How purchases/revenue are read from the ``actions`` lists."""

    SUM = "sum"  # Sum every distinct configured action type present
    PRECEDENCE = "precedence"  # First configured action type present wins


class AnalysisConfig(BaseModel):
    """Thresholds and windows of the analytics core."""

    # ── Normalizer ──
    purchase_action_types: Tuple[str, ...] = ("purchase", "omni_purchase")
    action_policy: ActionPolicy = ActionPolicy.SUM

    # ── Aggregator ──
    short_window: int = 3
    long_window: int = 7
    dow_cv_threshold: float = 0.15
    volatility_medium_cv: float = 0.2
    volatility_high_cv: float = 0.4

    # ── Creative fatigue ──
    fatigue_window: int = 3
    ctr_decline_threshold: float = 15.0  # %
    ctr_severe_decline: float = 30.0  # %, used when frequency is missing
    frequency_bands: Tuple[float, float, float] = (1.5, 3.0, 5.0)

    # ── Trend / phases ──
    trend_change_threshold: float = 10.0  # %
    phase_change_threshold: float = 10.0  # % day-over-day
    phase_min_run: int = 2

    # ── Warnings ──
    break_even_roas: float = 2.0
    critical_roas: float = 1.5
    seasonality_min_days: int = 7
    budget_spike_pct: float = 40.0
    budget_spike_cpp_impact: float = 20.0
    spend_correlation_threshold: float = 0.3

    # ── Monitoring ──
    checkpoint_days: Tuple[int, int, int] = (1, 3, 7)
    roas_improvement_threshold: float = 10.0  # %
    monitoring_window_days: int = 10

    # ── LLM context ──
    max_context_days: int = 30


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Meta API ──
    meta_access_token: str = ""
    meta_api_version: str = "v21.0"
    meta_base_url: str = "https://graph.facebook.com"

    # ── Proposal store (Apps Script proxy) ──
    sheets_proxy_url: str = ""
    sheets_proxy_secret: Optional[str] = None

    # ── AI Provider ──
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"

    # ── App ──
    log_level: str = "INFO"
    log_format: str = "json"  # "json" | "text"
    scheduler_enabled: bool = True
    monitoring_interval_minutes: int = 60

    # ── Analysis ──
    analysis: AnalysisConfig = AnalysisConfig()
    account_currency: str = "VND"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, built on first use."""
    return Settings()
