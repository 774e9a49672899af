"""Guardian - Preprocessed Insight Models.

Output of ``guardian.analyzer.pipeline.preprocess``. Fields are snake_case in
Python and serialise with camelCase aliases for the LLM context
(``model_dump(by_alias=True)``).
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DataStatus(str, Enum):
    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"


class Severity(str, Enum):
    """Warning severity, ordered by ``SEVERITY_RANK``."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_RANK = {
    Severity.CRITICAL: 3,
    Severity.HIGH: 2,
    Severity.MEDIUM: 1,
    Severity.LOW: 0,
}


# ─────────────────────────────────────────────
# AGGREGATES
# ─────────────────────────────────────────────


class Basics(CamelModel):
    total_days: int = 0
    total_spend: float = 0.0
    total_purchases: int = 0
    total_revenue: float = 0.0
    avg_cpp: float = 0.0
    avg_roas: float = 0.0
    avg_ctr: float = 0.0


class ExtremeDay(CamelModel):
    """Peak (cheapest purchases) or trough (most expensive) day."""

    date: str
    day_of_week: str
    cpp: float
    roas: float
    purchases: int
    reason: str


class WeekdayAverage(CamelModel):
    cpp: float = 0.0
    roas: float = 0.0
    purchases: float = 0.0


class DayOfWeekPattern(CamelModel):
    best_days: List[str] = []
    worst_days: List[str] = []
    avg_by_day: Dict[str, WeekdayAverage] = {}
    has_clear_pattern: bool = False
    cpp_coeff_var: float = 0.0
    insight: str = ""


class MovingAverage(CamelModel):
    """Latest trailing window; ``degraded`` when the series is shorter."""

    cpp: float = 0.0
    roas: float = 0.0
    window: int = 0
    degraded: bool = False


class MovingAveragePoint(CamelModel):
    end_date: str
    cpp: float
    roas: float


class VolatilityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Volatility(CamelModel):
    level: VolatilityLevel = VolatilityLevel.LOW
    cpp_std_dev: float = 0.0
    cpp_coeff_var: float = 0.0
    insight: str = ""


# ─────────────────────────────────────────────
# DETECTORS
# ─────────────────────────────────────────────


class FatigueStatus(str, Enum):
    HEALTHY = "healthy"
    EARLY_WARNING = "early_warning"
    FATIGUED = "fatigued"
    CRITICAL = "critical"


class FrequencyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SATURATED = "saturated"


class CtrTrend(str, Enum):
    STABLE = "stable"
    DECLINING = "declining"
    IMPROVING = "improving"


class CreativeFatigue(CamelModel):
    status: FatigueStatus = FatigueStatus.HEALTHY
    ctr_trend: CtrTrend = CtrTrend.STABLE
    ctr_decline_percent: float = 0.0
    frequency_level: Optional[FrequencyLevel] = FrequencyLevel.LOW
    frequency_value: float = 0.0
    projected_frequency: float = 0.0
    confidence: str = "high"  # "high" | "medium" | "low"
    diagnosis: str = ""
    recommendation: str = ""


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    VOLATILE = "volatile"


class Trend(CamelModel):
    direction: TrendDirection = TrendDirection.STABLE
    cpp_change: float = 0.0
    roas_change: float = 0.0
    moving_avg_3_day: MovingAverage = MovingAverage()
    moving_avg_7_day: MovingAverage = MovingAverage()
    insight: str = ""


class PhaseType(str, Enum):
    LEARNING = "learning"
    GROWTH = "growth"
    STABLE = "stable"
    DECLINING = "declining"
    VOLATILE = "volatile"


class Phase(CamelModel):
    start_date: str
    end_date: str
    type: PhaseType
    avg_cpp: float
    avg_roas: float
    days_count: int


class SpendRange(CamelModel):
    min: float
    max: float
    avg_cpp: float


class BudgetSpike(CamelModel):
    date: str
    spend: float
    previous_spend: float
    change_percent: float
    cpp_impact: float


class BudgetAnalysis(CamelModel):
    avg_daily_spend: float = 0.0
    min_daily_spend: float = 0.0
    max_daily_spend: float = 0.0
    optimal_spend_range: Optional[SpendRange] = None
    spend_cpp_correlation: str = "none"  # "positive" | "negative" | "none"
    budget_spikes: List[BudgetSpike] = []
    insight: str = ""


# ─────────────────────────────────────────────
# SYNTHESIS
# ─────────────────────────────────────────────


class WarningSignal(CamelModel):
    type: str
    severity: Severity
    evidence: str
    recommendation: str


class Prediction(CamelModel):
    no_action: str = ""
    with_action: str = ""


class PreprocessedInsights(CamelModel):
    """Everything the pipeline derives from one daily series."""

    status: DataStatus = DataStatus.OK
    basics: Basics = Basics()
    peak_day: Optional[ExtremeDay] = None
    trough_day: Optional[ExtremeDay] = None
    day_of_week_pattern: DayOfWeekPattern = DayOfWeekPattern()
    creative_fatigue: CreativeFatigue = CreativeFatigue()
    trend: Trend = Trend()
    phases: List[Phase] = []
    volatility: Volatility = Volatility()
    budget_analysis: BudgetAnalysis = BudgetAnalysis()
    warning_signals: List[WarningSignal] = []
    prediction: Prediction = Prediction()
