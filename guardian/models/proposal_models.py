"""Guardian - Proposal & Monitoring Models.

Proposals are owned by the sheet-backed store; the monitoring comparator only
reads ``executed_at``/``metrics_before`` and produces ``Observation`` rows.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ProposalStatus(str, Enum):
    """Proposal lifecycle as stored in the sheet."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    EXECUTED = "EXECUTED"
    MONITORING = "MONITORING"
    CLOSED_SUCCESS = "CLOSED_SUCCESS"
    CLOSED_FAIL = "CLOSED_FAIL"
    CLOSED_NEUTRAL = "CLOSED_NEUTRAL"


class Checkpoint(str, Enum):
    D1 = "D1"
    D3 = "D3"
    D7 = "D7"


class CheckpointState(str, Enum):
    AWAITING_D1 = "AWAITING_D1"
    AWAITING_D3 = "AWAITING_D3"
    AWAITING_D7 = "AWAITING_D7"
    COMPLETE = "COMPLETE"


class Classification(str, Enum):
    IMPROVED = "improved"
    NEUTRAL = "neutral"
    WORSENED = "worsened"


class MetricsSnapshot(BaseModel):
    """Campaign metrics at one point in time."""

    cpp: float = 0.0
    roas: float = 0.0
    spend: float = 0.0
    purchases: Optional[float] = None
    ctr: Optional[float] = None
    revenue: Optional[float] = None


class MetricsComparison(BaseModel):
    before: MetricsSnapshot
    after: MetricsSnapshot
    deltas: Dict[str, float]
    """Percentage change per metric (positive = increase)."""
    classification: Classification


class Proposal(BaseModel):
    """The subset of a proposal record the monitoring flow needs."""

    id: str
    campaign_id: str
    campaign_name: str = ""
    action_type: str = ""
    status: ProposalStatus = ProposalStatus.PENDING
    executed_at: Optional[datetime] = None
    monitoring_until: Optional[datetime] = None
    metrics_before: MetricsSnapshot = MetricsSnapshot()


class Observation(BaseModel):
    """One checkpoint measurement after a proposal was executed."""

    proposal_id: str
    checkpoint: Checkpoint
    observed_at: datetime
    metrics_snapshot: MetricsSnapshot
    delta: Dict[str, float] = Field(default_factory=dict)
    classification: Classification = Classification.NEUTRAL
    summary: str = ""
