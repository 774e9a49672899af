"""Guardian - Sheet-backed Proposal Store.

Maps PROPOSALS / OBSERVATIONS sheet rows to the monitoring models. Sheet
cells arrive as strings (or blanks), so every numeric cell goes through the
same total parser as Meta insight rows.
"""

import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from guardian.models.proposal_models import (
    Checkpoint,
    Classification,
    MetricsSnapshot,
    Observation,
    Proposal,
    ProposalStatus,
)
from guardian.connectors.meta.transformer import parse_number
from guardian.connectors.sheets.client import SheetsProxyClient
from guardian.core.logging import get_logger

logger = get_logger("sheets.store")

PROPOSALS_SHEET = "PROPOSALS"
OBSERVATIONS_SHEET = "OBSERVATIONS"


def _parse_time(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparseable timestamp {value!r}")
        return None


def _optional_number(value: Any) -> Optional[float]:
    parsed = parse_number(value)
    return parsed.value if parsed.ok else None


def proposal_from_row(row: Dict[str, Any]) -> Proposal:
    return Proposal(
        id=str(row.get("proposal_id", "")),
        campaign_id=str(row.get("campaign_id", "")),
        campaign_name=str(row.get("campaign_name", "")),
        action_type=str(row.get("action_type", "")),
        status=ProposalStatus(row.get("status") or ProposalStatus.PENDING.value),
        executed_at=_parse_time(row.get("executed_at")),
        monitoring_until=_parse_time(row.get("monitoring_until")),
        metrics_before=MetricsSnapshot(
            cpp=parse_number(row.get("cpp_before")).value,
            roas=parse_number(row.get("roas_before")).value,
            spend=parse_number(row.get("spend_before")).value,
            purchases=_optional_number(row.get("purchases_before")),
        ),
    )


def observation_to_row(observation: Observation) -> Dict[str, Any]:
    snapshot = observation.metrics_snapshot
    return {
        "proposal_id": observation.proposal_id,
        "checkpoint": observation.checkpoint.value,
        "observed_at": observation.observed_at.isoformat(),
        "cpp": snapshot.cpp,
        "roas": snapshot.roas,
        "spend": snapshot.spend,
        "purchases": snapshot.purchases if snapshot.purchases is not None else "",
        "cpp_change_pct": round(observation.delta.get("cpp", 0.0), 2),
        "roas_change_pct": round(observation.delta.get("roas", 0.0), 2),
        "classification": observation.classification.value,
        "delta_json": json.dumps(observation.delta),
        "summary": observation.summary,
    }


def observation_from_row(row: Dict[str, Any]) -> Observation:
    try:
        delta = json.loads(row.get("delta_json") or "{}")
    except ValueError:
        delta = {}
    return Observation(
        proposal_id=str(row.get("proposal_id", "")),
        checkpoint=Checkpoint(row.get("checkpoint")),
        observed_at=_parse_time(row.get("observed_at")) or datetime.min,
        metrics_snapshot=MetricsSnapshot(
            cpp=parse_number(row.get("cpp")).value,
            roas=parse_number(row.get("roas")).value,
            spend=parse_number(row.get("spend")).value,
            purchases=_optional_number(row.get("purchases")),
        ),
        delta=delta,
        classification=Classification(row.get("classification") or "neutral"),
        summary=str(row.get("summary", "")),
    )


class SheetsProposalStore:
    """``ProposalStore`` over the Apps Script proxy."""

    def __init__(self, client: SheetsProxyClient):
        self.client = client

    async def list_proposals(
        self, statuses: Iterable[ProposalStatus]
    ) -> List[Proposal]:
        wanted = {s.value for s in statuses}
        rows = await self.client.read(PROPOSALS_SHEET)
        proposals: List[Proposal] = []
        for row in rows:
            if row.get("status") not in wanted:
                continue
            try:
                proposals.append(proposal_from_row(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed proposal row: {e}")
        return proposals

    async def list_observations(self, proposal_id: str) -> List[Observation]:
        rows = await self.client.read(OBSERVATIONS_SHEET)
        observations: List[Observation] = []
        for row in rows:
            if str(row.get("proposal_id")) != proposal_id:
                continue
            try:
                observations.append(observation_from_row(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed observation row: {e}")
        return observations

    async def record_observation(self, observation: Observation) -> None:
        await self.client.append(OBSERVATIONS_SHEET, [observation_to_row(observation)])

    async def update_status(self, proposal_id: str, status: ProposalStatus) -> None:
        await self.client.update(
            PROPOSALS_SHEET, "proposal_id", proposal_id, {"status": status.value}
        )
        logger.info(f"Proposal {proposal_id} → {status.value}")
