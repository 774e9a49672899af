"""Guardian - Proposal Store Contract.

The monitoring flow reads proposals and writes observation rows and closing
statuses through this interface. The sheet-backed implementation lives in
``guardian.connectors.sheets.store``.
"""

from typing import Iterable, List, Protocol

from guardian.models.proposal_models import Observation, Proposal, ProposalStatus


class ProposalStore(Protocol):
    async def list_proposals(
        self, statuses: Iterable[ProposalStatus]
    ) -> List[Proposal]: ...

    async def list_observations(self, proposal_id: str) -> List[Observation]: ...

    async def record_observation(self, observation: Observation) -> None: ...

    async def update_status(
        self, proposal_id: str, status: ProposalStatus
    ) -> None: ...
