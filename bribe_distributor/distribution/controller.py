"""
Distribution controller: runs one period end to end.

For a (network, deadline) the controller:
1. fetches the period's incentive deposits
2. returns the stored commitment if it was already submitted successfully
3. otherwise computes vote shares, allocates rewards and builds the trees
4. stores the commitment and publishes the roots on-chain

Invocations are idempotent: a period whose submission is confirmed is never
recomputed or resubmitted. A recomputed commitment is never left paired with
an earlier transaction, so a failed run can simply be retried.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from bribe_distributor.distribution.deadlines import get_previous_deadline
from bribe_distributor.distribution.distributor import (
    RewardDistributor,
    TransactionStatus,
    build_proof_metadata,
)
from bribe_distributor.merkle.builder import create_merkle_trees
from bribe_distributor.merkle.store import MerkleStore
from bribe_distributor.rewards.allocator import calculate_rewards
from bribe_distributor.rewards.bribes_service import BribesService
from bribe_distributor.rewards.models import Bribe, TokenRewards
from bribe_distributor.shared.config import NetworkConfig
from bribe_distributor.shared.logging import get_logger
from bribe_distributor.shared.results import DistributionSummary
from bribe_distributor.shared.types import MerkleData
from bribe_distributor.votes.services.votes_service import VotesService

_logger = get_logger(__name__)


class DistributionState(Enum):
    EMPTY = "empty"  # No deposits for the period
    DONE = "done"  # Already submitted and confirmed
    SUBMITTED = "submitted"  # Computed and submitted (or null-submitted)


@dataclass
class DistributionOutcome:
    network: str
    deadline: int
    state: DistributionState
    merkle_data: MerkleData = field(default_factory=dict)
    rewards_by_token: Dict[str, TokenRewards] = field(default_factory=dict)
    tx_hash: Optional[str] = None
    summary: Optional[DistributionSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network,
            "deadline": self.deadline,
            "state": self.state.value,
            "txHash": self.tx_hash,
            "rewards": {
                token: rewards.to_dict()
                for token, rewards in self.rewards_by_token.items()
            },
            "merkleData": self.merkle_data,
            "summary": self.summary.to_dict() if self.summary else None,
        }


class DistributionController:
    """Idempotent per-period distribution for one network."""

    def __init__(
        self,
        config: NetworkConfig,
        store: MerkleStore,
        bribes_service: BribesService,
        votes_service: VotesService,
        distributor: RewardDistributor,
    ):
        self.config = config
        self.store = store
        self.bribes_service = bribes_service
        self.votes_service = votes_service
        self.distributor = distributor

    def resolve_deadline(self, deadline: Optional[int] = None) -> int:
        if deadline is not None:
            return int(deadline)
        return get_previous_deadline(
            self.config.proposal_start_time, self.config.proposal_duration
        )

    def _is_confirmed(self, deadline: int) -> bool:
        """True when the period's commitment is stored and its tx succeeded."""
        network = self.config.name
        if not self.store.load_merkle_data(deadline, network).found:
            return False

        tx_lookup = self.store.get_proof_transaction(deadline, network)
        if not tx_lookup.found or not tx_lookup.value:
            return False

        status = self.distributor.get_transaction_status(tx_lookup.value)
        if status is not TransactionStatus.SUCCESS:
            _logger.warning(
                "Proofs tx %s for deadline %d is %s, recomputing",
                tx_lookup.value,
                deadline,
                status.value,
            )
            return False
        return True

    def _gauges_to_query(self, bribes: List[Bribe]) -> List[str]:
        configured = set(self.config.gauge_addresses)
        gauges = {b.gauge.lower() for b in bribes}
        unknown = gauges - configured
        if unknown:
            _logger.warning(
                "Ignoring %d gauges that are not configured for %s: %s",
                len(unknown),
                self.config.name,
                ", ".join(sorted(unknown)),
            )
        return sorted(gauges & configured)

    async def process(self, deadline: Optional[int] = None) -> DistributionOutcome:
        """
        Run the distribution of a period.

        Args:
            deadline: Period deadline; defaults to the most recent one

        Returns:
            DistributionOutcome: EMPTY, DONE or SUBMITTED
        """
        network = self.config.name
        deadline = self.resolve_deadline(deadline)
        summary = DistributionSummary(network=network, deadline=deadline)
        _logger.info("Processing %s deadline %d", network, deadline)

        bribes = await self.bribes_service.fetch_bribes(deadline)
        if not bribes:
            _logger.info("No bribes for %s deadline %d", network, deadline)
            return DistributionOutcome(
                network=network,
                deadline=deadline,
                state=DistributionState.EMPTY,
                summary=summary,
            )

        if self._is_confirmed(deadline):
            _logger.info(
                "Deadline %d of %s already distributed, skipping",
                deadline,
                network,
            )
            return DistributionOutcome(
                network=network,
                deadline=deadline,
                state=DistributionState.DONE,
                merkle_data=self.store.require_merkle_data(deadline, network),
                tx_hash=self.store.get_proof_transaction(
                    deadline, network
                ).value,
                summary=summary,
            )

        gauges = self._gauges_to_query(bribes)
        summary.gauges_queried = len(gauges)
        lock_timestamp = deadline - self.config.max_lock_duration

        gauge_votes = await self.votes_service.get_gauge_votes_for_all(
            gauges, deadline, lock_timestamp
        )
        summary.gauges_with_votes = sum(1 for v in gauge_votes.values() if v)

        rewards_by_token = calculate_rewards(bribes, gauge_votes, summary)
        merkle_data = create_merkle_trees(
            rewards_by_token,
            deadline,
            self.config.contracts.regenerative_bribe_market,
        )
        # Unpair any earlier tx from the commitment about to be replaced
        self.store.store_proof_transaction(deadline, network, None)
        self.store.store_merkle_trees(merkle_data, deadline, network)

        proofs = build_proof_metadata(merkle_data, deadline)
        tx_hash = None
        if proofs:
            tx_hash = self.distributor.add_proofs(proofs)
        else:
            _logger.info(
                "No rewards to distribute for %s deadline %d", network, deadline
            )
        self.store.store_proof_transaction(deadline, network, tx_hash)

        return DistributionOutcome(
            network=network,
            deadline=deadline,
            state=DistributionState.SUBMITTED,
            merkle_data=merkle_data,
            rewards_by_token=rewards_by_token,
            tx_hash=tx_hash,
            summary=summary,
        )

    def get_stored_merkle_data(self, deadline: int) -> MerkleData:
        """
        Raises:
            NoDataException: if the period was never computed
        """
        return self.store.require_merkle_data(deadline, self.config.name)
