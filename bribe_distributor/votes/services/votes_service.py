"""
Vote power service: decayed voting power and incentive shares per gauge.

For a deadline, each voter's share of a gauge is their weighted voting power
divided by the total weighted power of all qualifying voters of that gauge:

    power    = max(0, bias - slope * (deadline - lock.timestamp))
    weighted = power * vote_weight * 1e14
    share    = weighted / sum(weighted)

The subgraph stores vote weights scaled down so that 1e-14 means 100%.
"""

import asyncio
from decimal import Decimal, localcontext
from typing import Dict, Iterable, List, Optional, Union

from bribe_distributor.shared.logging import get_logger
from bribe_distributor.votes.models import GaugeVote, LockSnapshot, VoterVote
from bribe_distributor.votes.services.subgraph_service import GaugesSubgraph

_logger = get_logger(__name__)

# Enough significant digits for any uint256
DECIMAL_PRECISION = 78

VOTE_WEIGHT_SCALE = Decimal(10) ** 14

Number = Union[str, int, Decimal]


def get_vote_power(
    bias: Number, slope: Number, timestamp: Number, checkpoint: Number
) -> Decimal:
    """
    Calculate vote power at a given timestamp.

    Args:
        bias: Vote power at time of lock
        slope: Vote power decay rate (per second)
        timestamp: Timestamp of the lock snapshot
        checkpoint: Timestamp to evaluate the power at

    Returns:
        Decimal: vote power at ``checkpoint``, or 0 if expired
    """
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        seconds_since_lock = Decimal(checkpoint) - Decimal(timestamp)
        power = Decimal(bias) - Decimal(slope) * seconds_since_lock
        return power if power > 0 else Decimal(0)


class VotesService:
    """Computes per-gauge vote records from the gauges subgraph."""

    def __init__(self, subgraph: GaugesSubgraph):
        self.subgraph = subgraph

    async def _resolve_lock(self, voter: VoterVote) -> Optional[LockSnapshot]:
        """Return the lock snapshot in effect when ``voter`` voted."""
        lock = voter.lock
        if lock is None or lock.timestamp <= voter.vote_timestamp:
            return lock

        # Lock was modified after the vote, power must come from the old lock
        historical = await self.subgraph.get_lock_snapshot(
            voter.user, voter.vote_timestamp
        )
        if historical is None:
            _logger.warning(
                "No lock snapshot for %s at vote time %d, using current lock",
                voter.user,
                voter.vote_timestamp,
            )
            return lock
        return historical

    async def _process_voter(
        self, voter: VoterVote, vote_deadline: int
    ) -> Optional[GaugeVote]:
        lock = await self._resolve_lock(voter)
        if lock is None:
            return None

        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            base_power = get_vote_power(
                lock.bias, lock.slope, lock.timestamp, vote_deadline
            )
            weight = Decimal(voter.weight) * VOTE_WEIGHT_SCALE
            weighted_power = base_power * weight

        return GaugeVote(
            address=voter.user,
            vote_power=base_power,
            weighted_vote_power=weighted_power,
            total_vote=Decimal(0),
            incentive_share=Decimal(0),
            vote_timestamp=voter.vote_timestamp,
        )

    async def get_gauge_votes(
        self, gauge: str, vote_deadline: int, lock_timestamp: int
    ) -> List[GaugeVote]:
        """
        Get all users who voted for a gauge and calculate their shares.

        Args:
            gauge: Gauge address
            vote_deadline: Timestamp of the vote deadline
            lock_timestamp: Earliest lock timestamp considered

        Returns:
            List[GaugeVote]: records with non-zero weighted power; empty
            when the gauge has no qualifying voters
        """
        gauge = gauge.lower()
        _logger.debug(
            "Getting gauge votes for %s (deadline=%d, lock_timestamp=%d)",
            gauge,
            vote_deadline,
            lock_timestamp,
        )

        voters = await self.subgraph.get_gauge_voters(
            gauge, vote_deadline, lock_timestamp
        )
        voters = [v for v in voters if Decimal(v.weight) != 0]

        processed = await asyncio.gather(
            *(self._process_voter(v, vote_deadline) for v in voters)
        )
        votes = [
            v for v in processed if v is not None and v.weighted_vote_power > 0
        ]

        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            total = sum((v.weighted_vote_power for v in votes), Decimal(0))
            if total == 0:
                _logger.info("Gauge %s has no vote power at deadline", gauge)
                return []

            for vote in votes:
                vote.total_vote = total
                vote.incentive_share = vote.weighted_vote_power / total

        _logger.info(
            "Gauge %s: %d voters, total weighted power %s",
            gauge,
            len(votes),
            total,
        )
        return votes

    async def get_gauge_votes_for_all(
        self, gauges: Iterable[str], vote_deadline: int, lock_timestamp: int
    ) -> Dict[str, List[GaugeVote]]:
        """
        Get vote records for a list of gauges.

        Gauges are queried concurrently; the first failure aborts the whole
        call so that no partial share set is ever returned.

        Returns:
            Dict[str, List[GaugeVote]]: gauge address -> vote records
        """
        gauges = sorted({g.lower() for g in gauges})
        results = await asyncio.gather(
            *(
                self.get_gauge_votes(gauge, vote_deadline, lock_timestamp)
                for gauge in gauges
            )
        )
        return dict(zip(gauges, results))
