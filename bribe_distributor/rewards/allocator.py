"""
Reward allocation: split incentive deposits across the voters of each gauge.

Each deposit is divided by the incentive shares of its gauge's voters. Voter
totals are accumulated as exact fractions (deposit x weighted power / total
power) and only rounded down to whole base units once, at the end, because
merkle leaves encode amounts as uint256.
"""

import math
from collections import defaultdict
from decimal import Decimal, localcontext
from fractions import Fraction
from typing import Dict, Iterable, List, Mapping, Optional

from bribe_distributor.rewards.models import Bribe, TokenRewards
from bribe_distributor.shared.logging import get_logger
from bribe_distributor.shared.results import DistributionSummary
from bribe_distributor.shared.types import UserReward
from bribe_distributor.votes.models import GaugeVote
from bribe_distributor.votes.services.votes_service import DECIMAL_PRECISION

_logger = get_logger(__name__)


def calculate_rewards(
    bribes: Iterable[Bribe],
    gauge_votes: Mapping[str, List[GaugeVote]],
    summary: Optional[DistributionSummary] = None,
) -> Dict[str, TokenRewards]:
    """
    Build the per-token reward ledger for a period.

    Args:
        bribes: Incentive deposits of the period
        gauge_votes: gauge address -> computed vote records
        summary: Optional summary updated with allocation counts

    Returns:
        Dict[str, TokenRewards]: token address -> ledger entry
    """
    per_user: Dict[str, Dict[str, Fraction]] = defaultdict(
        lambda: defaultdict(Fraction)
    )
    deposited: Dict[str, Decimal] = defaultdict(Decimal)

    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION

        for bribe in bribes:
            if summary is not None:
                summary.bribes_total += 1

            votes = gauge_votes.get(bribe.gauge.lower())
            if not votes:
                _logger.debug(
                    "No voters for gauge %s, dropping %s of %s",
                    bribe.gauge,
                    bribe.amount,
                    bribe.token,
                )
                if summary is not None:
                    summary.bribes_dropped += 1
                    summary.dropped_bribes.append(bribe.to_dict())
                continue

            token = bribe.token.lower()
            amount = Decimal(bribe.amount)
            deposited[token] += amount
            for vote in votes:
                per_user[token][vote.address.lower()] += (
                    Fraction(amount)
                    * Fraction(vote.weighted_vote_power)
                    / Fraction(vote.total_vote)
                )

            if summary is not None:
                summary.bribes_allocated += 1

        rewards_by_token: Dict[str, TokenRewards] = {}
        for token in sorted(per_user):
            user_rewards: List[UserReward] = []
            total = 0
            for user in sorted(per_user[token]):
                units = math.floor(per_user[token][user])
                if units <= 0:
                    continue
                user_rewards.append(UserReward(user=user, amount=str(units)))
                total += units

            if not user_rewards:
                _logger.warning(
                    "All rewards for token %s round to zero, skipping", token
                )
                if summary is not None:
                    summary.add_warning(
                        "allocator",
                        "All rewards round to zero",
                        {"token": token},
                    )
                continue

            rewards_by_token[token] = TokenRewards(
                token=token,
                amount=total,
                user_rewards=user_rewards,
                deposited=deposited[token],
            )
            _logger.info(
                "Token %s: %d voters, %d allocated of %s deposited",
                token,
                len(user_rewards),
                total,
                deposited[token],
            )

    if summary is not None:
        summary.tokens = len(rewards_by_token)
        summary.voters = len(
            {r["user"] for t in rewards_by_token.values() for r in t.user_rewards}
        )

    return rewards_by_token
