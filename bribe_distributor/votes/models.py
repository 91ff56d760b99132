from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LockSnapshot:
    """Linear decay curve of a voter's lock."""

    bias: str
    slope: str
    timestamp: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LockSnapshot":
        return cls(
            bias=str(data["bias"]),
            slope=str(data["slope"]),
            timestamp=int(data["timestamp"]),
        )


@dataclass(frozen=True)
class VoterVote:
    """A voter's latest vote for a gauge, as returned by the indexer."""

    user: str
    lock: Optional[LockSnapshot]
    weight: str
    vote_timestamp: int


@dataclass
class GaugeVote:
    """Computed vote record of one voter for one gauge."""

    address: str
    vote_power: Decimal
    weighted_vote_power: Decimal
    total_vote: Decimal
    incentive_share: Decimal
    vote_timestamp: int
