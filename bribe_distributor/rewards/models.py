from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List

from bribe_distributor.shared.types import UserReward


@dataclass(frozen=True)
class Bribe:
    """An incentive deposit for the voters of one gauge."""

    token: str
    amount: str
    proposal: str
    gauge: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bribe":
        amount = str(data["amount"])
        if not Decimal(amount).is_finite() or Decimal(amount) < 0:
            raise ValueError(f"Invalid bribe amount: {amount}")
        return cls(
            token=str(data["token"]).lower(),
            amount=amount,
            proposal=str(data.get("proposal", "")),
            gauge=str(data["gauge"]).lower(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "amount": self.amount,
            "proposal": self.proposal,
            "gauge": self.gauge,
        }


@dataclass
class TokenRewards:
    """
    Reward ledger entry for one token.

    Attributes:
        token: Token address (lowercase)
        amount: Sum of the user amounts, in base units
        user_rewards: Per-voter amounts sorted by voter address
        deposited: Sum of the deposits that reached at least one voter
    """

    token: str
    amount: int = 0
    user_rewards: List[UserReward] = field(default_factory=list)
    deposited: Decimal = Decimal(0)

    @property
    def dust(self) -> Decimal:
        """Deposited value left unallocated by rounding down to base units."""
        return self.deposited - self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": self.token,
            "amount": str(self.amount),
            "deposited": str(self.deposited),
            "dust": str(self.dust),
            "userRewards": list(self.user_rewards),
        }
