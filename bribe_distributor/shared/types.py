"""
Shared type definitions used across the bribe distributor.

These describe the JSON shapes that are persisted in the key-value store or
returned to outer surfaces, so their keys follow the stored format.
"""

from typing import Dict, List, TypedDict

# =============================================================================
# LEDGER TYPES
# =============================================================================


class UserReward(TypedDict):
    """One voter's reward for a token."""

    user: str  # Voter address (lowercase)
    amount: str  # Integer amount in token base units


# =============================================================================
# COMMITMENT TYPES
# =============================================================================


class TokenMerkleData(TypedDict):
    """Commitment for one token of one period."""

    identifier: str  # keccak256(market, deadline, token)
    root: str  # Merkle root
    tree: str  # JSON dump of the merkle tree
    userRewards: List[UserReward]  # Leaves of the tree


# deadline (as string) -> token -> commitment
MerkleData = Dict[str, Dict[str, TokenMerkleData]]


class ProofMetadata(TypedDict):
    """Entry of the updateRewardsMetadata call."""

    identifier: str
    token: str
    merkleRoot: str
    proof: str


# =============================================================================
# CLAIM TYPES
# =============================================================================


class UserProofEntry(TypedDict):
    """A user's proof for one token of one period, with claim status."""

    identifier: str
    token: str
    user: str
    amount: str
    deadline: int
    proof: List[str]
    root: str
    claimed: str
    claimable: str


class UserClaimStatus(TypedDict):
    """Claimable proofs per deadline and claimable totals per token."""

    proofs: Dict[int, List[UserProofEntry]]
    totals: Dict[str, str]
