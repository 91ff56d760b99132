"""
Commitment builder: one merkle tree per reward token per period.

Leaves and identifiers use Solidity's packed encoding so the on-chain reward
distributor can recompute them:

    leaf       = keccak256(abi.encodePacked(address user, uint256 amount))
    identifier = keccak256(abi.encodePacked(address market, uint256 deadline, address token))
"""

import json
from typing import List, Mapping, Optional, Tuple

from eth_abi.packed import encode_packed
from eth_utils import keccak, to_checksum_address

from bribe_distributor.merkle.tree import LeafNotFoundError, SimpleMerkleTree
from bribe_distributor.rewards.models import TokenRewards
from bribe_distributor.shared.logging import get_logger
from bribe_distributor.shared.types import MerkleData, TokenMerkleData

_logger = get_logger(__name__)


def generate_reward_identifier(market: str, token: str, deadline: int) -> str:
    """Deterministic identifier of a (market, deadline, token) reward."""
    encoded = encode_packed(
        ["address", "uint256", "address"],
        [to_checksum_address(market), int(deadline), to_checksum_address(token)],
    )
    return "0x" + keccak(encoded).hex()


def reward_leaf(user: str, amount: int) -> bytes:
    """Leaf of a (user, amount) pair."""
    return keccak(
        encode_packed(
            ["address", "uint256"], [to_checksum_address(user), int(amount)]
        )
    )


def build_token_tree(token_rewards: TokenRewards) -> SimpleMerkleTree:
    leaves = [
        reward_leaf(r["user"], int(r["amount"]))
        for r in token_rewards.user_rewards
    ]
    return SimpleMerkleTree.of(leaves)


def create_merkle_trees(
    rewards_by_token: Mapping[str, TokenRewards],
    deadline: int,
    market: str,
) -> MerkleData:
    """
    Build the commitments of a period.

    Args:
        rewards_by_token: Ledger produced by the allocator
        deadline: Period deadline
        market: Bribe market address used in the identifiers

    Returns:
        MerkleData: ``{str(deadline): {token: TokenMerkleData}}``
    """
    period: dict = {}

    for token in sorted(rewards_by_token):
        token_rewards = rewards_by_token[token]
        if not token_rewards.user_rewards:
            continue

        tree = build_token_tree(token_rewards)
        period[token] = TokenMerkleData(
            identifier=generate_reward_identifier(market, token, deadline),
            root=tree.root,
            tree=json.dumps(tree.dump()),
            userRewards=list(token_rewards.user_rewards),
        )
        _logger.info(
            "Merkle tree for token %s: %d leaves, root %s",
            token,
            len(tree),
            tree.root,
        )

    return {str(deadline): period}


def load_tree(token_data: TokenMerkleData) -> SimpleMerkleTree:
    return SimpleMerkleTree.load(json.loads(token_data["tree"]))


def find_user_proof(
    token_data: TokenMerkleData,
    user: str,
) -> Optional[Tuple[str, List[str]]]:
    """
    Regenerate a user's proof from a stored commitment.

    Args:
        token_data: Stored commitment of one token
        user: Voter address (any case)

    Returns:
        (amount, proof) or None when the user has no reward in this tree
    """
    reward = next(
        (
            r
            for r in token_data["userRewards"]
            if r["user"].lower() == user.lower()
        ),
        None,
    )
    if reward is None:
        return None

    tree = load_tree(token_data)
    try:
        proof = tree.get_proof(reward_leaf(user, int(reward["amount"])))
    except LeafNotFoundError:
        _logger.warning(
            "Reward of %s is listed but its leaf is not in the tree", user
        )
        return None
    return reward["amount"], proof
