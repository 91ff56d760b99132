"""
Claim status of a user's rewards.

Proofs are rebuilt from the commitments stored for every deadline of the
network. Claimed amounts are read from the reward distributor in a single
multicall, and only proofs with something left to claim are returned.
"""

from collections import defaultdict
from typing import Dict, List

from eth_utils import to_checksum_address
from hexbytes import HexBytes
from w3multicall.multicall import W3Multicall

from bribe_distributor.merkle.builder import find_user_proof
from bribe_distributor.merkle.store import MerkleStore
from bribe_distributor.shared.config import NetworkConfig
from bribe_distributor.shared.exceptions import ChainException
from bribe_distributor.shared.logging import get_logger
from bribe_distributor.shared.services.web3_service import Web3Service
from bribe_distributor.shared.types import UserClaimStatus, UserProofEntry

_logger = get_logger(__name__)

CLAIMED_SIGNATURE = "claimed(bytes32,address)(uint256)"


class ClaimStatusResolver:
    """Resolves a user's proofs and claimable amounts on one network."""

    def __init__(
        self,
        config: NetworkConfig,
        store: MerkleStore,
        web3_service: Web3Service,
    ):
        self.config = config
        self.store = store
        self.web3_service = web3_service

    def get_user_proofs(self, user: str) -> Dict[int, List[UserProofEntry]]:
        """
        Get every stored proof of ``user``, grouped by deadline.

        Deadlines where the user has no reward are omitted.
        """
        network = self.config.name
        proofs: Dict[int, List[UserProofEntry]] = {}

        for deadline in self.store.list_deadlines(network):
            lookup = self.store.load_merkle_data(deadline, network)
            if not lookup.found:
                continue
            period = lookup.value.get(str(deadline), {})

            entries: List[UserProofEntry] = []
            for token, token_data in sorted(period.items()):
                found = find_user_proof(token_data, user)
                if found is None:
                    continue
                amount, proof = found
                entries.append(
                    UserProofEntry(
                        identifier=token_data["identifier"],
                        token=token,
                        user=user.lower(),
                        amount=amount,
                        deadline=deadline,
                        proof=proof,
                        root=token_data["root"],
                        claimed="0",
                        claimable=amount,
                    )
                )

            if entries:
                proofs[deadline] = entries

        _logger.debug(
            "Found %d proofs for %s on %s",
            sum(len(e) for e in proofs.values()),
            user,
            network,
        )
        return proofs

    def _get_claimed_amounts(self, entries: List[UserProofEntry]) -> List[int]:
        multicall = W3Multicall(self.web3_service.w3)
        distributor = to_checksum_address(
            self.config.contracts.reward_distributor
        )
        for entry in entries:
            multicall.add(
                W3Multicall.Call(
                    distributor,
                    CLAIMED_SIGNATURE,
                    [
                        HexBytes(entry["identifier"]),
                        to_checksum_address(entry["user"]),
                    ],
                )
            )

        try:
            results = multicall.call()
        except Exception as e:
            raise ChainException(f"Failed to read claimed amounts: {e}") from e
        return [int(claimed) for claimed in results]

    def get_user_proofs_with_claimed(self, user: str) -> UserClaimStatus:
        """
        Get a user's proofs that still have a claimable amount.

        Returns:
            UserClaimStatus: proofs per deadline and claimable totals per
            token, as integer strings
        """
        proofs = self.get_user_proofs(user)
        entries = [entry for period in proofs.values() for entry in period]
        if not entries:
            return UserClaimStatus(proofs={}, totals={})

        claimed_amounts = self._get_claimed_amounts(entries)

        claimable_proofs: Dict[int, List[UserProofEntry]] = {}
        totals: Dict[str, int] = defaultdict(int)
        for entry, claimed in zip(entries, claimed_amounts):
            claimable = int(entry["amount"]) - claimed
            if claimable <= 0:
                continue
            entry["claimed"] = str(claimed)
            entry["claimable"] = str(claimable)
            claimable_proofs.setdefault(entry["deadline"], []).append(entry)
            totals[entry["token"]] += claimable

        return UserClaimStatus(
            proofs=claimable_proofs,
            totals={token: str(total) for token, total in sorted(totals.items())},
        )
