"""
Persistence of commitments and submission records.

Keys:
- ``merkle-trees-{network}-{deadline}``: JSON MerkleData of the period
- ``proof-tx-{network}-{deadline}``: hash of the proofs transaction, or an
  empty value for a recorded null submission
"""

import json
from typing import List, Optional

from bribe_distributor.shared.exceptions import NoDataException
from bribe_distributor.shared.logging import get_logger
from bribe_distributor.shared.results import Lookup
from bribe_distributor.shared.services.kv_store import KeyValueStore
from bribe_distributor.shared.types import MerkleData

_logger = get_logger(__name__)

MERKLE_PREFIX = "merkle-trees"
PROOF_TX_PREFIX = "proof-tx"


def merkle_key(network: str, deadline: int) -> str:
    return f"{MERKLE_PREFIX}-{network}-{deadline}"


def proof_tx_key(network: str, deadline: int) -> str:
    return f"{PROOF_TX_PREFIX}-{network}-{deadline}"


class MerkleStore:
    """Typed access to the commitments stored for each network."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def store_merkle_trees(
        self, merkle_data: MerkleData, deadline: int, network: str
    ) -> None:
        self.kv.put(merkle_key(network, deadline), json.dumps(merkle_data))
        _logger.info(
            "Stored merkle trees for %s deadline %d", network, deadline
        )

    def load_merkle_data(self, deadline: int, network: str) -> Lookup[MerkleData]:
        raw = self.kv.get(merkle_key(network, deadline))
        if raw is None:
            return Lookup.absent()
        return Lookup.present(json.loads(raw))

    def require_merkle_data(self, deadline: int, network: str) -> MerkleData:
        """
        Load a period that the caller expects to exist.

        Raises:
            NoDataException: if the period was never computed
        """
        lookup = self.load_merkle_data(deadline, network)
        if not lookup.found:
            raise NoDataException(
                f"No merkle tree data found for network {network} "
                f"deadline {deadline}"
            )
        return lookup.value

    def list_deadlines(self, network: str) -> List[int]:
        """Deadlines with stored commitments for ``network``, ascending."""
        prefix = f"{MERKLE_PREFIX}-{network}-"
        deadlines = []
        for key in self.kv.list(prefix):
            suffix = key[len(prefix):]
            if suffix.isdigit():
                deadlines.append(int(suffix))
        return sorted(deadlines)

    def store_proof_transaction(
        self, deadline: int, network: str, tx_hash: Optional[str]
    ) -> None:
        """Record the submission of a period; None records a null submission."""
        self.kv.put(proof_tx_key(network, deadline), tx_hash or "")

    def get_proof_transaction(
        self, deadline: int, network: str
    ) -> Lookup[Optional[str]]:
        raw = self.kv.get(proof_tx_key(network, deadline))
        if raw is None:
            return Lookup.absent()
        return Lookup.present(raw or None)
