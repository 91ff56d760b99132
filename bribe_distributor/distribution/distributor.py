"""
On-chain side of a distribution: publishing roots and checking receipts.

Roots are published with ``updateRewardsMetadata`` on the reward distributor
contract. Finality is asynchronous; the controller re-checks the receipt on
its next invocation through ``get_transaction_status``.
"""

from enum import Enum
from typing import List, Optional

from hexbytes import HexBytes
from web3 import Web3

from bribe_distributor.shared.config import get_private_key
from bribe_distributor.shared.exceptions import (
    ChainException,
    SubmissionException,
)
from bribe_distributor.shared.logging import get_logger
from bribe_distributor.shared.services.web3_service import Web3Service
from bribe_distributor.shared.types import MerkleData, ProofMetadata

_logger = get_logger(__name__)

ZERO_BYTES32 = "0x" + "00" * 32
REWARD_DISTRIBUTOR_ABI = "reward_distributor"


class TransactionStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    UNKNOWN = "unknown"


def build_proof_metadata(merkle_data: MerkleData, deadline: int) -> List[ProofMetadata]:
    """Entries of the updateRewardsMetadata call for a period."""
    period = merkle_data.get(str(deadline), {})
    return [
        ProofMetadata(
            identifier=tree["identifier"],
            token=token,
            merkleRoot=tree["root"],
            proof=ZERO_BYTES32,
        )
        for token, tree in sorted(period.items())
    ]


class RewardDistributor:
    """Client of the reward distributor contract for one network."""

    def __init__(
        self,
        web3_service: Web3Service,
        contract_address: str,
        private_key: Optional[str] = None,
    ):
        self.web3_service = web3_service
        self.contract_address = contract_address
        self._private_key = private_key

    @property
    def contract(self):
        return self.web3_service.get_contract(
            self.contract_address, REWARD_DISTRIBUTOR_ABI
        )

    def add_proofs(self, proofs: List[ProofMetadata]) -> str:
        """
        Publish merkle roots on-chain.

        Returns:
            str: 0x-prefixed transaction hash

        The signing key is read from the environment on first use when none
        was given, so runs that sign nothing need no key.

        Raises:
            ConfigurationException: if no signing key is configured
            SubmissionException: if the transaction could not be sent
        """
        if not self._private_key:
            self._private_key = get_private_key()

        w3 = self.web3_service.w3
        account = w3.eth.account.from_key(self._private_key)
        distributions = [
            (
                HexBytes(p["identifier"]),
                Web3.to_checksum_address(p["token"]),
                HexBytes(p["merkleRoot"]),
                HexBytes(p["proof"]),
            )
            for p in proofs
        ]

        try:
            tx = self.contract.functions.updateRewardsMetadata(
                distributions
            ).build_transaction(
                {
                    "from": account.address,
                    "chainId": self.web3_service.chain_id,
                    "nonce": w3.eth.get_transaction_count(account.address),
                }
            )
            signed = account.sign_transaction(tx)
            tx_hash = Web3.to_hex(
                w3.eth.send_raw_transaction(signed.rawTransaction)
            )
        except Exception as e:
            raise SubmissionException(
                f"Failed to submit {len(proofs)} proofs: {e}"
            ) from e

        _logger.info("Distribute proofs tx: %s", tx_hash)
        return tx_hash

    def get_transaction_status(self, tx_hash: str) -> TransactionStatus:
        """
        Check whether a proofs transaction succeeded.

        Raises:
            ChainException: if the receipt could not be read
        """
        try:
            status = self.web3_service.get_receipt_status(tx_hash)
        except Exception as e:
            raise ChainException(
                f"Failed to read receipt of {tx_hash}: {e}"
            ) from e

        if status is None:
            return TransactionStatus.UNKNOWN
        if status == 1:
            return TransactionStatus.SUCCESS
        return TransactionStatus.FAILED
