"""
Web3 Service module for interacting with EVM chains.

This module provides a Web3Service class that wraps one network's RPC
connection, caches contract instances, and exposes the few chain reads the
distribution pipeline needs (transaction receipts).
"""

from typing import Any, Dict, Optional

from web3 import Web3
from web3.exceptions import TransactionNotFound

from bribe_distributor.shared.services.resource_manager import (
    resource_manager,
)


class Web3Service:
    """
    A service class for managing a Web3 connection for one network.

    Instances are created explicitly from a NetworkConfig and passed to the
    components that need them; there is no process-wide registry.
    """

    def __init__(
        self,
        chain_id: int,
        rpc_url: str,
    ):
        """
        Initialize the Web3Service.

        Args:
            chain_id (int): The chain ID to use.
            rpc_url (str): The RPC URL to use.
        """
        self.chain_id = chain_id
        self.w3 = self._initialize_web3(rpc_url)
        self._contract_cache: Dict[Any, Any] = {}

    def _initialize_web3(self, rpc_url: str) -> Web3:
        """Initialize Web3 instance with middleware if needed"""
        w3 = Web3(Web3.HTTPProvider(rpc_url))

        # Add POA middleware for non-mainnet chains
        if self.chain_id != 1:
            from web3.middleware import geth_poa_middleware

            w3.middleware_onion.inject(geth_poa_middleware, layer=0)

        return w3

    def get_contract(self, address: str, abi_name: str) -> Any:
        """Get a contract instance for a given address and ABI name"""
        key = (address.lower(), abi_name)
        if key not in self._contract_cache:
            abi = resource_manager.load_abi(abi_name)
            self._contract_cache[key] = self.w3.eth.contract(
                address=Web3.to_checksum_address(address.lower()), abi=abi
            )
        return self._contract_cache[key]

    def get_receipt_status(self, tx_hash: str) -> Optional[int]:
        """
        Get the status field of a transaction receipt.

        Returns 1 for success, 0 for a reverted transaction, and None when
        the node does not know the transaction (pending or dropped).
        """
        try:
            receipt = self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        if receipt is None:
            return None
        return receipt["status"]
