from typing import Optional

from eth_utils import is_address, to_checksum_address

from bribe_distributor.shared.exceptions import ValidationException


def validate_eth_address(address: str, param_name: str = "address") -> str:
    """Validate and return checksum ethereum address"""
    if not address or not isinstance(address, str):
        raise ValidationException(
            f"Invalid {param_name}: address must be a non-empty string"
        )
    if not is_address(address):
        raise ValidationException(
            f"Invalid {param_name}: {address} is not a valid Ethereum address"
        )
    return to_checksum_address(address)


def validate_network(network: str) -> str:
    """Validate and normalize network name"""
    if not network or not network.strip():
        raise ValidationException("Invalid network: name must be non-empty")
    return network.strip().lower()


def validate_deadline(deadline: Optional[int]) -> Optional[int]:
    """Validate an optional period deadline"""
    if deadline is not None and deadline <= 0:
        raise ValidationException(
            f"Invalid deadline: {deadline}. Must be a positive timestamp"
        )
    return deadline
