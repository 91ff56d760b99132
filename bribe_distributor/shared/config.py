"""
Network configuration for the bribe distributor.

Each network is described by an explicit NetworkConfig value that is passed
into every component call. Configurations are read from a JSON file whose
path comes from the caller or the BRIBE_NETWORKS_FILE environment variable;
RPC URLs can be overridden per network with ``{NETWORK}_RPC_URL`` and the
submission key is read from DISTRIBUTOR_PRIVATE_KEY. A ``.env`` file in the
working directory is loaded first.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv
from eth_utils import is_address

from bribe_distributor.shared.exceptions import ConfigurationException

load_dotenv()

WEEK = 604800
DEFAULT_MAX_CONCURRENCY = 8


@dataclass(frozen=True)
class Gauge:
    address: str
    lp_token: Optional[str] = None
    lp_symbol: Optional[str] = None


@dataclass(frozen=True)
class Contracts:
    regenerative_bribe_market: str
    reward_distributor: str
    gauge_controller: Optional[str] = None
    voting_escrow: Optional[str] = None


@dataclass(frozen=True)
class NetworkConfig:
    """Everything the pipeline needs to know about one network."""

    name: str
    chain_id: int
    rpc_url: str
    proposal_start_time: int
    proposal_duration: int
    max_lock_duration: int
    bribe_api: str
    contracts: Contracts
    gauges: Tuple[Gauge, ...] = field(default_factory=tuple)
    gauges_subgraph: Optional[str] = None
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    @property
    def gauge_addresses(self) -> List[str]:
        """Configured gauge addresses, lowercased."""
        return [gauge.address.lower() for gauge in self.gauges]


def _require(data: Dict[str, Any], key: str, network: str) -> Any:
    if key not in data or data[key] in (None, ""):
        raise ConfigurationException(
            f"Network {network}: missing required field '{key}'"
        )
    return data[key]


def _require_address(data: Dict[str, Any], key: str, network: str) -> str:
    address = _require(data, key, network)
    if not is_address(address):
        raise ConfigurationException(
            f"Network {network}: '{key}' is not a valid address: {address}"
        )
    return address


def parse_network_config(name: str, data: Dict[str, Any]) -> NetworkConfig:
    """Build a NetworkConfig from its JSON representation."""
    network = name.lower()
    contracts_data = _require(data, "contracts", network)

    contracts = Contracts(
        regenerative_bribe_market=_require_address(
            contracts_data, "regenerative_bribe_market", network
        ),
        reward_distributor=_require_address(
            contracts_data, "reward_distributor", network
        ),
        gauge_controller=contracts_data.get("gauge_controller"),
        voting_escrow=contracts_data.get("voting_escrow"),
    )

    gauges = []
    for gauge in data.get("gauges", []):
        gauges.append(
            Gauge(
                address=_require_address(gauge, "address", network),
                lp_token=gauge.get("lp_token"),
                lp_symbol=gauge.get("lp_symbol"),
            )
        )

    rpc_url = os.getenv(f"{network.upper()}_RPC_URL") or data.get("rpc_url")
    if not rpc_url:
        raise ConfigurationException(
            f"RPC URL not set for network {network}"
        )

    return NetworkConfig(
        name=network,
        chain_id=int(_require(data, "chain_id", network)),
        rpc_url=rpc_url,
        proposal_start_time=int(
            _require(data, "proposal_start_time", network)
        ),
        proposal_duration=int(data.get("proposal_duration", WEEK)),
        max_lock_duration=int(_require(data, "max_lock_duration", network)),
        bribe_api=str(_require(data, "bribe_api", network)).rstrip("/"),
        contracts=contracts,
        gauges=tuple(gauges),
        gauges_subgraph=data.get("gauges_subgraph") or None,
        max_concurrency=int(
            data.get("max_concurrency", DEFAULT_MAX_CONCURRENCY)
        ),
    )


def load_network_configs(
    path: Optional[str] = None,
) -> Dict[str, NetworkConfig]:
    """
    Load all network configurations from a JSON file.

    Args:
        path: Path to the networks file. Defaults to BRIBE_NETWORKS_FILE.

    Returns:
        Dict[str, NetworkConfig]: network name -> config

    Raises:
        ConfigurationException: if the file is missing or invalid
    """
    path = path or os.getenv("BRIBE_NETWORKS_FILE")
    if not path:
        raise ConfigurationException(
            "No networks file given (pass --config or set BRIBE_NETWORKS_FILE)"
        )

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationException(f"Networks file not found: {path}")

    try:
        with open(config_path) as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationException(
            f"Networks file {path} is not valid JSON: {e}"
        ) from e

    if not isinstance(raw, dict):
        raise ConfigurationException(
            f"Networks file {path} must map network names to configs"
        )

    return {
        name.lower(): parse_network_config(name, data)
        for name, data in raw.items()
    }


def validate_network_config(
    configs: Dict[str, NetworkConfig], network: str
) -> NetworkConfig:
    """
    Return the config for ``network`` or reject the request.

    Raises:
        ConfigurationException: unknown network or no gauges subgraph
    """
    config = configs.get(network.lower()) if network else None
    if config is None:
        raise ConfigurationException(f"Invalid network: {network}")

    if not config.gauges_subgraph:
        raise ConfigurationException(
            f"Gauges subgraph is not configured for network {config.name}"
        )

    return config


def get_private_key() -> str:
    """Get the key used to sign proof submissions."""
    private_key = os.getenv("DISTRIBUTOR_PRIVATE_KEY")
    if not private_key:
        raise ConfigurationException(
            "DISTRIBUTOR_PRIVATE_KEY is not set (required to submit proofs)"
        )
    return private_key
