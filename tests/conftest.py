"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests.
"""

from decimal import Decimal
from typing import Any, Callable, Dict
from unittest.mock import MagicMock

import pytest

from bribe_distributor.merkle.store import MerkleStore
from bribe_distributor.shared.config import (
    Contracts,
    Gauge,
    NetworkConfig,
)
from bribe_distributor.shared.services.kv_store import InMemoryKeyValueStore
from bribe_distributor.votes.models import GaugeVote


@pytest.fixture
def sample_gauge_address() -> str:
    """Sample gauge address for tests."""
    return "0x7e1444ba99dcdffe8fbdb42c02fb0da4aaace4d5"


@pytest.fixture
def sample_user_address() -> str:
    """Sample user address for tests."""
    return "0x52f541764e6e90eebc5c21ff570de0e2d63766b6"


@pytest.fixture
def other_user_address() -> str:
    return "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"


@pytest.fixture
def sample_token_address() -> str:
    """Sample reward token address for tests."""
    return "0xd533a949740bb3306d119cc777fa900ba034cd52"


@pytest.fixture
def sample_market_address() -> str:
    return "0x000000073d065fc33a3050c2d4a8e82ee5c5c25a"


@pytest.fixture
def sample_deadline() -> int:
    """Sample period deadline for tests."""
    return 1700006400


@pytest.fixture
def sample_network_data(
    sample_gauge_address, sample_market_address
) -> Dict[str, Any]:
    """Sample networks file entry for tests."""
    return {
        "chain_id": 42220,
        "rpc_url": "https://rpc.example.org",
        "proposal_start_time": 1699488000,
        "proposal_duration": 604800,
        "max_lock_duration": 126144000,
        "bribe_api": "https://bribes.example.org/api/",
        "gauges_subgraph": "https://subgraph.example.org/gauges",
        "contracts": {
            "regenerative_bribe_market": sample_market_address,
            "reward_distributor": "0x1111111111111111111111111111111111111111",
        },
        "gauges": [{"address": sample_gauge_address, "lp_symbol": "LP"}],
    }


@pytest.fixture
def network_config(
    sample_gauge_address, sample_market_address
) -> NetworkConfig:
    """NetworkConfig with a single configured gauge."""
    return NetworkConfig(
        name="celo",
        chain_id=42220,
        rpc_url="https://rpc.example.org",
        proposal_start_time=1699488000,
        proposal_duration=604800,
        max_lock_duration=126144000,
        bribe_api="https://bribes.example.org/api",
        contracts=Contracts(
            regenerative_bribe_market=sample_market_address,
            reward_distributor="0x1111111111111111111111111111111111111111",
        ),
        gauges=(Gauge(address=sample_gauge_address),),
        gauges_subgraph="https://subgraph.example.org/gauges",
    )


@pytest.fixture
def memory_store() -> MerkleStore:
    """MerkleStore backed by an in-memory key-value store."""
    return MerkleStore(InMemoryKeyValueStore())


@pytest.fixture
def mock_web3_service():
    """Mock Web3Service for unit tests."""
    service = MagicMock()
    service.chain_id = 42220
    service.w3 = MagicMock()
    return service


@pytest.fixture
def make_vote() -> Callable[..., GaugeVote]:
    """Factory for computed vote records with a given incentive share."""

    def _make(address: str, share: str, power: str = "1") -> GaugeVote:
        return GaugeVote(
            address=address,
            vote_power=Decimal(power),
            weighted_vote_power=Decimal(share),
            total_vote=Decimal(1),
            incentive_share=Decimal(share),
            vote_timestamp=1700000000,
        )

    return _make


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line("markers", "slow: mark test as slow-running")
