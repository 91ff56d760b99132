"""
Unit tests for network configuration loading.
"""

import json

import pytest

from bribe_distributor.shared.config import (
    WEEK,
    get_private_key,
    load_network_configs,
    parse_network_config,
    validate_network_config,
)
from bribe_distributor.shared.exceptions import ConfigurationException


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (
        "CELO_RPC_URL",
        "BRIBE_NETWORKS_FILE",
        "DISTRIBUTOR_PRIVATE_KEY",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def networks_file(tmp_path, sample_network_data):
    path = tmp_path / "networks.json"
    path.write_text(json.dumps({"Celo": sample_network_data}))
    return str(path)


class TestParseNetworkConfig:
    """Tests for parse_network_config."""

    def test_parses_fields(self, sample_network_data, sample_gauge_address):
        config = parse_network_config("celo", sample_network_data)

        assert config.name == "celo"
        assert config.chain_id == 42220
        assert config.bribe_api == "https://bribes.example.org/api"
        assert config.gauge_addresses == [sample_gauge_address]
        assert config.gauges[0].lp_symbol == "LP"
        assert config.max_concurrency == 8

    def test_rpc_url_env_override(self, monkeypatch, sample_network_data):
        monkeypatch.setenv("CELO_RPC_URL", "https://private.example.org")

        config = parse_network_config("celo", sample_network_data)

        assert config.rpc_url == "https://private.example.org"

    def test_default_proposal_duration(self, sample_network_data):
        del sample_network_data["proposal_duration"]

        config = parse_network_config("celo", sample_network_data)

        assert config.proposal_duration == WEEK

    def test_missing_required_field(self, sample_network_data):
        del sample_network_data["max_lock_duration"]

        with pytest.raises(ConfigurationException, match="max_lock_duration"):
            parse_network_config("celo", sample_network_data)

    def test_invalid_contract_address(self, sample_network_data):
        sample_network_data["contracts"]["reward_distributor"] = "0x123"

        with pytest.raises(ConfigurationException, match="reward_distributor"):
            parse_network_config("celo", sample_network_data)

    def test_missing_rpc_url(self, sample_network_data):
        del sample_network_data["rpc_url"]

        with pytest.raises(ConfigurationException, match="RPC URL"):
            parse_network_config("celo", sample_network_data)


class TestLoadNetworkConfigs:
    """Tests for load_network_configs."""

    def test_loads_from_path(self, networks_file):
        configs = load_network_configs(networks_file)

        assert list(configs) == ["celo"]

    def test_loads_from_env(self, monkeypatch, networks_file):
        monkeypatch.setenv("BRIBE_NETWORKS_FILE", networks_file)

        assert "celo" in load_network_configs()

    def test_no_path(self):
        with pytest.raises(ConfigurationException):
            load_network_configs()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationException, match="not found"):
            load_network_configs(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "networks.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationException, match="not valid JSON"):
            load_network_configs(str(path))


class TestValidateNetworkConfig:
    def test_known_network(self, networks_file):
        configs = load_network_configs(networks_file)

        assert validate_network_config(configs, "CELO").name == "celo"

    def test_unknown_network(self, networks_file):
        configs = load_network_configs(networks_file)

        with pytest.raises(ConfigurationException, match="Invalid network"):
            validate_network_config(configs, "base")

    def test_missing_subgraph(self, sample_network_data):
        sample_network_data["gauges_subgraph"] = ""
        configs = {"celo": parse_network_config("celo", sample_network_data)}

        with pytest.raises(ConfigurationException, match="subgraph"):
            validate_network_config(configs, "celo")


class TestGetPrivateKey:
    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("DISTRIBUTOR_PRIVATE_KEY", "0xkey")

        assert get_private_key() == "0xkey"

    def test_missing_key(self):
        with pytest.raises(ConfigurationException):
            get_private_key()
