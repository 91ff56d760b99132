"""
Unit tests for the gauges subgraph client, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from bribe_distributor.shared.exceptions import SubgraphException
from bribe_distributor.votes.models import LockSnapshot
from bribe_distributor.votes.services import subgraph_service
from bribe_distributor.votes.services.subgraph_service import GaugesSubgraph

URL = "https://subgraph.example.org/gauges"


def _user(user_id, weight="0.00000000000001", vote_ts=1699500000):
    return {
        "id": user_id,
        "votingLocks": [
            {"bias": "1000", "slope": "2", "timestamp": "1699000000"}
        ],
        "gaugeVotes": [{"weight": weight, "timestamp": str(vote_ts)}],
    }


def _subgraph(handler) -> GaugesSubgraph:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GaugesSubgraph(URL, max_concurrency=2, client=client)


class TestGetGaugeVoters:
    """Tests for voter queries."""

    @pytest.mark.asyncio
    async def test_parses_voters(self, sample_gauge_address):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"data": {"users": [_user("0xAA")]}}
            )

        voters = await _subgraph(handler).get_gauge_voters(
            sample_gauge_address, 1700006400, 1500000000
        )

        assert len(voters) == 1
        assert voters[0].user == "0xaa"
        assert voters[0].lock == LockSnapshot("1000", "2", 1699000000)
        assert voters[0].weight == "1E-14"
        assert voters[0].vote_timestamp == 1699500000

    @pytest.mark.asyncio
    async def test_query_contains_bounds(self, sample_gauge_address):
        queries = []

        def handler(request: httpx.Request) -> httpx.Response:
            queries.append(json.loads(request.content)["query"])
            return httpx.Response(200, json={"data": {"users": []}})

        await _subgraph(handler).get_gauge_voters(
            sample_gauge_address, 1700006400, 1500000000
        )

        assert "timestamp_lte: 1700006400" in queries[0]
        assert "timestamp_gt: 1500000000" in queries[0]
        assert sample_gauge_address in queries[0]

    @pytest.mark.asyncio
    async def test_follows_pagination(self, monkeypatch, sample_gauge_address):
        monkeypatch.setattr(subgraph_service, "PAGE_SIZE", 2)
        pages = [
            [_user("0x01"), _user("0x02")],
            [_user("0x03")],
        ]
        queries = []

        def handler(request: httpx.Request) -> httpx.Response:
            queries.append(json.loads(request.content)["query"])
            return httpx.Response(
                200, json={"data": {"users": pages[len(queries) - 1]}}
            )

        voters = await _subgraph(handler).get_gauge_voters(
            sample_gauge_address, 1700006400, 0
        )

        assert [v.user for v in voters] == ["0x01", "0x02", "0x03"]
        assert len(queries) == 2
        assert 'id_gt: "0x02"' in queries[1]

    @pytest.mark.asyncio
    async def test_users_without_votes_are_skipped(self, sample_gauge_address):
        user = _user("0xaa")
        user["gaugeVotes"] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"users": [user]}})

        voters = await _subgraph(handler).get_gauge_voters(
            sample_gauge_address, 1700006400, 0
        )

        assert voters == []


class TestQueryErrors:
    """Every indexer failure surfaces as SubgraphException."""

    @pytest.mark.asyncio
    async def test_http_error_status(self, sample_gauge_address):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        with pytest.raises(SubgraphException, match="503"):
            await _subgraph(handler).get_gauge_voters(
                sample_gauge_address, 1, 0
            )

    @pytest.mark.asyncio
    async def test_graphql_errors(self, sample_gauge_address):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"errors": [{"message": "bad query"}]}
            )

        with pytest.raises(SubgraphException, match="bad query"):
            await _subgraph(handler).get_gauge_voters(
                sample_gauge_address, 1, 0
            )

    @pytest.mark.asyncio
    async def test_transport_error(self, sample_gauge_address):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(SubgraphException):
            await _subgraph(handler).get_gauge_voters(
                sample_gauge_address, 1, 0
            )

    @pytest.mark.asyncio
    async def test_malformed_weight(self, sample_gauge_address):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"data": {"users": [_user("0xaa", weight="lots")]}},
            )

        with pytest.raises(SubgraphException, match="Malformed"):
            await _subgraph(handler).get_gauge_voters(
                sample_gauge_address, 1, 0
            )


class TestGetLockSnapshot:
    """Tests for historical lock lookups."""

    @pytest.mark.asyncio
    async def test_returns_snapshot(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "data": {
                        "lockSnapshots": [
                            {"bias": "5", "slope": "1", "timestamp": "10"}
                        ]
                    }
                },
            )

        snapshot = await _subgraph(handler).get_lock_snapshot("0xaa", 20)

        assert snapshot == LockSnapshot("5", "1", 10)

    @pytest.mark.asyncio
    async def test_returns_none_when_missing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"lockSnapshots": []}})

        assert await _subgraph(handler).get_lock_snapshot("0xaa", 20) is None
