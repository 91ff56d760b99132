"""
Unit tests for the incentive deposit API client.
"""

import httpx
import pytest

from bribe_distributor.rewards.bribes_service import BribesService
from bribe_distributor.rewards.models import Bribe
from bribe_distributor.shared.exceptions import BribeApiException

API = "https://bribes.example.org/api/"


def _service(handler) -> BribesService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BribesService(API, "celo", client=client)


class TestFetchBribes:
    """Tests for BribesService.fetch_bribes."""

    @pytest.mark.asyncio
    async def test_parses_bribes(self, sample_gauge_address):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(
                200,
                json={
                    "bribes": [
                        {
                            "token": "0xD533a949740bb3306d119CC777fa900bA034cd52",
                            "amount": "1000",
                            "proposal": "12",
                            "gauge": sample_gauge_address.upper(),
                        }
                    ]
                },
            )

        bribes = await _service(handler).fetch_bribes(1700006400)

        assert requested == [
            "https://bribes.example.org/api/celo/get-incentives/1700006400"
        ]
        assert bribes == [
            Bribe(
                token="0xd533a949740bb3306d119cc777fa900ba034cd52",
                amount="1000",
                proposal="12",
                gauge=sample_gauge_address,
            )
        ]

    @pytest.mark.asyncio
    async def test_empty_list(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"bribes": []})

        assert await _service(handler).fetch_bribes(1) == []

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        with pytest.raises(BribeApiException, match="500"):
            await _service(handler).fetch_bribes(1)

    @pytest.mark.asyncio
    async def test_missing_bribes_key_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"incentives": []})

        with pytest.raises(BribeApiException, match="Malformed"):
            await _service(handler).fetch_bribes(1)

    @pytest.mark.asyncio
    async def test_invalid_amount_raises(self, sample_gauge_address):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "bribes": [
                        {
                            "token": "0xaa",
                            "amount": "-5",
                            "gauge": sample_gauge_address,
                        }
                    ]
                },
            )

        with pytest.raises(BribeApiException):
            await _service(handler).fetch_bribes(1)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(BribeApiException):
            await _service(handler).fetch_bribes(1)
