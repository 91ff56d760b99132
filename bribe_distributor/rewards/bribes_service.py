"""Service for fetching the incentive deposits of a period from the bribe API."""

from typing import List, Optional

import httpx

from bribe_distributor.rewards.models import Bribe
from bribe_distributor.shared.exceptions import BribeApiException
from bribe_distributor.shared.logging import get_logger
from bribe_distributor.shared.services.http_client import get_async_client

_logger = get_logger(__name__)


class BribesService:
    """Reads deposits from ``{bribe_api}/{network}/get-incentives/{deadline}``."""

    def __init__(
        self,
        bribe_api: str,
        network: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.bribe_api = bribe_api.rstrip("/")
        self.network = network
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_async_client()

    async def fetch_bribes(self, deadline: int) -> List[Bribe]:
        """
        Fetch the incentive deposits for a deadline.

        Returns:
            List[Bribe]: possibly empty

        Raises:
            BribeApiException: on transport errors, non-2xx or bad payloads
        """
        url = f"{self.bribe_api}/{self.network}/get-incentives/{deadline}"
        _logger.info("Fetching bribes from %s", url)

        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise BribeApiException(f"Failed to fetch bribes: {e}") from e

        if response.status_code >= 400:
            raise BribeApiException(
                f"Failed to fetch bribes: HTTP {response.status_code}"
            )

        try:
            payload = response.json()
            raw_bribes = payload["bribes"]
            bribes = [Bribe.from_dict(b) for b in raw_bribes or []]
        except (ArithmeticError, ValueError, KeyError, TypeError) as e:
            raise BribeApiException(
                f"Malformed bribes response: {response.text[:200]}"
            ) from e

        _logger.info("Fetched %d bribes for deadline %d", len(bribes), deadline)
        return bribes
