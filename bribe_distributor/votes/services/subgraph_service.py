"""
Client for the gauges subgraph (vote and lock indexer).

Two queries are needed to resolve voting power at a deadline:
1. Voters of a gauge with their current lock and latest vote before the deadline
2. The lock snapshot that was in effect at a given vote timestamp

Every request is gated by a semaphore so that fan-out across gauges and
voters never exceeds ``max_concurrency`` in-flight requests.
"""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import httpx

from bribe_distributor.shared.exceptions import SubgraphException
from bribe_distributor.shared.logging import get_logger
from bribe_distributor.shared.services.http_client import get_async_client
from bribe_distributor.votes.models import LockSnapshot, VoterVote

_logger = get_logger(__name__)

PAGE_SIZE = 1000


def get_gauge_votes_query(
    gauge: str, vote_deadline: int, lock_timestamp: int, last_id: str = ""
) -> str:
    return f"""
query gaugeVotes {{
  users(
    first: {PAGE_SIZE}
    orderBy: id
    orderDirection: asc
    where: {{
      id_gt: "{last_id}"
      votingLocks_: {{
        timestamp_gt: {lock_timestamp}
      }}
      gaugeVotes_: {{
        gauge_contains: "{gauge}"
        timestamp_lte: {vote_deadline}
      }}
    }}
  ) {{
    id
    votingLocks(first: 1, orderBy: timestamp, orderDirection: desc) {{
      bias
      slope
      timestamp
    }}
    gaugeVotes(
      first: 1
      orderBy: timestamp
      orderDirection: desc
      where: {{
        gauge_: {{
          address: "{gauge}"
        }}
        timestamp_lte: {vote_deadline}
      }}
    ) {{
      weight
      timestamp
    }}
  }}
}}
"""


def get_lock_snapshot_query(user: str, vote_timestamp: int) -> str:
    return f"""
query LockSnapshots {{
  lockSnapshots(
    first: 1
    orderBy: timestamp
    orderDirection: desc
    where: {{
      user: "{user}"
      timestamp_lte: {vote_timestamp}
    }}
  ) {{
    bias
    slope
    timestamp
  }}
}}
"""


class GaugesSubgraph:
    """GraphQL client for the gauges subgraph."""

    def __init__(
        self,
        url: str,
        max_concurrency: int = 8,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self._client = client
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_async_client()

    async def _query(self, query: str) -> Dict[str, Any]:
        """POST a GraphQL query and return its ``data`` payload."""
        async with self._semaphore:
            try:
                response = await self.client.post(
                    self.url,
                    json={"query": query},
                    headers={"Content-Type": "application/json"},
                )
            except httpx.HTTPError as e:
                raise SubgraphException(
                    f"Subgraph request to {self.url} failed: {e}"
                ) from e

        if response.status_code >= 400:
            raise SubgraphException(
                f"Subgraph returned HTTP {response.status_code}: "
                f"{response.text[:200]}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise SubgraphException(
                f"Subgraph returned invalid JSON: {response.text[:200]}"
            ) from e

        if not isinstance(body, dict):
            raise SubgraphException(f"Unexpected subgraph response: {body}")
        if body.get("errors"):
            raise SubgraphException(f"Subgraph errors: {body['errors']}")
        if not isinstance(body.get("data"), dict):
            raise SubgraphException(
                f"Subgraph response has no data: {str(body)[:200]}"
            )

        return body["data"]

    async def get_gauge_voters(
        self, gauge: str, vote_deadline: int, lock_timestamp: int
    ) -> List[VoterVote]:
        """
        Get every voter of ``gauge`` with a lock newer than ``lock_timestamp``
        and their latest vote at or before ``vote_deadline``.

        Args:
            gauge: Gauge address (lowercase)
            vote_deadline: Votes after this timestamp are ignored
            lock_timestamp: Locks at or before this timestamp are ignored

        Returns:
            List[VoterVote]: one entry per voter that has a qualifying vote
        """
        voters: List[VoterVote] = []
        last_id = ""

        while True:
            data = await self._query(
                get_gauge_votes_query(
                    gauge, vote_deadline, lock_timestamp, last_id
                )
            )
            users = data.get("users")
            if not isinstance(users, list):
                raise SubgraphException(
                    f"Malformed users payload for gauge {gauge}"
                )

            for user in users:
                voter = self._parse_voter(user, gauge)
                if voter is not None:
                    voters.append(voter)

            if len(users) < PAGE_SIZE:
                break
            last_id = users[-1]["id"]

        return voters

    async def get_lock_snapshot(
        self, user: str, timestamp: int
    ) -> Optional[LockSnapshot]:
        """Get the lock snapshot in effect for ``user`` at ``timestamp``."""
        data = await self._query(get_lock_snapshot_query(user, timestamp))
        snapshots = data.get("lockSnapshots") or []
        if not snapshots:
            return None
        try:
            return LockSnapshot.from_dict(snapshots[0])
        except (KeyError, TypeError, ValueError) as e:
            raise SubgraphException(
                f"Malformed lock snapshot for {user}: {snapshots[0]}"
            ) from e

    @staticmethod
    def _parse_voter(user: Dict[str, Any], gauge: str) -> Optional[VoterVote]:
        try:
            votes = user.get("gaugeVotes") or []
            if not votes:
                return None
            locks = user.get("votingLocks") or []
            lock = LockSnapshot.from_dict(locks[0]) if locks else None
            return VoterVote(
                user=user["id"].lower(),
                lock=lock,
                weight=str(Decimal(str(votes[0]["weight"]))),
                vote_timestamp=int(votes[0]["timestamp"]),
            )
        except (
            AttributeError,
            InvalidOperation,
            KeyError,
            TypeError,
            ValueError,
        ) as e:
            raise SubgraphException(
                f"Malformed voter entry for gauge {gauge}: {user}"
            ) from e
