from __future__ import annotations

from typing import Any

from .http_client import JsonFetcher, RetryPolicy
from .types import RawTransfer


class TransferFeedFetcher:
    """Reads the latest token transfers from a Blockscout explorer."""

    def __init__(
        self,
        fetcher: JsonFetcher,
        explorer_url: str,
        token_address: str,
        token_type: str = "ERC-20",
    ) -> None:
        self.fetcher = fetcher
        self.explorer_url = explorer_url.rstrip("/")
        self.token_address = token_address
        self.token_type = token_type

    async def fetch_transfers(self, policy: RetryPolicy | None = None) -> list[RawTransfer]:
        data = await self.fetcher.get_json(
            f"{self.explorer_url}/api/v2/tokens/{self.token_address}/transfers",
            params={"type": self.token_type},
            policy=policy,
        )
        return parse_transfers(data)

    async def fetch_transaction_ids(self, policy: RetryPolicy | None = None) -> list[str]:
        transfers = await self.fetch_transfers(policy=policy)
        return [t.tx_hash for t in transfers if t.tx_hash]


def parse_transfers(payload: Any) -> list[RawTransfer]:
    if not isinstance(payload, dict):
        return []
    items = payload.get("items")
    if not isinstance(items, list):
        return []
    return [RawTransfer.from_api(item) for item in items if isinstance(item, dict)]
