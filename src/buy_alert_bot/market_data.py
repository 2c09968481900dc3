from __future__ import annotations

import logging
from typing import Any

from .http_client import JsonFetcher
from .types import PairContext

logger = logging.getLogger(__name__)


class MarketDataFetcher:
    """Looks up the tracked token's trading pair on DexScreener."""

    def __init__(self, fetcher: JsonFetcher, api_base: str, token_address: str, chain_id: str) -> None:
        self.fetcher = fetcher
        self.api_base = api_base.rstrip("/")
        self.token_address = token_address
        self.chain_id = chain_id

    async def fetch_pair(self) -> PairContext | None:
        data = await self.fetcher.get_json(f"{self.api_base}/latest/dex/tokens/{self.token_address}")
        pair = select_pair(data, self.chain_id)
        if pair is None:
            logger.debug("No DexScreener pairs for %s", self.token_address)
            return None
        return PairContext.from_api(pair)


def select_pair(payload: Any, chain_id: str) -> dict[str, Any] | None:
    if not isinstance(payload, dict):
        return None
    pairs = payload.get("pairs")
    if not isinstance(pairs, list):
        return None
    pairs = [p for p in pairs if isinstance(p, dict)]
    if not pairs:
        return None

    for pair in pairs:
        if pair.get("chainId") == chain_id:
            return pair
    return pairs[0]
