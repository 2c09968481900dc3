import asyncio

import httpx

from buy_alert_bot.http_client import JsonFetcher, RequestGate
from buy_alert_bot.market_data import MarketDataFetcher, select_pair


def test_select_pair_prefers_configured_chain() -> None:
    payload = {"pairs": [{"chainId": "base", "pairAddress": "0x1"}, {"chainId": "megaeth", "pairAddress": "0x2"}]}
    assert select_pair(payload, "megaeth")["pairAddress"] == "0x2"


def test_select_pair_falls_back_to_first() -> None:
    payload = {"pairs": [{"chainId": "base", "pairAddress": "0x1"}, {"chainId": "eth", "pairAddress": "0x2"}]}
    assert select_pair(payload, "megaeth")["pairAddress"] == "0x1"


def test_select_pair_handles_empty_results() -> None:
    assert select_pair({"pairs": []}, "megaeth") is None
    assert select_pair({"pairs": None}, "megaeth") is None
    assert select_pair([], "megaeth") is None


def test_fetch_pair_builds_context() -> None:
    seen_urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_urls.append(str(request.url))
        return httpx.Response(
            200,
            json={
                "pairs": [
                    {
                        "chainId": "megaeth",
                        "pairAddress": "0xABCDEF",
                        "priceUsd": "0.0025",
                        "priceNative": "0.000001",
                        "fdv": 250000,
                        "baseToken": {"name": "Mega Dog", "symbol": "MDOG"},
                        "quoteToken": {"symbol": "WETH"},
                    }
                ]
            },
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    market = MarketDataFetcher(
        JsonFetcher(RequestGate(0.0), client=client), "https://api.dexscreener.com/", "0xtoken", "megaeth"
    )
    pair = asyncio.run(market.fetch_pair())

    assert seen_urls == ["https://api.dexscreener.com/latest/dex/tokens/0xtoken"]
    assert pair is not None
    assert pair.pair_address == "0xabcdef"
    assert pair.price_usd == 0.0025
    assert pair.price_native == 0.000001
    assert pair.market_cap == 250000.0
    assert pair.base_symbol == "MDOG"
    assert pair.quote_symbol == "WETH"


def test_fetch_pair_returns_none_without_pairs() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"pairs": None})))
    market = MarketDataFetcher(JsonFetcher(RequestGate(0.0), client=client), "https://x", "0xtoken", "megaeth")
    assert asyncio.run(market.fetch_pair()) is None
