from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class RawTransfer:
    tx_hash: str | None
    from_address: str
    to_address: str
    raw_amount: str | None
    transfer_decimals: str | None
    token_decimals: str | None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> RawTransfer:
        total = item.get("total") if isinstance(item.get("total"), dict) else {}
        token = item.get("token") if isinstance(item.get("token"), dict) else {}
        tx_hash = _string_or_none(item.get("transaction_hash") or item.get("tx_hash"))
        return cls(
            tx_hash=tx_hash,
            from_address=_address(item.get("from")),
            to_address=_address(item.get("to")),
            raw_amount=_string_or_none(total.get("value")),
            transfer_decimals=_string_or_none(total.get("decimals")),
            token_decimals=_string_or_none(token.get("decimals")),
        )


@dataclass(frozen=True)
class PairContext:
    pair_address: str
    price_usd: float
    price_native: float
    market_cap: float
    chain_id: str | None = None
    base_name: str | None = None
    base_symbol: str | None = None
    quote_symbol: str | None = None

    @classmethod
    def from_api(cls, pair: dict[str, Any]) -> PairContext:
        base = pair.get("baseToken") if isinstance(pair.get("baseToken"), dict) else {}
        quote = pair.get("quoteToken") if isinstance(pair.get("quoteToken"), dict) else {}
        market_cap = _to_float(pair.get("marketCap"), 0.0) or _to_float(pair.get("fdv"), 0.0)
        return cls(
            pair_address=str(pair.get("pairAddress") or "").strip().lower(),
            price_usd=_to_float(pair.get("priceUsd"), 0.0),
            price_native=_to_float(pair.get("priceNative"), 1.0),
            market_cap=market_cap,
            chain_id=_string_or_none(pair.get("chainId")),
            base_name=_string_or_none(base.get("name")),
            base_symbol=_string_or_none(base.get("symbol")),
            quote_symbol=_string_or_none(quote.get("symbol")),
        )


@dataclass(frozen=True)
class Trade:
    tx_hash: str
    buyer: str
    amount_usd: float
    amount_native: float
    tokens_received: float
    position: float = 0.0


class Verdict(Enum):
    BUY = "buy"
    NOT_A_BUY = "not_a_buy"
    BELOW_THRESHOLD = "below_threshold"


@dataclass(frozen=True)
class Classification:
    verdict: Verdict
    trade: Trade | None = None
    amount_usd: float = 0.0


def _address(value: Any) -> str:
    if isinstance(value, dict):
        value = value.get("hash")
    return str(value or "").strip().lower()


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
