from __future__ import annotations

import math
from dataclasses import dataclass
from html import escape

from .types import PairContext, Trade


@dataclass(frozen=True)
class AlertStyle:
    token_address: str
    explorer_url: str
    dex_chain_id: str
    token_name: str | None = None
    token_symbol: str | None = None
    emoji: str = "🟢"
    emoji_value: float = 10.0
    max_emojis: int = 30


def format_number(value: float, decimals: int = 2) -> str:
    if value >= 1e9:
        return f"{value / 1e9:.{decimals}f}B"
    if value >= 1e6:
        return f"{value / 1e6:.{decimals}f}M"
    if value >= 1e3:
        return f"{value / 1e3:.{decimals}f}K"
    text = f"{value:,.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_price(price: float) -> str:
    if price < 0.00000001:
        return f"{price:.12f}"
    if price < 0.0000001:
        return f"{price:.10f}"
    if price < 0.000001:
        return f"{price:.8f}"
    if price < 0.0001:
        return f"{price:.6f}"
    if price < 0.01:
        return f"{price:.4f}"
    return f"{price:.2f}"


def format_usd(amount: float) -> str:
    return "$" + format_number(amount, 2)


def emoji_count(amount_usd: float, emoji_value: float = 10.0, max_emojis: int = 30) -> int:
    if math.isnan(amount_usd):
        return 1
    if math.isinf(amount_usd):
        return max_emojis if amount_usd > 0 else 1
    per_emoji = emoji_value if emoji_value > 0 else 10.0
    return min(max(1, int(amount_usd // per_emoji)), max_emojis)


def emoji_bar(amount_usd: float, emoji: str, emoji_value: float = 10.0, max_emojis: int = 30) -> str:
    return emoji * emoji_count(amount_usd, emoji_value, max_emojis)


def short_address(address: str | None) -> str:
    if not address:
        return "Unknown"
    addr = address.strip()
    if len(addr) <= 12:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"


def build_address_link(explorer_url: str, address: str) -> str:
    return f"{explorer_url.rstrip('/')}/address/{address}"


def build_tx_link(explorer_url: str, tx_hash: str) -> str:
    return f"{explorer_url.rstrip('/')}/tx/{tx_hash}"


def build_dex_link(chain_id: str, token_address: str) -> str:
    return f"https://dexscreener.com/{chain_id}/{token_address}"


def _anchor(url: str, label: str) -> str:
    return f'<a href="{escape(url, quote=True)}">{escape(label)}</a>'


def format_buy_alert(trade: Trade, pair: PairContext, style: AlertStyle) -> str:
    name = style.token_name or pair.base_name or "Token"
    symbol = style.token_symbol or pair.base_symbol or "TKN"
    quote_symbol = pair.quote_symbol or "ETH"

    buyer_link = _anchor(build_address_link(style.explorer_url, trade.buyer), "Buyer") if trade.buyer else "Buyer"
    tx_link = _anchor(build_tx_link(style.explorer_url, trade.tx_hash), "Tx") if trade.tx_hash else "Tx"
    dex_url = build_dex_link(style.dex_chain_id, style.token_address)
    links = " | ".join(
        [buyer_link, tx_link, _anchor(dex_url, "Dexs"), _anchor(dex_url, f"Buy {symbol}")]
    )

    return (
        f"<b>{escape(name)} Buy!</b>\n"
        f"{emoji_bar(trade.amount_usd, style.emoji, style.emoji_value, style.max_emojis)}\n"
        f"💰 Spent {format_usd(trade.amount_usd)} "
        f"({format_number(trade.amount_native, 4)} {escape(quote_symbol)})\n"
        f"🪙 Got {format_number(trade.tokens_received)} {escape(symbol)}\n"
        f"🎯 Position +{format_number(trade.position)}%\n"
        f"🏷 Price ${format_price(pair.price_usd)}\n"
        f"💸 Market Cap {format_usd(pair.market_cap)}\n\n"
        f"{links}"
    )
