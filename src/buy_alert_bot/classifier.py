from __future__ import annotations

from .amounts import normalize_amount, resolve_decimals
from .types import Classification, RawTransfer, Trade, Verdict

_NOT_A_BUY = Classification(Verdict.NOT_A_BUY)


def is_candidate_buy(transfer: RawTransfer, pair_address: str) -> bool:
    # Tokens leaving the pool towards a wallet are a purchase from the pool.
    pair = pair_address.strip().lower()
    sender = transfer.from_address.strip().lower()
    receiver = transfer.to_address.strip().lower()
    if not pair or sender != pair:
        return False
    return receiver != pair


def classify_transfer(
    transfer: RawTransfer,
    pair_address: str,
    price_usd: float,
    price_native: float,
    min_buy_usd: float,
) -> Classification:
    if not transfer.tx_hash:
        return _NOT_A_BUY
    if not is_candidate_buy(transfer, pair_address):
        return _NOT_A_BUY

    decimals = resolve_decimals(transfer.transfer_decimals, transfer.token_decimals)
    tokens = normalize_amount(transfer.raw_amount, decimals)
    amount_usd = tokens * price_usd

    if amount_usd < min_buy_usd:
        return Classification(Verdict.BELOW_THRESHOLD, amount_usd=amount_usd)

    amount_native = amount_usd / price_native if price_native > 0 else 0.0
    trade = Trade(
        tx_hash=transfer.tx_hash,
        buyer=transfer.to_address.strip().lower(),
        amount_usd=amount_usd,
        amount_native=amount_native,
        tokens_received=tokens,
        position=0.0,
    )
    return Classification(Verdict.BUY, trade=trade, amount_usd=amount_usd)
