from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any

DEFAULT_DECIMALS = 18
MAX_DECIMALS = 36

# uint256 amounts have up to 78 digits; keep every one of them until the final float().
_PRECISION = 96


def resolve_decimals(*candidates: Any) -> int:
    for candidate in candidates:
        if candidate is None or candidate == "":
            continue
        try:
            value = int(str(candidate).strip())
        except ValueError:
            continue
        if 0 <= value <= MAX_DECIMALS:
            return value
    return DEFAULT_DECIMALS


def normalize_amount(raw_amount: Any, decimals: int) -> float:
    """Scale a raw on-chain integer amount down by ``10**decimals``.

    The division is done with ``Decimal`` so large integers keep their digits,
    but the result is returned as a ``float``. Values past ~15 significant
    digits are rounded there, which is fine for fiat display.
    """
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"decimals must be within [0, {MAX_DECIMALS}], got {decimals}")

    if raw_amount is None:
        return 0.0
    # Base units are plain non-negative integers; fractions and exponents are malformed.
    text = str(raw_amount).strip()
    if not text.isascii() or not text.isdigit():
        return 0.0
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return 0.0

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = float(amount.scaleb(-decimals))
    return value if math.isfinite(value) else 0.0
