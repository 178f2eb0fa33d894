from __future__ import annotations

from decimal import Decimal, localcontext

from gauge_unstaker.core.constants.base import REWARD_TOKEN_DECIMALS


def from_raw_amount(raw: int, decimals: int = REWARD_TOKEN_DECIMALS) -> Decimal:
    raw = int(raw)
    with localcontext() as ctx:
        # wide enough to keep every digit of ``raw``
        ctx.prec = max(ctx.prec, len(str(abs(raw))))
        return Decimal(raw).scaleb(-int(decimals))


def format_units(raw: int, decimals: int = REWARD_TOKEN_DECIMALS) -> str:
    """Render a raw token amount without trailing zeros (``1500000000000000000`` -> ``"1.5"``)."""
    value = from_raw_amount(raw, decimals)
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
