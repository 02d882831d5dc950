"""
Display formatting for amounts, addresses and timestamps.

The one place SOL/USD strings are produced; reports, CLI output and the API
all go through these helpers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

DEFAULT_SOL_USD_PRICE = 160.0


@dataclass(frozen=True)
class FormattedAmount:
    sol: str
    usd: str

    def to_dict(self) -> dict[str, str]:
        return {"sol": self.sol, "usd": self.usd}


def _strip_zeros(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def format_sol(amount: float) -> str:
    """Fixed-point SOL string (never scientific notation), trailing zeros removed."""
    magnitude = abs(amount)
    if magnitude < 0.000001:
        digits = 9
    elif magnitude < 0.001:
        digits = 7
    elif magnitude < 1:
        digits = 6
    else:
        digits = 4
    return f"{_strip_zeros(f'{amount:.{digits}f}')} SOL"


def format_usd(amount_usd: float) -> str:
    magnitude = abs(amount_usd)
    if magnitude < 0.00001:
        digits = 8
    elif magnitude < 0.01:
        digits = 6
    elif magnitude < 1:
        digits = 4
    else:
        digits = 2
    return f"${amount_usd:.{digits}f}"


def format_sol_amount(
    amount: float | None,
    sol_usd_price: float = DEFAULT_SOL_USD_PRICE,
) -> FormattedAmount | None:
    """SOL and approximate USD strings for an amount; None when amount is None."""
    if amount is None:
        return None
    return FormattedAmount(sol=format_sol(amount), usd=format_usd(amount * sol_usd_price))


def format_address(address: str | None, length: int = 4) -> str:
    """Abbreviate an address as 'abcd...wxyz'."""
    if not address:
        return ""
    if len(address) <= 2 * length:
        return address
    return f"{address[:length]}...{address[-length:]}"


def format_timestamp(timestamp: int | None) -> str:
    """ISO 8601 UTC string for a unix timestamp; 'Unknown' when missing."""
    if not timestamp:
        return "Unknown"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
