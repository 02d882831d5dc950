"""
Transfer records consumed by every analysis component.

A Transfer is one observed value movement with its metadata. Optional fields
stay None when the source does not provide them; amounts that are not finite
non-negative numbers are treated as absent so they never reach an aggregate.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from solana_forensics.core.exceptions import InvalidTransferError
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

MAX_BLOCK_TIME = 253_402_300_799  # 9999-12-31T23:59:59Z


def clean_amount(value: Any) -> float | None:
    """Return value as a finite, non-negative float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        return None
    return amount


def _clean_address(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def clean_block_time(value: Any) -> int | None:
    """Return value as unix seconds within datetime's range (up to year 9999), or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if seconds < 0 or seconds > MAX_BLOCK_TIME:
        return None
    return seconds


@dataclass(frozen=True)
class TokenTransfer:
    """SPL token movement referenced by a transfer."""

    mint: str
    amount: float | None = None

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> "TokenTransfer | None":
        mint = _clean_address(item.get("mint"))
        if mint is None:
            return None
        return cls(mint=mint, amount=clean_amount(item.get("amount")))

    def to_dict(self) -> dict[str, Any]:
        return {"mint": self.mint, "amount": self.amount}


@dataclass(frozen=True)
class Transfer:
    """
    Normalized transfer record for one transaction signature.

    Immutable once built. Amounts are in SOL.
    """

    signature: str
    block_time: int | None = None
    """Unix timestamp (seconds); None when the block time is unknown."""
    sender: str | None = None
    receiver: str | None = None
    amount: float | None = None
    """Finite, non-negative SOL amount; None when absent or malformed."""
    program_id: str | None = None
    fee: float | None = None
    err: Any = None
    """Failure marker from RPC; None when the transaction succeeded."""
    token_transfers: tuple[TokenTransfer, ...] = field(default_factory=tuple)

    @property
    def failed(self) -> bool:
        return self.err is not None

    def touches(self, address: str) -> bool:
        return self.sender == address or self.receiver == address

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> "Transfer":
        """
        Build from a wire payload.

        Accepts snake_case or camelCase keys, and the nested
        {signature, blockTime, parsedInfo: {..., rawData: {tokenTransfers}}} shape.
        Raises InvalidTransferError if the payload has no signature.
        """
        if not isinstance(item, dict):
            raise InvalidTransferError(f"transfer payload must be an object, got {type(item).__name__}")
        signature = _clean_address(item.get("signature"))
        if signature is None:
            raise InvalidTransferError("transfer payload has no signature")

        info = item.get("parsedInfo") if isinstance(item.get("parsedInfo"), dict) else item
        raw_tokens = info.get("tokenTransfers", info.get("token_transfers"))
        if raw_tokens is None and isinstance(info.get("rawData"), dict):
            raw_tokens = info["rawData"].get("tokenTransfers")
        tokens: list[TokenTransfer] = []
        for t in raw_tokens or []:
            if isinstance(t, TokenTransfer):
                tokens.append(t)
            elif isinstance(t, dict):
                token = TokenTransfer.from_dict(t)
                if token is not None:
                    tokens.append(token)

        return cls(
            signature=signature,
            block_time=clean_block_time(item.get("blockTime", item.get("block_time"))),
            sender=_clean_address(info.get("sender")),
            receiver=_clean_address(info.get("receiver")),
            amount=clean_amount(info.get("amount")),
            program_id=_clean_address(info.get("programId", info.get("program_id"))),
            fee=clean_amount(info.get("fee")),
            err=item.get("err"),
            token_transfers=tuple(tokens),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature,
            "blockTime": self.block_time,
            "sender": self.sender,
            "receiver": self.receiver,
            "amount": self.amount,
            "programId": self.program_id,
            "fee": self.fee,
            "err": self.err,
            "tokenTransfers": [t.to_dict() for t in self.token_transfers],
        }


def parse_transfers(items: Iterable[Any]) -> list[Transfer]:
    """
    Convert payloads to Transfers, keeping input order.

    Transfer instances pass through. Payloads that cannot be parsed are
    skipped and logged; one bad record never aborts the batch.
    """
    out: list[Transfer] = []
    skipped = 0
    for item in items:
        if isinstance(item, Transfer):
            out.append(item)
            continue
        try:
            out.append(Transfer.from_dict(item))
        except InvalidTransferError as e:
            skipped += 1
            logger.warning("transfer_skipped", reason=str(e))
    if skipped:
        logger.info("transfers_parsed", parsed=len(out), skipped=skipped)
    return out


def sort_chronologically(transfers: Iterable[Transfer]) -> list[Transfer]:
    """Stable sort by block time; missing block time sorts first (as 0)."""
    return sorted(transfers, key=lambda t: t.block_time or 0)
