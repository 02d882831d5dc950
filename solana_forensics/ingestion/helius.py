"""
Fetch an address history from Helius / Solana JSON-RPC and normalize it to Transfers.

Uses getSignaturesForAddress (paged with `before`) + getTransaction (jsonParsed).
Each transaction becomes one Transfer: the first System Program transfer gives
sender, receiver and amount; SPL token balance changes give token transfers.
Retries 429 / 5xx / network errors with exponential backoff. A caller-supplied
threading.Event is checked before every request and during backoff waits.
"""

from __future__ import annotations

import threading
from typing import Any

import requests
from solders.pubkey import Pubkey

from solana_forensics.analysis_engine.models import TokenTransfer, Transfer, clean_amount, clean_block_time
from solana_forensics.config.env import mask_rpc_url
from solana_forensics.config.settings import Settings, get_settings
from solana_forensics.core.exceptions import AcquisitionCancelled, AcquisitionError
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
RPC_REQUEST_ID = "solana-forensics"
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


# -----------------------------------------------------------------------------
# Normalization (pure)
# -----------------------------------------------------------------------------


def _message(tx: dict[str, Any]) -> dict[str, Any]:
    return ((tx.get("transaction") or {}).get("message")) or {}


def _instructions(tx: dict[str, Any]) -> list[dict[str, Any]]:
    return [ix for ix in _message(tx).get("instructions") or [] if isinstance(ix, dict)]


def _system_transfer(tx: dict[str, Any]) -> tuple[str | None, str | None, float | None]:
    """(sender, receiver, SOL amount) from the first parsed System Program transfer."""
    for ix in _instructions(tx):
        if (ix.get("programId") or "") != SYSTEM_PROGRAM_ID:
            continue
        parsed = ix.get("parsed")
        if not isinstance(parsed, dict) or parsed.get("type") not in ("transfer", "transferWithSeed"):
            continue
        info = parsed.get("info") or {}
        lamports = clean_amount(info.get("lamports"))
        return (
            (info.get("source") or "").strip() or None,
            (info.get("destination") or "").strip() or None,
            lamports / LAMPORTS_PER_SOL if lamports is not None else None,
        )
    return None, None, None


def _token_ui_amount(balance: dict[str, Any]) -> float:
    ui = balance.get("uiTokenAmount") or {}
    amount = clean_amount(ui.get("uiAmountString", ui.get("uiAmount")))
    return amount or 0.0


def _token_transfers(meta: dict[str, Any]) -> tuple[TokenTransfer, ...]:
    """One TokenTransfer per token account whose balance changed (absolute delta)."""
    pre = {
        (b.get("accountIndex"), b.get("mint")): _token_ui_amount(b)
        for b in meta.get("preTokenBalances") or []
        if isinstance(b, dict) and b.get("mint")
    }
    out: list[TokenTransfer] = []
    for b in meta.get("postTokenBalances") or []:
        if not isinstance(b, dict) or not b.get("mint"):
            continue
        key = (b.get("accountIndex"), b.get("mint"))
        delta = _token_ui_amount(b) - pre.pop(key, 0.0)
        if delta != 0:
            out.append(TokenTransfer(mint=b["mint"], amount=abs(delta)))
    # accounts closed in this transaction only appear in preTokenBalances
    for (_, mint), amount in pre.items():
        if amount:
            out.append(TokenTransfer(mint=mint, amount=amount))
    return tuple(out)


def normalize_rpc_transaction(sig_info: dict[str, Any], tx: dict[str, Any] | None) -> Transfer:
    """
    Build a Transfer from a getSignaturesForAddress entry and its getTransaction result.

    A missing transaction body still yields a Transfer carrying the signature,
    block time and err from sig_info.
    """
    tx = tx or {}
    meta = tx.get("meta") or {}
    sender, receiver, amount = _system_transfer(tx)
    instructions = _instructions(tx)
    program_id = (instructions[0].get("programId") or None) if instructions else None
    fee = clean_amount(meta.get("fee"))
    block_time = tx.get("blockTime", sig_info.get("blockTime"))
    return Transfer(
        signature=str(sig_info.get("signature") or ""),
        block_time=clean_block_time(block_time),
        sender=sender,
        receiver=receiver,
        amount=amount,
        program_id=program_id,
        fee=fee / LAMPORTS_PER_SOL if fee is not None else None,
        err=meta.get("err", sig_info.get("err")),
        token_transfers=_token_transfers(meta),
    )


# -----------------------------------------------------------------------------
# RPC client
# -----------------------------------------------------------------------------


class SolanaRpcClient:
    """Minimal JSON-RPC client with retry/backoff and cooperative cancellation."""

    def __init__(
        self,
        settings: Settings | None = None,
        cancel_event: threading.Event | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.cancel_event = cancel_event or threading.Event()
        self.session = session or requests.Session()

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise AcquisitionCancelled("acquisition cancelled")

    def _backoff(self, attempt: int) -> None:
        delay = self.settings.retry_base_delay_sec * (2 ** attempt)
        if self.cancel_event.wait(delay):
            raise AcquisitionCancelled("acquisition cancelled during backoff")

    def call(self, method: str, params: list[Any]) -> Any:
        """POST one JSON-RPC request and return its result; raise AcquisitionError on failure."""
        payload = {"jsonrpc": "2.0", "id": RPC_REQUEST_ID, "method": method, "params": params}
        attempts = max(1, self.settings.max_retries)
        last_error = ""
        for attempt in range(attempts):
            self._check_cancelled()
            try:
                r = self.session.post(
                    self.settings.rpc_url,
                    json=payload,
                    timeout=self.settings.request_timeout_sec,
                )
            except requests.RequestException as e:
                last_error = str(e)
                logger.warning("rpc_request_error", method=method, attempt=attempt + 1, error=last_error)
            else:
                if r.status_code in RETRYABLE_STATUS:
                    last_error = f"HTTP {r.status_code}"
                    logger.warning("rpc_retryable_status", method=method, attempt=attempt + 1, status=r.status_code)
                elif r.status_code >= 400:
                    raise AcquisitionError(f"{method} failed with HTTP {r.status_code}")
                else:
                    data = r.json()
                    if data.get("error"):
                        raise AcquisitionError(f"{method} RPC error: {data['error']}")
                    return data.get("result")
            if attempt < attempts - 1:
                self._backoff(attempt)
        raise AcquisitionError(f"{method} failed after {attempts} attempts: {last_error}")

    def get_signatures(self, address: str, before: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        opts: dict[str, Any] = {"limit": limit or self.settings.signatures_page_size}
        if before:
            opts["before"] = before
        result = self.call("getSignaturesForAddress", [address, opts])
        return result if isinstance(result, list) else []

    def get_transaction(self, signature: str) -> dict[str, Any] | None:
        params = [signature, {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0}]
        result = self.call("getTransaction", params)
        return result if isinstance(result, dict) else None


def fetch_transfers(
    address: str,
    settings: Settings | None = None,
    cancel_event: threading.Event | None = None,
    session: requests.Session | None = None,
) -> list[Transfer]:
    """
    Page through address history (newest first) up to settings.max_signatures
    and return normalized Transfers.

    Raises ValueError for an invalid base58 address, AcquisitionError when RPC
    keeps failing and AcquisitionCancelled once cancel_event is set.
    """
    address = (address or "").strip()
    try:
        Pubkey.from_string(address)
    except Exception as e:
        raise ValueError(f"invalid Solana address: {address!r}") from e

    client = SolanaRpcClient(settings, cancel_event, session)
    cap = client.settings.max_signatures
    logger.info("fetch_transfers_start", address=address[:16], rpc=mask_rpc_url(client.settings.rpc_url), cap=cap)

    transfers: list[Transfer] = []
    before: str | None = None
    while len(transfers) < cap:
        page = client.get_signatures(address, before, min(client.settings.signatures_page_size, cap - len(transfers)))
        if not page:
            break
        for sig_info in page:
            signature = sig_info.get("signature")
            if not signature:
                continue
            transfers.append(normalize_rpc_transaction(sig_info, client.get_transaction(signature)))
            if len(transfers) >= cap:
                break
        before = page[-1].get("signature")
        if not before:
            break

    logger.info("fetch_transfers_done", address=address[:16], tx_count=len(transfers))
    return transfers
