"""
Pytest fixtures for solana_forensics tests. Builds transfer lists in memory; no RPC.
"""

from __future__ import annotations

import pytest

# Valid Solana pubkeys (base58, 32 bytes)
FOCAL = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
COUNTERPARTY = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"

BASE_TIME = 1_700_000_000


@pytest.fixture
def make_transfer():
    """Factory: make_transfer(sig, t=..., sender=..., receiver=..., amount=..., ...) -> Transfer."""
    from solana_forensics.analysis_engine.models import TokenTransfer, Transfer

    def _make(
        signature: str,
        block_time: int | None = BASE_TIME,
        sender: str | None = None,
        receiver: str | None = None,
        amount: float | None = None,
        program_id: str | None = None,
        err=None,
        mints: tuple[str, ...] = (),
    ) -> Transfer:
        return Transfer(
            signature=signature,
            block_time=block_time,
            sender=sender,
            receiver=receiver,
            amount=amount,
            program_id=program_id,
            err=err,
            token_transfers=tuple(TokenTransfer(mint=m, amount=1.0) for m in mints),
        )

    return _make


@pytest.fixture
def three_fives(make_transfer):
    """Three 5.0 SOL transfers focal -> counterparty within one minute."""
    return [
        make_transfer(f"sig{i}", BASE_TIME + 20 * i, FOCAL, COUNTERPARTY, 5.0)
        for i in range(3)
    ]


@pytest.fixture
def settings(monkeypatch):
    """Fresh Settings from a clean environment (no .env overrides leak between tests)."""
    from solana_forensics.config.settings import get_settings

    for name in ("SOLANA_RPC_URL", "HELIUS_API_KEY", "SOLANA_NETWORK"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SOLANA_RPC_URL", "http://rpc.test")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def client(settings):
    """FastAPI TestClient with a fresh result cache."""
    from fastapi.testclient import TestClient

    from solana_forensics.api_server import server

    server.result_cache.clear()
    return TestClient(server.app)
