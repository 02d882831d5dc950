"""Ingestion: RPC acquisition and normalization into Transfer records."""

from solana_forensics.ingestion.helius import (
    SolanaRpcClient,
    fetch_transfers,
    normalize_rpc_transaction,
)

__all__ = ["SolanaRpcClient", "fetch_transfers", "normalize_rpc_transaction"]
