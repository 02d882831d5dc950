"""
Environment variable loading for Solana Forensics.

- SOLANA_NETWORK: devnet | mainnet (default: mainnet)
- SOLANA_RPC_URL: RPC endpoint; takes precedence over HELIUS_API_KEY
- HELIUS_API_KEY: Helius key used to build the RPC URL when SOLANA_RPC_URL is unset
- FORENSICS_*: analysis thresholds (see settings.py)

Loads .env from the project root when present.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# config is solana_forensics/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEVNET_RPC_URL = "https://api.devnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
HELIUS_DEVNET_URL_TEMPLATE = "https://devnet.helius-rpc.com/?api-key={key}"


def load_forensics_env() -> None:
    """Load .env from project root. Existing environment variables win."""
    if _ENV_PATH.exists():
        load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_list(name: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    """Comma-separated list; empty items dropped."""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    return tuple(s.strip() for s in raw.split(",") if s.strip())


def get_solana_network() -> str:
    """SOLANA_NETWORK from env: devnet | mainnet. Default: mainnet."""
    load_forensics_env()
    raw = env_str("SOLANA_NETWORK", "mainnet").lower()
    return "devnet" if raw == "devnet" else "mainnet"


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY (network-specific) > public endpoint.
    """
    load_forensics_env()
    url = env_str("SOLANA_RPC_URL")
    if url:
        return url
    network = get_solana_network()
    key = env_str("HELIUS_API_KEY")
    if key:
        template = HELIUS_DEVNET_URL_TEMPLATE if network == "devnet" else HELIUS_MAINNET_URL_TEMPLATE
        return template.format(key=key)
    return DEVNET_RPC_URL if network == "devnet" else MAINNET_RPC_URL


def mask_rpc_url(url: str) -> str:
    """Hide the API key in an RPC URL for logging."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
