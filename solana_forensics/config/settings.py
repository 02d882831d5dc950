"""
Application settings.

Typed, immutable settings resolved from the environment once per process.
Tests call get_settings.cache_clear() after changing env vars.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from solana_forensics.config.env import (
    env_float,
    env_int,
    env_list,
    get_solana_rpc_url,
    load_forensics_env,
)

# Serum DEX v3; flagged by the simple suspicious-program check
DEFAULT_HIGH_RISK_PROGRAMS = ("9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for ingestion, analysis thresholds and API limits."""

    rpc_url: str = ""
    signatures_page_size: int = 50
    max_signatures: int = 200
    max_retries: int = 3
    retry_base_delay_sec: float = 0.5
    request_timeout_sec: float = 30.0

    sol_usd_price: float = 160.0
    large_amount_threshold: float = 10_000.0
    high_frequency_gap_sec: int = 5
    high_risk_programs: tuple[str, ...] = field(default=DEFAULT_HIGH_RISK_PROGRAMS)
    cluster_time_gap_sec: int = 600

    api_max_transfers: int = 5_000
    api_cache_max_namespaces: int = 2_000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings from env (FORENSICS_* overrides code defaults)."""
    load_forensics_env()
    return Settings(
        rpc_url=get_solana_rpc_url(),
        signatures_page_size=env_int("FORENSICS_SIGNATURES_PAGE_SIZE", 50),
        max_signatures=env_int("FORENSICS_MAX_SIGNATURES", 200),
        max_retries=env_int("FORENSICS_MAX_RETRIES", 3),
        retry_base_delay_sec=env_float("FORENSICS_RETRY_BASE_DELAY_SEC", 0.5),
        request_timeout_sec=env_float("FORENSICS_REQUEST_TIMEOUT_SEC", 30.0),
        sol_usd_price=env_float("FORENSICS_SOL_USD_PRICE", 160.0),
        large_amount_threshold=env_float("FORENSICS_LARGE_AMOUNT_THRESHOLD", 10_000.0),
        high_frequency_gap_sec=env_int("FORENSICS_HIGH_FREQUENCY_GAP_SEC", 5),
        high_risk_programs=env_list("FORENSICS_HIGH_RISK_PROGRAMS", DEFAULT_HIGH_RISK_PROGRAMS),
        cluster_time_gap_sec=env_int("FORENSICS_CLUSTER_TIME_GAP_SEC", 600),
        api_max_transfers=env_int("FORENSICS_API_MAX_TRANSFERS", 5_000),
        api_cache_max_namespaces=env_int("FORENSICS_API_CACHE_MAX_NAMESPACES", 2_000),
    )
