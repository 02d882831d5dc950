"""
Tests for env-backed settings and structured logging setup.
"""

from __future__ import annotations


def test_rpc_url_resolution(monkeypatch):
    """SOLANA_RPC_URL wins; else Helius from HELIUS_API_KEY; else the public endpoint."""
    from solana_forensics.config.env import DEVNET_RPC_URL, MAINNET_RPC_URL, get_solana_rpc_url

    monkeypatch.setenv("SOLANA_RPC_URL", "http://custom")
    monkeypatch.setenv("HELIUS_API_KEY", "k")
    assert get_solana_rpc_url() == "http://custom"

    monkeypatch.delenv("SOLANA_RPC_URL")
    monkeypatch.setenv("SOLANA_NETWORK", "devnet")
    assert get_solana_rpc_url() == "https://devnet.helius-rpc.com/?api-key=k"

    monkeypatch.delenv("HELIUS_API_KEY")
    assert get_solana_rpc_url() == DEVNET_RPC_URL
    monkeypatch.setenv("SOLANA_NETWORK", "mainnet")
    assert get_solana_rpc_url() == MAINNET_RPC_URL


def test_mask_rpc_url():
    """API keys are hidden in logged URLs."""
    from solana_forensics.config.env import mask_rpc_url

    assert mask_rpc_url("https://mainnet.helius-rpc.com/?api-key=secret") == "https://mainnet.helius-rpc.com/?api-key=***"
    assert mask_rpc_url("http://localhost:8899") == "http://localhost:8899"


def test_settings_env_overrides(monkeypatch, settings):
    """FORENSICS_* variables override defaults; malformed numbers fall back to defaults."""
    from solana_forensics.config.settings import DEFAULT_HIGH_RISK_PROGRAMS, get_settings

    assert settings.high_risk_programs == DEFAULT_HIGH_RISK_PROGRAMS
    assert settings.cluster_time_gap_sec == 600
    assert settings.api_cache_max_namespaces == 2_000

    monkeypatch.setenv("FORENSICS_CLUSTER_TIME_GAP_SEC", "120")
    monkeypatch.setenv("FORENSICS_LARGE_AMOUNT_THRESHOLD", "not-a-number")
    monkeypatch.setenv("FORENSICS_HIGH_RISK_PROGRAMS", "ProgA, ProgB,")
    get_settings.cache_clear()
    s = get_settings()
    assert s.cluster_time_gap_sec == 120
    assert s.large_amount_threshold == 10_000.0
    assert s.high_risk_programs == ("ProgA", "ProgB")
    assert s.rpc_url == "http://rpc.test"


def test_logging_import_and_bind():
    """get_logger and bind_focal_address return usable structlog loggers."""
    from solana_forensics.forensics_logging import bind_focal_address, get_logger

    log = get_logger("tests")
    log.info("test_event", value=1)
    bound = bind_focal_address("9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka")
    bound.debug("bound_event")
