"""
Tests for the canonical formatter and risk scorer.
"""

from __future__ import annotations

SERUM = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"


# --- Formatter ---


def test_format_sol_tiers():
    """Decimal places grow for small amounts; trailing zeros removed; never scientific notation."""
    from solana_forensics.analysis_engine.formatting import format_sol

    assert format_sol(1.5) == "1.5 SOL"
    assert format_sol(12.34567) == "12.3457 SOL"
    assert format_sol(0.5) == "0.5 SOL"
    assert format_sol(0.0005) == "0.0005 SOL"
    assert format_sol(0.000000123) == "0.000000123 SOL"
    assert format_sol(0) == "0 SOL"
    assert "e" not in format_sol(1e-8)


def test_format_sol_amount_usd():
    """USD at the configured price, two decimals for normal amounts; None stays None."""
    from solana_forensics.analysis_engine.formatting import format_sol_amount

    formatted = format_sol_amount(2.0, sol_usd_price=150.0)
    assert formatted.to_dict() == {"sol": "2 SOL", "usd": "$300.00"}
    assert format_sol_amount(0.00001, sol_usd_price=100.0).usd == "$0.001000"
    assert format_sol_amount(None) is None


def test_format_address_and_timestamp():
    """Addresses abbreviated as abcd...wxyz; timestamps ISO UTC or 'Unknown'."""
    from solana_forensics.analysis_engine.formatting import format_address, format_timestamp

    assert format_address("So11111111111111111111111111111111111111112") == "So11...1112"
    assert format_address("short") == "short"
    assert format_address(None) == ""
    assert format_timestamp(0) == "Unknown"
    assert format_timestamp(None) == "Unknown"
    assert format_timestamp(1_700_000_000) == "2023-11-14T22:13:20+00:00"


# --- Risk scorer ---


def test_clamp_and_label():
    """Scores clamp to [0, 100]; HIGH above 70, MEDIUM from 40."""
    from solana_forensics.analysis_engine.risk import RISK_HIGH, RISK_LOW, RISK_MEDIUM, clamp_risk, risk_label

    assert clamp_risk(-5) == 0.0
    assert clamp_risk(150) == 100.0
    assert risk_label(71) == RISK_HIGH
    assert risk_label(70) == RISK_MEDIUM
    assert risk_label(40) == RISK_MEDIUM
    assert risk_label(39.9) == RISK_LOW


def test_transaction_risk_score(make_transfer):
    """Amount tier + high-risk program + failure, clamped."""
    from solana_forensics.analysis_engine.risk import is_high_risk, transaction_risk_score

    assert transaction_risk_score(make_transfer("a", amount=5.0)) == 0.0
    assert transaction_risk_score(make_transfer("b", amount=50.0)) == 15.0
    assert transaction_risk_score(make_transfer("c", amount=500.0)) == 30.0
    risky = make_transfer("d", amount=5000.0, program_id=SERUM, err={"InstructionError": [0, "Custom"]})
    score = transaction_risk_score(risky, [SERUM])
    assert score == 80.0
    assert is_high_risk(score)
    assert transaction_risk_score(make_transfer("e", amount=None)) == 0.0


def test_amount_tiers_are_strictly_above_1000_100_10(make_transfer):
    """Tier boundaries are exclusive: 10 -> 0, 100 -> 15, 1000 -> 30, anything above 1000 -> 50."""
    from solana_forensics.analysis_engine.risk import transaction_risk_score

    scores = [transaction_risk_score(make_transfer(f"t{a}", amount=a)) for a in (10.0, 100.0, 1000.0, 1000.5, 100_000.0)]
    assert scores == [0.0, 15.0, 30.0, 50.0, 50.0]
