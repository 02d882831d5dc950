"""
Tests for entity pattern detection, entity type, entity risk and counterparty extraction.
"""

from __future__ import annotations

import pytest

FOCAL = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
OTHER = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
BINANCE = "MYPTXJLxnU9JoyY7eMN3anXTsCKfQr3dkXLR9RVzYhT"
JUPITER_V4 = "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB"
MAGIC_EDEN_V2 = "M2mx93ekt1fmXSVkTrUL9xVFHkmME8HTUi5Cyc5aF7K"
SERUM = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
# 2023-11-14 22:13:20 UTC
T0 = 1_700_000_000
DAY = 86_400


def test_dex_pattern_and_entity_type(make_transfer):
    """Ten DEX interactions -> DEX pattern (confidence 1.0) and entity type DEX."""
    from solana_forensics.analysis_engine.entity import analyze_entity

    transfers = [
        make_transfer(f"s{i}", T0 + i * DAY, FOCAL, OTHER, 1.0, program_id=JUPITER_V4) for i in range(10)
    ]
    analysis = analyze_entity(FOCAL, transfers)
    assert [p.type for p in analysis.patterns] == ["DEX"]
    assert analysis.patterns[0].confidence == 1.0
    assert analysis.type == "DEX"
    assert analysis.transaction_count == 10
    assert analysis.total_volume == 10.0
    assert analysis.first_seen == T0
    assert analysis.last_seen == T0 + 9 * DAY
    assert analysis.associated_addresses == [OTHER]


def test_below_category_minimum_is_unknown(make_transfer):
    """Four NFT marketplace interactions (minimum 5) -> no pattern, UNKNOWN."""
    from solana_forensics.analysis_engine.entity import ENTITY_UNKNOWN, analyze_entity

    transfers = [
        make_transfer(f"s{i}", T0 + i * DAY, FOCAL, OTHER, 1.0, program_id=MAGIC_EDEN_V2) for i in range(4)
    ]
    analysis = analyze_entity(FOCAL, transfers)
    assert analysis.patterns == []
    assert analysis.type == ENTITY_UNKNOWN
    assert analysis.risk_score == 0.0


def test_token_holder_confidence(make_transfer):
    """Five interactions with one mint -> TOKEN_HOLDER with confidence 0.5."""
    from solana_forensics.analysis_engine.entity import ENTITY_TOKEN_HOLDER, detect_patterns

    transfers = [make_transfer(f"s{i}", T0 + i * DAY, mints=("MintA",)) for i in range(5)]
    patterns = detect_patterns(transfers)
    assert [(p.type, p.confidence) for p in patterns] == [(ENTITY_TOKEN_HOLDER, 0.5)]


def test_active_trader_hours_use_utc(make_transfer):
    """Three transfers in each of three UTC hours -> ACTIVE_TRADER with confidence 3/24."""
    from solana_forensics.analysis_engine.entity import ENTITY_ACTIVE_TRADER, detect_patterns

    midnight = T0 - (T0 % DAY)
    transfers = [
        make_transfer(f"h{hour}d{day}", midnight + day * DAY + hour * 3600)
        for hour in (1, 5, 9)
        for day in range(3)
    ]
    patterns = detect_patterns(transfers)
    assert len(patterns) == 1
    assert patterns[0].type == ENTITY_ACTIVE_TRADER
    assert patterns[0].confidence == pytest.approx(3 / 24)
    assert "1, 5, 9" in patterns[0].evidence[0]


def test_high_risk_program_raises_entity_risk(make_transfer):
    """Interaction with a designated high-risk program adds a HIGH_RISK pattern worth 30 risk."""
    from solana_forensics.analysis_engine.entity import ENTITY_HIGH_RISK, analyze_entity

    transfers = [make_transfer(f"s{i}", T0 + i * DAY, FOCAL, OTHER, 1.0, program_id=SERUM) for i in range(3)]
    analysis = analyze_entity(FOCAL, transfers, high_risk_programs=[SERUM])
    assert analysis.type == ENTITY_HIGH_RISK
    assert analysis.risk_score == 30.0
    assert analyze_entity(FOCAL, transfers).risk_score == 0.0


def test_entity_risk_volume_and_frequency(make_transfer):
    """Volume > 1000 adds 20; > 50 transfers per day adds 20."""
    from solana_forensics.analysis_engine.entity import analyze_entity

    transfers = [make_transfer(f"s{i}", T0 + i * 60, FOCAL, OTHER, 20.0) for i in range(60)]
    analysis = analyze_entity(FOCAL, transfers)
    assert analysis.total_volume == 1200.0
    assert analysis.transactions_per_day > 50
    assert analysis.risk_score == 40.0


def test_entity_risk_middle_volume_and_frequency_tiers(make_transfer):
    """Volume > 100 adds 10; > 20 transfers per day adds 10."""
    from solana_forensics.analysis_engine.entity import analyze_entity

    daily = [make_transfer(f"v{i}", T0 + i * DAY, FOCAL, OTHER, 40.0) for i in range(3)]
    assert analyze_entity(FOCAL, daily).risk_score == 10.0
    assert analyze_entity(FOCAL, daily[:2] + [make_transfer("v2", T0 + 2 * DAY, FOCAL, OTHER, 20.0)]).risk_score == 0.0

    # 24 transfers over 23 hours -> ~25 per day
    hourly = [make_transfer(f"h{i}", T0 + i * 3600, FOCAL, OTHER, 1.0) for i in range(24)]
    analysis = analyze_entity(FOCAL, hourly)
    assert 20 < analysis.transactions_per_day < 50
    assert analysis.risk_score == 10.0
    # 12 transfers over 22 hours -> ~13 per day
    assert analyze_entity(FOCAL, [make_transfer(f"h{i}", T0 + i * 7200, FOCAL, OTHER, 1.0) for i in range(12)]).risk_score == 0.0


def test_entity_risk_fan_out_tiers(make_transfer):
    """More than 20 distinct counterparties adds 10; more than 50 adds 20."""
    from solana_forensics.analysis_engine.entity import analyze_entity

    def spread(count):
        return [make_transfer(f"p{i}", T0 + i * DAY, FOCAL, f"Peer{i}", 1.0) for i in range(count)]

    assert analyze_entity(FOCAL, spread(20)).risk_score == 0.0
    analysis = analyze_entity(FOCAL, spread(21))
    assert len(analysis.associated_addresses) == 21
    assert analysis.risk_score == 10.0
    assert analyze_entity(FOCAL, spread(50)).risk_score == 10.0
    assert analyze_entity(FOCAL, spread(51)).risk_score == 20.0


def test_medium_risk_pattern_is_scored():
    """A MEDIUM_RISK pattern supplied by the caller adds 15."""
    from solana_forensics.analysis_engine.entity import (
        ENTITY_MEDIUM_RISK,
        EntityAnalysis,
        EntityPattern,
        calculate_entity_risk_score,
    )

    analysis = EntityAnalysis(address=FOCAL, patterns=[EntityPattern(type=ENTITY_MEDIUM_RISK, confidence=1.0)])
    assert calculate_entity_risk_score(analysis) == 15.0


def test_zero_time_span_frequency_is_zero(make_transfer):
    """All transfers at the same second: frequency 0, no division error."""
    from solana_forensics.analysis_engine.entity import analyze_entity

    transfers = [make_transfer(f"s{i}", T0, FOCAL, OTHER, 1.0) for i in range(100)]
    analysis = analyze_entity(FOCAL, transfers)
    assert analysis.transactions_per_day == 0.0


def test_entity_counterparty_kinds_from_graph(make_transfer):
    """With a graph, associated addresses carry their node kind."""
    from solana_forensics.analysis_engine.entity import analyze_entity
    from solana_forensics.analysis_engine.graph import NODE_WALLET, build_graph

    transfers = [make_transfer("s1", T0, FOCAL, OTHER, 1.0)]
    analysis = analyze_entity(FOCAL, transfers, build_graph(transfers))
    assert analysis.counterparty_kinds == {OTHER: NODE_WALLET}


def test_analyze_entity_empty():
    """Empty input -> zeroed analysis, UNKNOWN."""
    from solana_forensics.analysis_engine.entity import ENTITY_UNKNOWN, analyze_entity

    analysis = analyze_entity(FOCAL, [])
    d = analysis.to_dict()
    assert d["type"] == ENTITY_UNKNOWN
    assert d["transactionCount"] == 0
    assert d["riskScore"] == 0.0
    assert d["firstSeen"] is None
    assert d["patterns"] == []


def test_extract_entities_labels_and_tags(make_transfer):
    """Known exchange is labelled; >3 transfers tags frequent; amount >10 tags high-value."""
    from solana_forensics.analysis_engine.entity import extract_entities

    transfers = [make_transfer(f"b{i}", T0 + i, BINANCE, FOCAL, 1.0) for i in range(4)]
    transfers.append(make_transfer("o1", T0 + 10, FOCAL, OTHER, 15.0))
    entities = {e.address: e for e in extract_entities(FOCAL, transfers)}
    assert set(entities) == {BINANCE, OTHER}
    assert entities[BINANCE].label == "Binance"
    assert entities[BINANCE].type == "exchange"
    assert entities[BINANCE].tags == ["frequent"]
    assert entities[OTHER].label is None
    assert entities[OTHER].tags == ["high-value"]
    assert entities[OTHER].transaction_count == 1
