"""
Entity pattern detection and classification for an address.

Tallies program interactions, token-mint interactions and an hour-of-day
activity histogram, then emits explainable patterns (category programs, token
holding, active trading, high-risk program use). The entity type is the
pattern type with the highest summed confidence. Entity risk combines volume,
frequency, flagged patterns and counterparty fan-out, clamped to [0, 100].
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from solana_forensics.analysis_engine.graph import TransactionGraph
from solana_forensics.analysis_engine.models import Transfer
from solana_forensics.analysis_engine.registry import (
    ENTITY_TYPE_UNKNOWN,
    KnownEntity,
    PROGRAM_CATEGORIES,
    ProgramCategory,
    lookup_entity,
)
from solana_forensics.analysis_engine.risk import clamp_risk
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

ENTITY_UNKNOWN = "UNKNOWN"
ENTITY_TOKEN_HOLDER = "TOKEN_HOLDER"
ENTITY_ACTIVE_TRADER = "ACTIVE_TRADER"
ENTITY_HIGH_RISK = "HIGH_RISK"
# scored when present; detect_patterns never emits it, callers may add it to patterns
ENTITY_MEDIUM_RISK = "MEDIUM_RISK"

TOKEN_HOLDER_MIN_INTERACTIONS = 5
TOKEN_HOLDER_FULL_CONFIDENCE = 10
ACTIVE_HOUR_MIN_TRANSFERS = 3
ACTIVE_TRADER_MIN_HOURS = 3
HIGH_RISK_FULL_CONFIDENCE = 3

SECONDS_PER_DAY = 86400

TAG_FREQUENT = "frequent"
TAG_HIGH_VALUE = "high-value"
FREQUENT_MIN_TRANSFERS = 3
HIGH_VALUE_AMOUNT = 10.0


@dataclass
class EntityPattern:
    type: str
    confidence: float
    evidence: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "confidence": self.confidence, "evidence": list(self.evidence)}


@dataclass
class EntityAnalysis:
    address: str
    type: str = ENTITY_UNKNOWN
    patterns: list[EntityPattern] = field(default_factory=list)
    risk_score: float = 0.0
    associated_addresses: list[str] = field(default_factory=list)
    counterparty_kinds: dict[str, str] = field(default_factory=dict)
    transaction_count: int = 0
    total_volume: float = 0.0
    first_seen: int | None = None
    last_seen: int | None = None
    label: KnownEntity | None = None

    @property
    def transactions_per_day(self) -> float:
        if self.first_seen is None or self.last_seen is None:
            return 0.0
        span = self.last_seen - self.first_seen
        if span <= 0:
            return 0.0
        return self.transaction_count / (span / SECONDS_PER_DAY)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "type": self.type,
            "label": self.label.to_dict() if self.label else None,
            "patterns": [p.to_dict() for p in self.patterns],
            "riskScore": self.risk_score,
            "associatedAddresses": list(self.associated_addresses),
            "counterpartyKinds": dict(self.counterparty_kinds),
            "transactionCount": self.transaction_count,
            "totalVolume": self.total_volume,
            "firstSeen": self.first_seen,
            "lastSeen": self.last_seen,
        }


def detect_patterns(
    transfers: Iterable[Transfer],
    categories: Iterable[ProgramCategory] = PROGRAM_CATEGORIES,
    high_risk_programs: Iterable[str] = (),
) -> list[EntityPattern]:
    """Explainable behavior patterns from program, token and timing statistics."""
    program_counts: Counter[str] = Counter()
    token_counts: Counter[str] = Counter()
    hour_counts: Counter[int] = Counter()
    for tx in transfers:
        if tx.program_id:
            program_counts[tx.program_id] += 1
        for token in tx.token_transfers:
            token_counts[token.mint] += 1
        if tx.block_time is not None:
            hour_counts[datetime.fromtimestamp(tx.block_time, tz=timezone.utc).hour] += 1

    categories = tuple(categories)
    risky = set(high_risk_programs)
    patterns: list[EntityPattern] = []
    for program_id, count in program_counts.items():
        for category in categories:
            if program_id in category.programs and count >= category.min_interactions:
                patterns.append(
                    EntityPattern(
                        type=category.name,
                        confidence=min(count / category.min_interactions, 1.0),
                        evidence=[f"Interacted with {category.name} program {count} times"],
                    )
                )
        if program_id in risky:
            patterns.append(
                EntityPattern(
                    type=ENTITY_HIGH_RISK,
                    confidence=min(count / HIGH_RISK_FULL_CONFIDENCE, 1.0),
                    evidence=[f"Interacted with high-risk program {program_id} {count} times"],
                )
            )

    for mint, count in token_counts.items():
        if count >= TOKEN_HOLDER_MIN_INTERACTIONS:
            patterns.append(
                EntityPattern(
                    type=ENTITY_TOKEN_HOLDER,
                    confidence=min(count / TOKEN_HOLDER_FULL_CONFIDENCE, 1.0),
                    evidence=[f"Holds token {mint} with {count} interactions"],
                )
            )

    active_hours = sorted(h for h, c in hour_counts.items() if c >= ACTIVE_HOUR_MIN_TRANSFERS)
    if len(active_hours) >= ACTIVE_TRADER_MIN_HOURS:
        patterns.append(
            EntityPattern(
                type=ENTITY_ACTIVE_TRADER,
                confidence=min(len(active_hours) / 24, 1.0),
                evidence=[f"Active during hours (UTC): {', '.join(str(h) for h in active_hours)}"],
            )
        )
    return patterns


def determine_entity_type(patterns: Iterable[EntityPattern]) -> str:
    """Pattern type with the highest summed confidence; first encountered wins ties."""
    scores: dict[str, float] = {}
    for pattern in patterns:
        scores[pattern.type] = scores.get(pattern.type, 0.0) + pattern.confidence
    best_type = ENTITY_UNKNOWN
    best_score = 0.0
    for entity_type, score in scores.items():
        if score > best_score:
            best_type, best_score = entity_type, score
    return best_type


def calculate_entity_risk_score(analysis: EntityAnalysis) -> float:
    """Volume, frequency, HIGH_RISK/MEDIUM_RISK pattern and fan-out tiers, clamped to 0-100."""
    risk = 0.0
    if analysis.total_volume > 1000:
        risk += 20
    elif analysis.total_volume > 100:
        risk += 10

    per_day = analysis.transactions_per_day
    if per_day > 50:
        risk += 20
    elif per_day > 20:
        risk += 10

    for pattern in analysis.patterns:
        if pattern.type == ENTITY_HIGH_RISK:
            risk += 30
        elif pattern.type == ENTITY_MEDIUM_RISK:
            risk += 15

    fan_out = len(analysis.associated_addresses)
    if fan_out > 50:
        risk += 20
    elif fan_out > 20:
        risk += 10
    return clamp_risk(risk)


def _associated_addresses(address: str, transfers: Iterable[Transfer]) -> list[str]:
    seen: dict[str, None] = {}
    for tx in transfers:
        for other in (tx.sender, tx.receiver):
            if other and other != address:
                seen[other] = None
    return list(seen)


def analyze_entity(
    address: str,
    transfers: Iterable[Transfer],
    graph: TransactionGraph | None = None,
    *,
    categories: Iterable[ProgramCategory] = PROGRAM_CATEGORIES,
    high_risk_programs: Iterable[str] = (),
) -> EntityAnalysis:
    """
    Classify address from its transfers.

    Counts, volume and first/last seen cover every supplied transfer; malformed
    amounts are left out of the volume. With a graph, counterparties are tagged
    with their node kind.
    """
    txs = list(transfers)
    analysis = EntityAnalysis(address=address, transaction_count=len(txs), label=lookup_entity(address))
    times = [tx.block_time for tx in txs if tx.block_time is not None]
    if times:
        analysis.first_seen = min(times)
        analysis.last_seen = max(times)
    analysis.total_volume = sum(tx.amount for tx in txs if tx.amount is not None)

    analysis.patterns = detect_patterns(txs, categories, high_risk_programs)
    analysis.type = determine_entity_type(analysis.patterns)
    analysis.associated_addresses = _associated_addresses(address, txs)
    if graph is not None:
        for other in analysis.associated_addresses:
            kind = graph.kind_of(other)
            if kind is not None:
                analysis.counterparty_kinds[other] = kind
    analysis.risk_score = calculate_entity_risk_score(analysis)

    logger.debug(
        "entity_analyzed",
        address=address[:16],
        entity_type=analysis.type,
        pattern_count=len(analysis.patterns),
        risk_score=analysis.risk_score,
    )
    return analysis


@dataclass
class CounterpartyEntity:
    address: str
    label: str | None
    type: str
    transaction_count: int
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "label": self.label,
            "type": self.type,
            "transactionCount": self.transaction_count,
            "tags": list(self.tags),
        }


def extract_entities(
    focal_address: str,
    transfers: Iterable[Transfer],
    known: Mapping[str, KnownEntity] | None = None,
) -> list[CounterpartyEntity]:
    """Counterparties of the focal address with labels, counts and behavior tags."""
    related: dict[str, list[Transfer]] = {}
    for tx in transfers:
        for other in dict.fromkeys((tx.sender, tx.receiver)):
            if other and other != focal_address:
                related.setdefault(other, []).append(tx)

    entities: list[CounterpartyEntity] = []
    for address, txs in related.items():
        entity = lookup_entity(address, known)
        tags: list[str] = []
        if len(txs) > FREQUENT_MIN_TRANSFERS:
            tags.append(TAG_FREQUENT)
        if any(tx.amount is not None and tx.amount > HIGH_VALUE_AMOUNT for tx in txs):
            tags.append(TAG_HIGH_VALUE)
        entities.append(
            CounterpartyEntity(
                address=address,
                label=entity.name if entity else None,
                type=entity.type if entity else ENTITY_TYPE_UNKNOWN,
                transaction_count=len(txs),
                tags=tags,
            )
        )
    return entities
