"""
Behavioral transaction clustering for a focal wallet.

Three independent heuristics over the same transfers (no ML):
- address-based: repeated transfers with the same counterparty
- time-based: bursts where consecutive transfers are < 10 minutes apart
- amount-based: transfers sharing the same amount (rounded to 2 decimals)

A transfer may sit in several clusters; passes are not deduplicated against
each other. Every pass requires at least MIN_CLUSTER_SIZE members. Clusters are
merged and sorted by risk score, highest first.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from solana_forensics.analysis_engine.formatting import format_address
from solana_forensics.analysis_engine.graph import TransactionGraph
from solana_forensics.analysis_engine.models import Transfer
from solana_forensics.analysis_engine.registry import lookup_entity
from solana_forensics.analysis_engine.risk import clamp_risk
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

CLUSTER_ADDRESS = "address-based"
CLUSTER_TIME = "time-based"
CLUSTER_AMOUNT = "amount-based"

MIN_CLUSTER_SIZE = 3

ADDRESS_BASE_RISK = 30.0
ADDRESS_REPEATED_AMOUNT_COUNT = 3
ADDRESS_REPEATED_AMOUNT_RISK = 20.0
ADDRESS_HIGH_VOLUME = 100.0
ADDRESS_HIGH_VOLUME_RISK = 15.0

TIME_WINDOW_GAP_SEC = 600
TIME_BASE_RISK = 40.0
TIME_RISK_PER_TX = 2.0
TIME_MAX_SIZE_RISK = 30.0

AMOUNT_BASE_RISK = 35.0
AMOUNT_SPAN_DAY_SEC = 86400
AMOUNT_SPAN_DAY_RISK = 15.0
AMOUNT_SPAN_HOUR_SEC = 3600
AMOUNT_SPAN_HOUR_RISK = 25.0
AMOUNT_LARGE_CLUSTER = 5
AMOUNT_LARGE_CLUSTER_RISK = 10.0


@dataclass
class TransactionCluster:
    """
    Group of transfers flagged by one heuristic.

    entities: distinct non-focal addresses in the member transfers.
    entity_kinds: graph node kind per entity, when a graph was supplied.
    """

    id: str
    name: str
    type: str
    transactions: list[Transfer]
    entities: list[str]
    risk_score: float
    detection_reason: str
    entity_kinds: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.transactions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "transactions": [t.signature for t in self.transactions],
            "entities": list(self.entities),
            "entityKinds": dict(self.entity_kinds),
            "riskScore": self.risk_score,
            "detectionReason": self.detection_reason,
        }


def _counterparty(tx: Transfer, focal_address: str) -> str | None:
    return tx.receiver if tx.sender == focal_address else tx.sender


def _entities(transfers: Iterable[Transfer], focal_address: str) -> list[str]:
    seen: dict[str, None] = {}
    for tx in transfers:
        for address in (tx.sender, tx.receiver):
            if address and address != focal_address:
                seen[address] = None
    return list(seen)


def _volume(transfers: Iterable[Transfer]) -> float:
    return sum(tx.amount for tx in transfers if tx.amount is not None)


def _label(address: str) -> str:
    entity = lookup_entity(address)
    return entity.name if entity is not None else format_address(address)


def _address_clusters(transfers: list[Transfer], focal_address: str) -> list[TransactionCluster]:
    groups: dict[str, list[Transfer]] = {}
    for tx in transfers:
        counterparty = _counterparty(tx, focal_address)
        if counterparty:
            groups.setdefault(counterparty, []).append(tx)

    clusters: list[TransactionCluster] = []
    for counterparty, txs in groups.items():
        if len(txs) < MIN_CLUSTER_SIZE:
            continue
        total_volume = _volume(txs)
        risk = ADDRESS_BASE_RISK
        amount_counts = Counter(tx.amount for tx in txs if tx.amount is not None)
        if any(c >= ADDRESS_REPEATED_AMOUNT_COUNT for c in amount_counts.values()):
            risk += ADDRESS_REPEATED_AMOUNT_RISK
        if total_volume > ADDRESS_HIGH_VOLUME:
            risk += ADDRESS_HIGH_VOLUME_RISK
        clusters.append(
            TransactionCluster(
                id=f"address-{counterparty}",
                name=f"Transactions with {_label(counterparty)}",
                type=CLUSTER_ADDRESS,
                transactions=txs,
                entities=[counterparty],
                risk_score=clamp_risk(risk),
                detection_reason=(
                    f"{len(txs)} transactions with the same address, "
                    f"total volume: {total_volume:.2f} SOL"
                ),
            )
        )
    return clusters


def _time_cluster(window: list[Transfer], focal_address: str, gap_sec: int) -> TransactionCluster:
    start = window[0].block_time or 0
    risk = TIME_BASE_RISK + min(TIME_RISK_PER_TX * len(window), TIME_MAX_SIZE_RISK)
    return TransactionCluster(
        id=f"time-{start}",
        name=f"High-frequency activity ({start})",
        type=CLUSTER_TIME,
        transactions=list(window),
        entities=_entities(window, focal_address),
        risk_score=clamp_risk(risk),
        detection_reason=(
            f"{len(window)} transactions each within {gap_sec // 60} minutes of the previous, "
            f"total volume: {_volume(window):.2f} SOL"
        ),
    )


def _time_clusters(
    transfers: list[Transfer],
    focal_address: str,
    gap_sec: int = TIME_WINDOW_GAP_SEC,
) -> list[TransactionCluster]:
    timed = sorted((tx for tx in transfers if tx.block_time is not None), key=lambda t: t.block_time)
    clusters: list[TransactionCluster] = []
    window: list[Transfer] = []
    for tx in timed:
        if window and tx.block_time - window[-1].block_time >= gap_sec:
            if len(window) >= MIN_CLUSTER_SIZE:
                clusters.append(_time_cluster(window, focal_address, gap_sec))
            window = []
        window.append(tx)
    if len(window) >= MIN_CLUSTER_SIZE:
        clusters.append(_time_cluster(window, focal_address, gap_sec))
    return clusters


def _amount_clusters(transfers: list[Transfer], focal_address: str) -> list[TransactionCluster]:
    buckets: dict[float, list[Transfer]] = {}
    for tx in transfers:
        if tx.amount is None or tx.amount <= 0:
            continue
        buckets.setdefault(round(tx.amount, 2), []).append(tx)

    clusters: list[TransactionCluster] = []
    for amount, txs in buckets.items():
        if len(txs) < MIN_CLUSTER_SIZE:
            continue
        timestamps = [tx.block_time or 0 for tx in txs]
        span = max(timestamps) - min(timestamps)
        risk = AMOUNT_BASE_RISK
        if span < AMOUNT_SPAN_DAY_SEC:
            risk += AMOUNT_SPAN_DAY_RISK
        if span < AMOUNT_SPAN_HOUR_SEC:
            risk += AMOUNT_SPAN_HOUR_RISK
        if len(txs) > AMOUNT_LARGE_CLUSTER:
            risk += AMOUNT_LARGE_CLUSTER_RISK
        clusters.append(
            TransactionCluster(
                id=f"amount-{amount:.2f}",
                name=f"Repeated amount {amount:.2f} SOL",
                type=CLUSTER_AMOUNT,
                transactions=txs,
                entities=_entities(txs, focal_address),
                risk_score=clamp_risk(risk),
                detection_reason=(
                    f"{len(txs)} transactions of {amount:.2f} SOL "
                    f"over {span / 3600:.1f} hours"
                ),
            )
        )
    return clusters


def cluster_transactions(
    transfers: Iterable[Transfer],
    focal_address: str,
    graph: TransactionGraph | None = None,
    *,
    time_gap_sec: int = TIME_WINDOW_GAP_SEC,
) -> list[TransactionCluster]:
    """
    Run the address, time and amount passes and return all clusters by risk (desc).

    When graph is given, each cluster's entities are tagged with their node kind.
    """
    txs = list(transfers)
    if not txs:
        return []
    clusters = (
        _address_clusters(txs, focal_address)
        + _time_clusters(txs, focal_address, time_gap_sec)
        + _amount_clusters(txs, focal_address)
    )
    if graph is not None:
        for cluster in clusters:
            for entity in cluster.entities:
                kind = graph.kind_of(entity)
                if kind is not None:
                    cluster.entity_kinds[entity] = kind
    clusters.sort(key=lambda c: c.risk_score, reverse=True)
    logger.info(
        "clusters_detected",
        focal_address=focal_address[:16],
        tx_count=len(txs),
        cluster_count=len(clusters),
        by_type=dict(Counter(c.type for c in clusters)),
    )
    return clusters
