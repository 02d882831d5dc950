"""
Funding analysis for a focal wallet: where its SOL came from and where it went.

Transfers are walked oldest first. Inbound transfers (receiver is the focal
wallet) add to inflow and to a per-sender funding aggregate; outbound
transfers add to outflow. A running balance timeline records each counted
transfer. Records missing sender, receiver or a valid positive amount are left
out of every aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from solana_forensics.analysis_engine.formatting import format_timestamp
from solana_forensics.analysis_engine.models import Transfer, sort_chronologically
from solana_forensics.analysis_engine.registry import ENTITY_TYPE_UNKNOWN, KnownEntity, lookup_entity
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

HIGH_CONFIDENCE_SHARE = 0.5
MEDIUM_CONFIDENCE_SHARE = 0.2
TOP_SOURCES_LIMIT = 5


@dataclass(frozen=True)
class FundingSource:
    address: str
    amount: float
    timestamp: int
    """Earliest inbound timestamp from this source."""
    transaction_signature: str
    """Signature of the earliest inbound transfer."""
    confidence: str | None = CONFIDENCE_LOW
    """Share-of-inflow tier; None once merged across analyses."""
    label: str | None = None
    type: str = ENTITY_TYPE_UNKNOWN
    contributions: tuple[tuple[str, float], ...] = ()
    """(signature, amount) pairs behind amount, sorted by signature."""

    def signature_amounts(self) -> dict[str, float]:
        if self.contributions:
            return dict(self.contributions)
        return {self.transaction_signature: self.amount}

    def merge(self, other: "FundingSource") -> "FundingSource":
        """
        Union per-signature contributions; amount is the sum over unique signatures.

        Merging a transfer that is already present leaves the amount unchanged.
        Keeps the earliest timestamp with its signature. Confidence is reset to
        None because it is relative to one analysis's total inflow.
        """
        amounts = self.signature_amounts()
        amounts.update(other.signature_amounts())
        earliest = self if self.timestamp <= other.timestamp else other
        return FundingSource(
            address=self.address,
            amount=sum(amounts.values()),
            timestamp=earliest.timestamp,
            transaction_signature=earliest.transaction_signature,
            confidence=None,
            label=self.label or other.label,
            type=self.type,
            contributions=tuple(sorted(amounts.items())),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "label": self.label,
            "type": self.type,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "transactionSignature": self.transaction_signature,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class FirstDeposit:
    timestamp: int
    source: str
    amount: float
    transaction_signature: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "date": format_timestamp(self.timestamp),
            "source": self.source,
            "amount": self.amount,
            "transactionSignature": self.transaction_signature,
        }


@dataclass(frozen=True)
class TimelineEntry:
    timestamp: int
    amount: float
    balance: float
    source: str
    is_deposit: bool
    transaction_signature: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "date": format_timestamp(self.timestamp),
            "amount": self.amount,
            "balance": self.balance,
            "source": self.source,
            "isDeposit": self.is_deposit,
            "transactionSignature": self.transaction_signature,
        }


@dataclass
class FundingAnalysis:
    wallet_address: str
    total_inflow: float = 0.0
    total_outflow: float = 0.0
    net_balance: float = 0.0
    first_deposit: FirstDeposit | None = None
    top_sources: list[FundingSource] = field(default_factory=list)
    timeline: list[TimelineEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "walletAddress": self.wallet_address,
            "totalInflow": self.total_inflow,
            "totalOutflow": self.total_outflow,
            "netBalance": self.net_balance,
            "firstDeposit": self.first_deposit.to_dict() if self.first_deposit else None,
            "topSources": [s.to_dict() for s in self.top_sources],
            "timelineData": [e.to_dict() for e in self.timeline],
        }


def source_confidence(amount: float, total_inflow: float) -> str:
    """high if the source's share of inflow is > 50%, medium if > 20%, else low."""
    share = amount / total_inflow if total_inflow > 0 else 0.0
    if share > HIGH_CONFIDENCE_SHARE:
        return CONFIDENCE_HIGH
    if share > MEDIUM_CONFIDENCE_SHARE:
        return CONFIDENCE_MEDIUM
    return CONFIDENCE_LOW


def aggregate_funding(
    focal_address: str,
    transfers: Iterable[Transfer],
    known: Mapping[str, KnownEntity] | None = None,
) -> FundingAnalysis:
    """Inflow/outflow totals, running balance timeline and top funding sources."""
    analysis = FundingAnalysis(wallet_address=focal_address)
    sources: dict[str, FundingSource] = {}
    balance = 0.0
    skipped = 0

    for tx in sort_chronologically(transfers):
        if not tx.sender or not tx.receiver or tx.amount is None or tx.amount <= 0:
            skipped += 1
            continue
        inbound = tx.receiver == focal_address
        if not inbound and tx.sender != focal_address:
            skipped += 1
            continue
        timestamp = tx.block_time or 0
        amount = tx.amount

        if inbound:
            balance += amount
            analysis.total_inflow += amount
            if analysis.first_deposit is None:
                analysis.first_deposit = FirstDeposit(timestamp, tx.sender, amount, tx.signature)
            observed = FundingSource(
                address=tx.sender,
                amount=amount,
                timestamp=timestamp,
                transaction_signature=tx.signature,
            )
            existing = sources.get(tx.sender)
            sources[tx.sender] = observed if existing is None else existing.merge(observed)
        else:
            balance -= amount
            analysis.total_outflow += amount

        analysis.timeline.append(
            TimelineEntry(
                timestamp=timestamp,
                amount=amount,
                balance=balance,
                source=tx.sender if inbound else tx.receiver,
                is_deposit=inbound,
                transaction_signature=tx.signature,
            )
        )

    analysis.net_balance = analysis.total_inflow - analysis.total_outflow
    ranked = sorted(sources.values(), key=lambda s: s.amount, reverse=True)[:TOP_SOURCES_LIMIT]
    top: list[FundingSource] = []
    for src in ranked:
        entity = lookup_entity(src.address, known)
        top.append(
            FundingSource(
                address=src.address,
                amount=src.amount,
                timestamp=src.timestamp,
                transaction_signature=src.transaction_signature,
                confidence=source_confidence(src.amount, analysis.total_inflow),
                label=entity.name if entity else None,
                type=entity.type if entity else ENTITY_TYPE_UNKNOWN,
                contributions=src.contributions,
            )
        )
    analysis.top_sources = top

    logger.debug(
        "funding_aggregated",
        focal_address=focal_address[:16],
        total_inflow=analysis.total_inflow,
        total_outflow=analysis.total_outflow,
        source_count=len(sources),
        skipped=skipped,
    )
    return analysis
