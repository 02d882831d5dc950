"""
Rule-based anomaly detection over a wallet's transfers.

Transfers are processed in timestamp order while running metrics (amount
statistics, recent timestamps, program ids, counterparties) are updated
incrementally. Every rule sees only the history strictly before the current
transfer and stays silent until its minimum history is met. A transfer may
trigger several rules.

Complementary stateless checks (absolute large amount, high-frequency
triplets, high-risk program interaction) are in detect_simple_anomalies.
Fully explainable: each anomaly carries its rule, severity and the values
that triggered it. No ML; thresholds are configurable.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from solana_forensics.analysis_engine.models import Transfer
from solana_forensics.analysis_engine.risk import (
    AnomalySeverity,
    aggregate_severity_score,
    clamp_risk,
    severity_score,
)
from solana_forensics.config.settings import DEFAULT_HIGH_RISK_PROGRAMS, Settings
from solana_forensics.forensics_logging import get_logger

logger = get_logger(__name__)

UNUSUAL_AMOUNT = "UNUSUAL_AMOUNT"
RAPID_TRANSACTIONS = "RAPID_TRANSACTIONS"
UNUSUAL_PROGRAM = "UNUSUAL_PROGRAM"
NEW_COUNTERPARTY = "NEW_COUNTERPARTY"
LARGE_VALUE_TRANSFER = "LARGE_VALUE_TRANSFER"

LARGE_AMOUNT = "large-amount"
HIGH_FREQUENCY = "high-frequency"
SUSPICIOUS_ADDRESS = "suspicious-address"

LARGE_AMOUNT_RISK = 75.0
HIGH_FREQUENCY_RISK = 65.0
SUSPICIOUS_ADDRESS_RISK = 60.0

RECOMMENDATIONS = {
    UNUSUAL_AMOUNT: "Review transactions with unusual amounts for potential errors or fraud",
    RAPID_TRANSACTIONS: "Investigate rapid transaction patterns for potential automated trading or manipulation",
    UNUSUAL_PROGRAM: "Verify transactions using new or unusual programs",
    NEW_COUNTERPARTY: "Review transactions with new counterparties for legitimacy",
    LARGE_VALUE_TRANSFER: "Double-check large value transfers for accuracy and authorization",
    LARGE_AMOUNT: "Confirm the source and purpose of transfers above the large-amount threshold",
    HIGH_FREQUENCY: "Check high-frequency bursts for bot or wash-trading activity",
    SUSPICIOUS_ADDRESS: "Review interactions with designated high-risk programs",
}


@dataclass
class Anomaly:
    """Single explainable anomaly tied to one transfer signature."""

    signature: str
    type: str
    severity: AnomalySeverity
    risk_score: float
    description: str
    timestamp: int | None
    details: dict[str, Any] = field(default_factory=dict)
    """Values and thresholds that triggered the rule."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactionSignature": self.signature,
            "type": self.type,
            "severity": self.severity.value,
            "riskScore": self.risk_score,
            "description": self.description,
            "timestamp": self.timestamp,
            "details": self.details,
        }


@dataclass
class AnomalyConfig:
    """Thresholds for the incremental rules and the simple checks."""

    unusual_amount_min_history: int = 5
    unusual_amount_stddevs: float = 3.0
    rapid_window_sec: int = 300
    rapid_min_prior: int = 5
    unusual_program_history: int = 10
    new_counterparty_history: int = 5
    large_value_min_history: int = 3
    large_value_multiplier: float = 10.0

    large_amount_threshold: float = 10_000.0
    high_frequency_gap_sec: int = 5
    high_risk_programs: tuple[str, ...] = DEFAULT_HIGH_RISK_PROGRAMS

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnomalyConfig":
        return cls(
            large_amount_threshold=settings.large_amount_threshold,
            high_frequency_gap_sec=settings.high_frequency_gap_sec,
            high_risk_programs=settings.high_risk_programs,
        )


class _History:
    """
    Running metrics over transfers already processed.

    Amount mean/variance use Welford's method; only transfers with an amount
    contribute to amount statistics.
    """

    def __init__(self, config: AnomalyConfig) -> None:
        self.count = 0
        self.amount_count = 0
        self.amount_mean = 0.0
        self._amount_m2 = 0.0
        self.max_amount: float | None = None
        self.recent_times: deque[int] = deque()
        self.recent_programs: deque[str | None] = deque(maxlen=config.unusual_program_history)
        self.recent_parties: deque[tuple[str | None, str | None]] = deque(
            maxlen=config.new_counterparty_history
        )

    @property
    def amount_stddev(self) -> float:
        if self.amount_count == 0:
            return 0.0
        return math.sqrt(self._amount_m2 / self.amount_count)

    def observe(self, tx: Transfer) -> None:
        self.count += 1
        if tx.amount is not None:
            self.amount_count += 1
            delta = tx.amount - self.amount_mean
            self.amount_mean += delta / self.amount_count
            self._amount_m2 += delta * (tx.amount - self.amount_mean)
            self.max_amount = tx.amount if self.max_amount is None else max(self.max_amount, tx.amount)
        self.recent_times.append(tx.block_time)
        self.recent_programs.append(tx.program_id)
        self.recent_parties.append((tx.sender, tx.receiver))

    def prior_within(self, now: int, window_sec: int) -> int:
        """Prior transfers with now - t < window_sec. Drops older entries (input is time ordered)."""
        while self.recent_times and now - self.recent_times[0] >= window_sec:
            self.recent_times.popleft()
        return len(self.recent_times)


def _details(tx: Transfer, **extra: Any) -> dict[str, Any]:
    out: dict[str, Any] = {
        "amount": tx.amount,
        "programId": tx.program_id,
        "sender": tx.sender,
        "receiver": tx.receiver,
    }
    out.update(extra)
    return out


def _anomaly(
    tx: Transfer,
    kind: str,
    severity: AnomalySeverity,
    description: str,
    **extra: Any,
) -> Anomaly:
    return Anomaly(
        signature=tx.signature,
        type=kind,
        severity=severity,
        risk_score=severity_score(severity),
        description=description,
        timestamp=tx.block_time,
        details=_details(tx, **extra),
    )


def _check_unusual_amount(h: _History, tx: Transfer, cfg: AnomalyConfig) -> Anomaly | None:
    if tx.amount is None or h.amount_count < cfg.unusual_amount_min_history:
        return None
    mean, stddev = h.amount_mean, h.amount_stddev
    if abs(tx.amount - mean) <= cfg.unusual_amount_stddevs * stddev:
        return None
    return _anomaly(
        tx,
        UNUSUAL_AMOUNT,
        AnomalySeverity.MEDIUM,
        "Transaction amount significantly different from historical average",
        mean=round(mean, 9),
        stddev=round(stddev, 9),
        threshold_stddevs=cfg.unusual_amount_stddevs,
    )


def _check_rapid(h: _History, tx: Transfer, cfg: AnomalyConfig) -> Anomaly | None:
    recent = h.prior_within(tx.block_time, cfg.rapid_window_sec)
    if recent < cfg.rapid_min_prior:
        return None
    return _anomaly(
        tx,
        RAPID_TRANSACTIONS,
        AnomalySeverity.HIGH,
        "Multiple transactions in a short time period",
        prior_in_window=recent,
        window_sec=cfg.rapid_window_sec,
    )


def _check_unusual_program(h: _History, tx: Transfer, cfg: AnomalyConfig) -> Anomaly | None:
    if h.count < cfg.unusual_program_history:
        return None
    if tx.program_id in set(h.recent_programs):
        return None
    return _anomaly(
        tx,
        UNUSUAL_PROGRAM,
        AnomalySeverity.MEDIUM,
        "Transaction using a program not seen in recent history",
        history=cfg.unusual_program_history,
    )


def _check_new_counterparty(h: _History, tx: Transfer, cfg: AnomalyConfig) -> Anomaly | None:
    if h.count < cfg.new_counterparty_history:
        return None
    seen = {party for pair in h.recent_parties for party in pair}
    if tx.sender in seen and tx.receiver in seen:
        return None
    return _anomaly(
        tx,
        NEW_COUNTERPARTY,
        AnomalySeverity.LOW,
        "Transaction with a new counterparty",
        history=cfg.new_counterparty_history,
    )


def _check_large_value(h: _History, tx: Transfer, cfg: AnomalyConfig) -> Anomaly | None:
    if tx.amount is None or h.max_amount is None or h.amount_count < cfg.large_value_min_history:
        return None
    if tx.amount <= cfg.large_value_multiplier * h.max_amount:
        return None
    return _anomaly(
        tx,
        LARGE_VALUE_TRANSFER,
        AnomalySeverity.HIGH,
        "Transaction with unusually large value",
        max_prior_amount=h.max_amount,
        multiplier=cfg.large_value_multiplier,
    )


RULES: tuple[Callable[[_History, Transfer, AnomalyConfig], Anomaly | None], ...] = (
    _check_unusual_amount,
    _check_rapid,
    _check_unusual_program,
    _check_new_counterparty,
    _check_large_value,
)


def detect_anomalies(
    transfers: Iterable[Transfer],
    config: AnomalyConfig | None = None,
) -> list[Anomaly]:
    """
    Run the incremental rules over transfers with a block time, oldest first.

    Transfers without a block time are ignored. Returns anomalies in
    processing order.
    """
    cfg = config or AnomalyConfig()
    timed = sorted((tx for tx in transfers if tx.block_time is not None), key=lambda t: t.block_time)
    history = _History(cfg)
    anomalies: list[Anomaly] = []
    for tx in timed:
        for rule in RULES:
            try:
                found = rule(history, tx, cfg)
            except Exception as e:
                logger.warning("anomaly_rule_failed", rule=rule.__name__, signature=tx.signature, error=str(e))
                continue
            if found is not None:
                anomalies.append(found)
        history.observe(tx)
    if anomalies:
        logger.info(
            "anomalies_detected",
            tx_count=len(timed),
            anomaly_count=len(anomalies),
            anomaly_types=sorted({a.type for a in anomalies}),
        )
    return anomalies


def detect_simple_anomalies(
    transfers: Iterable[Transfer],
    config: AnomalyConfig | None = None,
) -> list[Anomaly]:
    """
    Stateless checks: amount above an absolute threshold, a transfer whose
    neighbors on both sides are within high_frequency_gap_sec, and interaction
    with a designated high-risk program.
    """
    cfg = config or AnomalyConfig()
    ordered = sorted(transfers, key=lambda t: t.block_time or 0)
    risky = set(cfg.high_risk_programs)
    gap = cfg.high_frequency_gap_sec
    out: list[Anomaly] = []
    for i, tx in enumerate(ordered):
        if tx.amount is not None and tx.amount > cfg.large_amount_threshold:
            out.append(
                Anomaly(
                    signature=tx.signature,
                    type=LARGE_AMOUNT,
                    severity=AnomalySeverity.HIGH,
                    risk_score=LARGE_AMOUNT_RISK,
                    description=f"Large transfer of {tx.amount} SOL detected",
                    timestamp=tx.block_time,
                    details=_details(tx, threshold=cfg.large_amount_threshold),
                )
            )
        if 0 < i < len(ordered) - 1:
            prev_t, cur_t, next_t = ordered[i - 1].block_time, tx.block_time, ordered[i + 1].block_time
            if (
                prev_t is not None
                and cur_t is not None
                and next_t is not None
                and cur_t - prev_t < gap
                and next_t - cur_t < gap
            ):
                out.append(
                    Anomaly(
                        signature=tx.signature,
                        type=HIGH_FREQUENCY,
                        severity=AnomalySeverity.HIGH,
                        risk_score=HIGH_FREQUENCY_RISK,
                        description="High-frequency transaction pattern detected",
                        timestamp=tx.block_time,
                        details=_details(tx, gap_sec=gap),
                    )
                )
        if tx.program_id and tx.program_id in risky:
            out.append(
                Anomaly(
                    signature=tx.signature,
                    type=SUSPICIOUS_ADDRESS,
                    severity=AnomalySeverity.MEDIUM,
                    risk_score=SUSPICIOUS_ADDRESS_RISK,
                    description=f"Interaction with high-risk program {tx.program_id}",
                    timestamp=tx.block_time,
                    details=_details(tx),
                )
            )
    return out


def calculate_anomaly_score(anomalies: Iterable[Anomaly]) -> float:
    """10 x summed severity weights (LOW=1, MEDIUM=2, HIGH=3), capped at 100."""
    return clamp_risk(aggregate_severity_score(a.severity for a in anomalies))


def get_anomaly_recommendations(anomalies: Iterable[Anomaly]) -> list[str]:
    """One recommendation per distinct anomaly type, in first-seen order."""
    kinds = dict.fromkeys(a.type for a in anomalies)
    return [RECOMMENDATIONS[k] for k in kinds if k in RECOMMENDATIONS]
