"""
Risk scoring primitives shared by every analysis component.

Risk scores live in [0, 100]. Anomaly severities map to weights that feed the
aggregate anomaly score. Per-transfer risk combines amount tier, high-risk
program interaction and failure. Labels: > 70 HIGH, >= 40 MEDIUM, else LOW.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from solana_forensics.analysis_engine.models import Transfer

RISK_LOW = "LOW"
RISK_MEDIUM = "MEDIUM"
RISK_HIGH = "HIGH"

HIGH_RISK_THRESHOLD = 70.0
MEDIUM_RISK_THRESHOLD = 40.0

MIN_RISK = 0.0
MAX_RISK = 100.0


class AnomalySeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


SEVERITY_WEIGHTS: dict[AnomalySeverity, int] = {
    AnomalySeverity.LOW: 1,
    AnomalySeverity.MEDIUM: 2,
    AnomalySeverity.HIGH: 3,
}

# (amount strictly above, points)
AMOUNT_TIERS: tuple[tuple[float, float], ...] = ((1000.0, 50.0), (100.0, 30.0), (10.0, 15.0))
HIGH_RISK_PROGRAM_POINTS = 20.0
FAILED_TX_POINTS = 10.0


def clamp_risk(score: float) -> float:
    """Clamp to [0, 100]."""
    return max(MIN_RISK, min(MAX_RISK, float(score)))


def risk_label(score: float) -> str:
    if score > HIGH_RISK_THRESHOLD:
        return RISK_HIGH
    if score >= MEDIUM_RISK_THRESHOLD:
        return RISK_MEDIUM
    return RISK_LOW


def severity_score(severity: AnomalySeverity) -> float:
    """Risk contribution of a single anomaly: 10 per weight point."""
    return 10.0 * SEVERITY_WEIGHTS[severity]


def aggregate_severity_score(severities: Iterable[AnomalySeverity]) -> float:
    """10 x sum of severity weights, capped at 100."""
    total = sum(SEVERITY_WEIGHTS[s] for s in severities)
    return min(total * 10.0, MAX_RISK)


def transaction_risk_score(
    transfer: Transfer,
    high_risk_programs: Iterable[str] = (),
) -> float:
    """Heuristic risk of one transfer from its amount, program and failure state."""
    score = 0.0
    if transfer.amount is not None:
        for threshold, points in AMOUNT_TIERS:
            if transfer.amount > threshold:
                score += points
                break
    if transfer.program_id and transfer.program_id in set(high_risk_programs):
        score += HIGH_RISK_PROGRAM_POINTS
    if transfer.failed:
        score += FAILED_TX_POINTS
    return clamp_risk(score)


def is_high_risk(score: float) -> bool:
    return score > HIGH_RISK_THRESHOLD
