"""
Forensic analysis pipeline: run every component for one focal wallet.

Single entrypoint for the API server and CLI: graph -> paths, clusters,
anomalies, entity, funding; returns one JSON-serializable report. Components
are independent; a failure in one does not prevent the others from running.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Iterable

from solana_forensics.analysis_engine.anomaly import (
    AnomalyConfig,
    calculate_anomaly_score,
    detect_anomalies,
    detect_simple_anomalies,
    get_anomaly_recommendations,
)
from solana_forensics.analysis_engine.cache import ResultCache
from solana_forensics.analysis_engine.clustering import cluster_transactions
from solana_forensics.analysis_engine.entity import EntityAnalysis, analyze_entity, extract_entities
from solana_forensics.analysis_engine.formatting import format_sol_amount
from solana_forensics.analysis_engine.funding import FundingAnalysis, aggregate_funding
from solana_forensics.analysis_engine.graph import build_graph
from solana_forensics.analysis_engine.models import Transfer, parse_transfers
from solana_forensics.analysis_engine.paths import find_significant_paths
from solana_forensics.analysis_engine.risk import (
    clamp_risk,
    is_high_risk,
    risk_label,
    transaction_risk_score,
)
from solana_forensics.config.settings import Settings, get_settings
from solana_forensics.forensics_logging import bind_focal_address

PATHS_NAMESPACE = "paths"
FUNDING_NAMESPACE = "funding"


def _guard(log: Any, step: str, fn: Callable[[], Any], fallback: Any) -> Any:
    try:
        return fn()
    except Exception as e:
        log.warning("forensic_step_failed", step=step, error=str(e))
        return fallback


def run_forensic_analysis(
    focal_address: str,
    transfers: Iterable[Any],
    *,
    settings: Settings | None = None,
    cache: ResultCache | None = None,
) -> dict[str, Any]:
    """
    Run full analysis for focal_address over transfers (Transfer objects or payload dicts).

    Returns dict: walletAddress, transactionCount, graph, paths, clusters,
    anomalies, simpleAnomalies, anomalyScore, recommendations, entity,
    counterparties, funding, transactionRisk, riskScore, riskLabel.
    Empty input returns the same shape with empty lists and zeros.
    """
    cfg = settings or get_settings()
    focal_address = (focal_address or "").strip()
    log = bind_focal_address(focal_address)
    txs: list[Transfer] = parse_transfers(transfers)
    log.info("forensic_analysis_start", tx_count=len(txs))

    anomaly_config = AnomalyConfig.from_settings(cfg)
    graph = build_graph(txs)
    paths = _guard(log, "paths", lambda: find_significant_paths(graph), [])
    clusters = _guard(
        log,
        "clusters",
        lambda: cluster_transactions(txs, focal_address, graph, time_gap_sec=cfg.cluster_time_gap_sec),
        [],
    )
    anomalies = _guard(log, "anomalies", lambda: detect_anomalies(txs, anomaly_config), [])
    simple = _guard(log, "simple_anomalies", lambda: detect_simple_anomalies(txs, anomaly_config), [])
    entity = _guard(
        log,
        "entity",
        lambda: analyze_entity(focal_address, txs, graph, high_risk_programs=cfg.high_risk_programs),
        EntityAnalysis(address=focal_address),
    )
    counterparties = _guard(log, "counterparties", lambda: extract_entities(focal_address, txs), [])
    funding = _guard(
        log,
        "funding",
        lambda: aggregate_funding(focal_address, txs),
        FundingAnalysis(wallet_address=focal_address),
    )

    if cache is not None:
        for path in paths:
            cache.merge(f"{PATHS_NAMESPACE}:{focal_address}", path.key, path)
        for source in funding.top_sources:
            cache.merge(f"{FUNDING_NAMESPACE}:{focal_address}", source.address, replace(source, confidence=None))

    anomaly_score = calculate_anomaly_score(anomalies)
    top_cluster_risk = clusters[0].risk_score if clusters else 0.0
    overall = clamp_risk(max(anomaly_score, entity.risk_score, top_cluster_risk))

    transaction_risk = []
    for tx in txs:
        score = transaction_risk_score(tx, cfg.high_risk_programs)
        transaction_risk.append(
            {"signature": tx.signature, "riskScore": score, "isHighRisk": is_high_risk(score)}
        )

    funding_dict = funding.to_dict()
    for key in ("totalInflow", "totalOutflow", "netBalance"):
        formatted = format_sol_amount(funding_dict[key], cfg.sol_usd_price)
        funding_dict[f"{key}Formatted"] = formatted.to_dict() if formatted else None

    report = {
        "walletAddress": focal_address,
        "transactionCount": len(txs),
        "graph": {"nodeCount": len(graph.nodes), "edgeCount": graph.edge_count},
        "paths": [p.to_dict() for p in paths],
        "clusters": [c.to_dict() for c in clusters],
        "anomalies": [a.to_dict() for a in anomalies],
        "simpleAnomalies": [a.to_dict() for a in simple],
        "anomalyScore": anomaly_score,
        "recommendations": get_anomaly_recommendations(list(anomalies) + list(simple)),
        "entity": entity.to_dict(),
        "counterparties": [c.to_dict() for c in counterparties],
        "funding": funding_dict,
        "transactionRisk": transaction_risk,
        "riskScore": overall,
        "riskLabel": risk_label(overall),
    }
    log.info(
        "forensic_analysis_done",
        path_count=len(paths),
        cluster_count=len(clusters),
        anomaly_count=len(anomalies),
        risk_score=overall,
    )
    return report
