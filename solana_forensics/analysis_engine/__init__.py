"""
Analysis engine package: forensic analytics over transfer records.

Consumes normalized Transfer records and produces the relationship graph,
significant paths, clusters, anomalies, entity classification and funding
analysis. Pure and synchronous; no I/O.
"""

from solana_forensics.analysis_engine.models import (
    TokenTransfer,
    Transfer,
    parse_transfers,
)
from solana_forensics.analysis_engine.graph import (
    GraphNode,
    TransactionGraph,
    build_graph,
)
from solana_forensics.analysis_engine.paths import (
    TransactionPath,
    analyze_transaction_paths,
    find_significant_paths,
)
from solana_forensics.analysis_engine.clustering import (
    TransactionCluster,
    cluster_transactions,
)
from solana_forensics.analysis_engine.anomaly import (
    Anomaly,
    AnomalyConfig,
    calculate_anomaly_score,
    detect_anomalies,
    detect_simple_anomalies,
    get_anomaly_recommendations,
)
from solana_forensics.analysis_engine.entity import (
    EntityAnalysis,
    EntityPattern,
    analyze_entity,
    extract_entities,
)
from solana_forensics.analysis_engine.funding import (
    FundingAnalysis,
    FundingSource,
    aggregate_funding,
)
from solana_forensics.analysis_engine.cache import InMemoryResultCache, ResultCache
from solana_forensics.analysis_engine.pipeline import run_forensic_analysis

__all__ = [
    "TokenTransfer",
    "Transfer",
    "parse_transfers",
    "GraphNode",
    "TransactionGraph",
    "build_graph",
    "TransactionPath",
    "analyze_transaction_paths",
    "find_significant_paths",
    "TransactionCluster",
    "cluster_transactions",
    "Anomaly",
    "AnomalyConfig",
    "calculate_anomaly_score",
    "detect_anomalies",
    "detect_simple_anomalies",
    "get_anomaly_recommendations",
    "EntityAnalysis",
    "EntityPattern",
    "analyze_entity",
    "extract_entities",
    "FundingAnalysis",
    "FundingSource",
    "aggregate_funding",
    "InMemoryResultCache",
    "ResultCache",
    "run_forensic_analysis",
]
