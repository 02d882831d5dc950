"""
Solana Forensics: transfer-level analytics for a focal wallet.

Takes a bounded list of transfer records and produces a relationship graph,
ranked multi-hop paths, behavioral clusters, anomaly flags, entity
classification and inflow/outflow funding summaries. Ingestion, HTTP API and
CLI are thin layers around the pure analysis engine.
"""

__version__ = "0.1.0"
