"""
Structured logging for Solana Forensics.

JSON logs with timestamp, event_type and analysis fields (focal address,
counts, scores). Use get_logger() in every module.
"""

from solana_forensics.forensics_logging.logger import bind_focal_address, get_logger

__all__ = ["get_logger", "bind_focal_address"]
