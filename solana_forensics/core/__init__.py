"""
Core utilities shared across the analysis engine, ingestion, API and CLI.
"""

from solana_forensics.core.exceptions import (
    AcquisitionCancelled,
    AcquisitionError,
    ForensicsError,
    InvalidTransferError,
)

__all__ = [
    "ForensicsError",
    "InvalidTransferError",
    "AcquisitionError",
    "AcquisitionCancelled",
]
