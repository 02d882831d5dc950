"""
Application-level exceptions.

Analysis functions never raise for bad individual records; these are raised
at the edges (record parsing, acquisition) and mapped to HTTP / exit codes by
the API server and CLI.
"""

from __future__ import annotations


class ForensicsError(Exception):
    """Base class for all solana_forensics errors."""

    code = "forensics_error"


class InvalidTransferError(ForensicsError):
    """A transfer payload cannot be turned into a Transfer (e.g. no signature)."""

    code = "invalid_transfer"


class AcquisitionError(ForensicsError):
    """Fetching transfer data from RPC failed after retries."""

    code = "acquisition_failed"


class AcquisitionCancelled(ForensicsError):
    """The caller cancelled an in-flight acquisition."""

    code = "acquisition_cancelled"
